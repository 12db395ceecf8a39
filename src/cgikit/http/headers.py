"""
Header line parsing and header-name normalization.

Used for multipart part headers (``parse_header_line``) and for turning
CGI environment variable names into header names (``env_to_header_name``).
"""

from typing import Optional, Tuple

COLON = b":"


def lossy_text(data: bytes) -> str:
    """Decode bytes as UTF-8, replacing anything invalid with U+FFFD."""
    return data.decode("utf-8", errors="replace")


def parse_header_line(line: bytes) -> Optional[Tuple[str, str]]:
    """
    Split one ``Name: value`` line (without its CRLF) into a pair.

    The name is stripped and lower-cased. Only the *leading* whitespace
    of the value is stripped; trailing whitespace is kept as sent.

        >>> parse_header_line(b"Content-Type:  text/plain ")
        ('content-type', 'text/plain ')
        >>> parse_header_line(b"no colon here") is None
        True

    Returns:
        ``(name, value)``, or ``None`` if the line has no colon, which the
        caller takes to mean "not a header line".
    """
    name, sep, value = line.partition(COLON)
    if not sep:
        return None
    return lossy_text(name).strip().lower(), lossy_text(value).lstrip()


def env_to_header_name(key: str, prefix: str = "HTTP_") -> Optional[str]:
    """
    Map an environment variable name to a header name.

    The web server exposes request headers as ``HTTP_*`` variables:

        HTTP_X_CUSTOM_HEADER  ──►  x-custom-header
        HTTP_CONTENT_TYPE     ──►  content-type
        REQUEST_METHOD        ──►  None (a plain variable)
    """
    if not key.startswith(prefix):
        return None
    return normalize_header_name(key[len(prefix):])


def normalize_header_name(name: str) -> str:
    """``Content_Type`` / ``CONTENT-TYPE`` ──► ``content-type``."""
    return name.replace("_", "-").lower()
