"""
=============================================================================
PERCENT DECODING
=============================================================================

Decodes the ``application/x-www-form-urlencoded`` flavour of
percent-encoding used in query strings.

=============================================================================
ENCODING RULES
=============================================================================

    Encoded            Decoded
    ───────            ───────
    +                  " " (space)
    %XX                the byte 0xXX
    anything else      copied as-is

    "a+b%20c"     ──►  "a b c"
    "caf%C3%A9"   ──►  "café"     (two bytes, one UTF-8 character)

The decoded bytes must form valid UTF-8. Unlike ``urllib.parse.unquote``,
which silently replaces bad escapes, every malformed input is an error
here:

    "abc%2"       ──►  CGIInputError (ended during escape sequence)
    "abc%zz"      ──►  CGIInputError (not hex)
    "%FF"         ──►  CGIInputError (not UTF-8)

=============================================================================
"""

from .errors import CGIInputError

PLUS = ord("+")
PERCENT = ord("%")
SPACE = ord(" ")

_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")


def percent_decode(text: str) -> str:
    """
    Decode a ``+``/``%XX`` encoded string.

    Args:
        text: Encoded text, e.g. one side of a ``name=value`` pair.

    Returns:
        The decoded string.

    Raises:
        CGIInputError: On a truncated or non-hex escape, or when the
            decoded bytes are not UTF-8.
    """
    data = text.encode("utf-8")
    decoded = bytearray()
    index = 0
    length = len(data)

    while index < length:
        byte = data[index]
        if byte == PLUS:
            decoded.append(SPACE)
            index += 1
        elif byte == PERCENT:
            escape = data[index + 1:index + 3]
            if len(escape) < 2:
                raise CGIInputError(
                    "Invalid percent-encoding.",
                    "Query string ended during escape sequence.",
                )
            if not all(b in _HEX_DIGITS for b in escape):
                raise CGIInputError(
                    "Invalid percent-encoding.",
                    f"Error %-decoding at index {index}: "
                    f"{escape.decode('utf-8', errors='replace')!r} is not hexadecimal",
                )
            decoded.append(int(escape, 16))
            index += 3
        else:
            decoded.append(byte)
            index += 1

    try:
        return decoded.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CGIInputError(
            "Invalid percent-encoding.",
            f"%-decoded query string not UTF-8: {e}",
        )
