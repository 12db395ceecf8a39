"""
=============================================================================
CGI RESPONSE BUILDER
=============================================================================

Builds the response a CGI program writes to stdout.

=============================================================================
CGI RESPONSE ANATOMY (RFC 3875 section 6)
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  Status: 200 OK\r\n                  ← status as a header          │
    │  Cache-Control: no-store\r\n         ← headers you added           │
    │  Content-Type: text/plain\r\n        ← from with_content_type()    │
    │  Content-Length: 8\r\n               ← computed from the body      │
    │  \r\n                                ← blank line                  │
    │  Success.                            ← body                        │
    └─────────────────────────────────────────────────────────────────────┘

There is no "HTTP/1.1 200 OK" line; the web server writes that itself,
using the Status header.

=============================================================================
TWO BUILDER STATES
=============================================================================

    EmptyResponse(204)                      no body allowed
        .with_header("Cache-Control", "no-store")
        .with_content_type("text/plain")  ──► FullResponse
                                                .with_body("hello")
                                                .write(b" world")
                                                .respond()

A body only makes sense together with a Content-Type, so only
FullResponse has body methods. EmptyResponse has none to call by mistake.

=============================================================================
REPEATED HEADERS
=============================================================================

Adding the same header twice (names compared case-insensitively) joins
the values, in the order they were added:

    r.add_header("Vary", "Accept")
    r.add_header("vary", "Cookie")      →  Vary: Accept, Cookie

(RFC 7230 section 3.2.2: a repeated field is equivalent to one
comma-separated field.) The first spelling of the name is the one sent.

=============================================================================
"""

import json
import sys
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Tuple, Union

from .errors import CGIError
from .status_codes import HTTPStatus, reason_phrase


class HeaderMap:
    """
    Insertion-ordered, case-insensitive header accumulator.

    Keys are lower-cased names; each entry remembers the name as first
    given.
    """

    def __init__(self):
        self._entries: Dict[str, List[str]] = {}

    def add(self, name: str, value: str) -> None:
        """Append ``value``, joining with ", " if ``name`` is already set."""
        key = name.lower()
        entry = self._entries.get(key)
        if entry is None:
            self._entries[key] = [name, value]
        else:
            entry[1] = f"{entry[1]}, {value}"

    def set(self, name: str, value: str) -> None:
        """Replace any existing value of ``name``."""
        self._entries.pop(name.lower(), None)
        self._entries[name.lower()] = [name, value]

    def get(self, name: str) -> Optional[str]:
        entry = self._entries.get(name.lower())
        return entry[1] if entry else None

    def copy(self) -> "HeaderMap":
        new = HeaderMap()
        new._entries = {k: list(v) for k, v in self._entries.items()}
        return new

    def items(self) -> Iterator[Tuple[str, str]]:
        for name, value in self._entries.values():
            yield name, value

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def _serialize(status: int, headers: HeaderMap, body: bytes = b"") -> bytes:
    lines = [f"Status: {int(status)} {reason_phrase(status)}"]
    for name, value in headers.items():
        if name.lower() == "status":
            continue
        lines.append(f"{name}: {value}")
    lines.append("")
    return "\r\n".join(lines).encode("utf-8") + b"\r\n" + body


def _emit(data: bytes, stream: Optional[BinaryIO]) -> None:
    out = stream if stream is not None else sys.stdout.buffer
    out.write(data)
    out.flush()


class EmptyResponse:
    """
    A response with a status and headers but no body.

    Usage (answering a CORS preflight):

        EmptyResponse(204) \\
            .with_header("Access-Control-Allow-Methods", "GET, POST") \\
            .with_header("Access-Control-Allow-Origin", "https://example.net") \\
            .respond()
    """

    def __init__(self, status: int = HTTPStatus.OK):
        self.status = status
        self._headers = HeaderMap()

    def add_header(self, name: str, value: str) -> None:
        self._headers.add(name, value)

    def with_header(self, name: str, value: str) -> "EmptyResponse":
        """Chaining form of add_header()."""
        self.add_header(name, value)
        return self

    def header(self, name: str) -> Optional[str]:
        return self._headers.get(name)

    def headers(self) -> Iterator[Tuple[str, str]]:
        return self._headers.items()

    def with_content_type(self, content_type: str) -> "FullResponse":
        """
        Give the response a Content-Type, which makes it able to carry a
        body. Any content-type set with add_header() is replaced by this
        one when the response is sent.
        """
        return FullResponse(self.status, self._headers.copy(), content_type)

    def to_bytes(self) -> bytes:
        return _serialize(self.status, self._headers)

    def respond(self, stream: Optional[BinaryIO] = None) -> None:
        """Write the response to ``stream`` (default: stdout)."""
        _emit(self.to_bytes(), stream)


class FullResponse:
    """
    A response with a Content-Type and a body.

    Created only by EmptyResponse.with_content_type(). ``write()`` appends
    to the body, so the response can be used like a file:

        r = EmptyResponse(200).with_content_type("text/plain")
        r.write(b"line one\\n")
        print("line two", file=r)
        r.respond()
    """

    def __init__(self, status: int, headers: HeaderMap, content_type: str):
        self.status = status
        self.content_type = content_type
        self._headers = headers
        self._body = bytearray()

    def add_header(self, name: str, value: str) -> None:
        self._headers.add(name, value)

    def with_header(self, name: str, value: str) -> "FullResponse":
        self.add_header(name, value)
        return self

    def header(self, name: str) -> Optional[str]:
        return self._headers.get(name)

    def headers(self) -> Iterator[Tuple[str, str]]:
        return self._headers.items()

    # =========================================================================
    # BODY
    # =========================================================================

    @property
    def body(self) -> bytes:
        return bytes(self._body)

    def with_body(self, body: Union[str, bytes]) -> "FullResponse":
        """Replace the body. Strings are encoded as UTF-8."""
        if isinstance(body, str):
            body = body.encode("utf-8")
        self._body = bytearray(body)
        return self

    def with_json(self, data: Any, pretty: bool = False) -> "FullResponse":
        """Replace the body with ``data`` serialized as JSON."""
        indent = 2 if pretty else None
        return self.with_body(json.dumps(data, indent=indent, ensure_ascii=False))

    def write(self, data: Union[str, bytes]) -> int:
        """Append to the body (file-like)."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._body.extend(data)
        return len(data)

    def writable(self) -> bool:
        return True

    def flush(self) -> None:
        pass

    # =========================================================================
    # EMISSION
    # =========================================================================

    def to_bytes(self) -> bytes:
        """
        Serialize the response.

        Content-Type and Content-Length are only sent with a non-empty
        body, and always replace any hand-set values.
        """
        headers = self._headers.copy()
        if self._body:
            headers.set("Content-Type", self.content_type)
            headers.set("Content-Length", str(len(self._body)))
        return _serialize(self.status, headers, bytes(self._body))

    def respond(self, stream: Optional[BinaryIO] = None) -> None:
        _emit(self.to_bytes(), stream)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def error_response(error: CGIError, include_details: bool = False) -> FullResponse:
    """
    Turn a parse error straight into a text/plain error response.

        body = request.body
        if isinstance(body, BodyError):
            error_response(body.error).respond()

    Args:
        error: Any CGIError taken from a Query or Body result.
        include_details: Append the diagnostic text. Leave off in
            production; details can echo request content.
    """
    text = error.message
    if include_details and error.details != error.message:
        text = f"{text}\n{error.details}"
    return (EmptyResponse(error.status_code)
        .with_header("Cache-Control", "no-store")
        .with_content_type("text/plain; charset=utf-8")
        .with_body(text + "\n"))


def redirect(location: str, status: int = HTTPStatus.FOUND) -> EmptyResponse:
    """Redirect response with a Location header."""
    return EmptyResponse(status).with_header("Location", location)
