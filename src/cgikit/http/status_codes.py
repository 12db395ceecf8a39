"""
=============================================================================
HTTP STATUS CODES
=============================================================================

Status codes a CGI program typically answers with, plus their reason
phrases.

=============================================================================
STATUS IN A CGI RESPONSE
=============================================================================

A CGI program does not write an HTTP status line. It writes a "Status"
header, and the web server turns it into the real status line:

    CGI program stdout                 What the client sees
    ──────────────────                 ────────────────────
    Status: 404 Not Found\r\n    ──►   HTTP/1.1 404 Not Found\r\n
    Content-Type: text/plain\r\n       Content-Type: text/plain\r\n
    \r\n                               ...

If the Status header is missing, the server assumes "200 OK" (RFC 3875
section 6.3.3).

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes with reason phrases.

    Members are plain integers too:

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    def __new__(cls, value: int, phrase: str):
        member = int.__new__(cls, value)
        member._value_ = value
        member.phrase = phrase
        return member

    # 2xx
    OK = 200, "OK"
    CREATED = 201, "Created"
    ACCEPTED = 202, "Accepted"
    NO_CONTENT = 204, "No Content"

    # 3xx
    MOVED_PERMANENTLY = 301, "Moved Permanently"
    FOUND = 302, "Found"
    SEE_OTHER = 303, "See Other"
    NOT_MODIFIED = 304, "Not Modified"
    TEMPORARY_REDIRECT = 307, "Temporary Redirect"
    PERMANENT_REDIRECT = 308, "Permanent Redirect"

    # 4xx
    BAD_REQUEST = 400, "Bad Request"
    UNAUTHORIZED = 401, "Unauthorized"
    FORBIDDEN = 403, "Forbidden"
    NOT_FOUND = 404, "Not Found"
    METHOD_NOT_ALLOWED = 405, "Method Not Allowed"
    LENGTH_REQUIRED = 411, "Length Required"
    PAYLOAD_TOO_LARGE = 413, "Payload Too Large"
    URI_TOO_LONG = 414, "URI Too Long"
    UNSUPPORTED_MEDIA_TYPE = 415, "Unsupported Media Type"
    UNPROCESSABLE_ENTITY = 422, "Unprocessable Entity"
    TOO_MANY_REQUESTS = 429, "Too Many Requests"

    # 5xx
    INTERNAL_SERVER_ERROR = 500, "Internal Server Error"
    NOT_IMPLEMENTED = 501, "Not Implemented"
    BAD_GATEWAY = 502, "Bad Gateway"
    SERVICE_UNAVAILABLE = 503, "Service Unavailable"
    GATEWAY_TIMEOUT = 504, "Gateway Timeout"

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_error(self) -> bool:
        """True for 4xx and 5xx codes."""
        return self >= 400


def reason_phrase(code: int) -> str:
    """
    Reason phrase for any integer status code.

    Codes outside the enum (a program is free to answer 299 or 599)
    get "Unknown" rather than an error.
    """
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return "Unknown"
