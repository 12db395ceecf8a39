"""
=============================================================================
CGI ERRORS
=============================================================================

Error types carried by parse results.

=============================================================================
TWO KINDS OF FAILURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         CGIError                                    │
    │              status_code / message / details                        │
    ├──────────────────────────────────┬──────────────────────────────────┤
    │ CGIEnvironmentError              │ CGIInputError                    │
    │                                  │                                  │
    │ The web server handed us         │ The client sent something        │
    │ something we can't use:          │ malformed:                       │
    │   • bad Content-Length           │   • bad %-encoding               │
    │   • no boundary= parameter       │   • missing multipart boundary   │
    │                                  │   • short read / I/O failure     │
    └──────────────────────────────────┴──────────────────────────────────┘

Both are reported the same way. A caller that finds one inside a Query or
Body result can turn it straight into an HTTP error response:

    if isinstance(request.body, BodyError):
        error_response(request.body.error).respond()

The errors are exceptions so they can be raised by the low-level helpers
(percent_decode, split_multipart), but the request assembler always catches
them and stores them in a result value. One bad field never aborts the
whole request.

=============================================================================
"""

from typing import Any, Dict

from .status_codes import HTTPStatus


class CGIError(Exception):
    """
    Base error for everything the parser can report.

    Attributes:
        status_code: Suggested HTTP status for the error response.
        message: Short, user-facing text (safe to show to the client).
        details: Longer diagnostic text (for logs).
    """

    def __init__(
        self,
        message: str,
        details: str = "",
        status_code: int = HTTPStatus.BAD_REQUEST,
    ):
        super().__init__(details or message)
        self.message = message
        self.details = details or message
        self.status_code = HTTPStatus(status_code)

    @property
    def kind(self) -> str:
        """Short name of the error category ("environment" or "input")."""
        return "error"

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation, used by loggers and the CLI."""
        return {
            "kind": self.kind,
            "status_code": int(self.status_code),
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(status_code={int(self.status_code)}, "
            f"message={self.message!r}, details={self.details!r})"
        )


class CGIEnvironmentError(CGIError):
    """The hosting environment supplied a value the parser can't use."""

    @property
    def kind(self) -> str:
        return "environment"


class CGIInputError(CGIError):
    """The request payload itself is malformed or could not be read."""

    @property
    def kind(self) -> str:
        return "input"
