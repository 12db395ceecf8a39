"""
=============================================================================
CGIKIT - CGI REQUEST PARSING AND RESPONSES
=============================================================================

Reads a CGI request (environment variables + stdin) into one structured
value, and writes well-formed CGI responses.

=============================================================================
QUICK START
=============================================================================

    from cgikit import CGIRequest, EmptyResponse, BodyError, error_response

    request = CGIRequest.from_environ()

    if isinstance(request.body, BodyError):
        error_response(request.body.error).respond()
    else:
        (EmptyResponse(200)
            .with_header("Cache-Control", "no-store")
            .with_content_type("text/plain")
            .with_body(f"Hello, {request.form.get('name', 'world')}!")
            .respond())

=============================================================================
"""

__version__ = "1.0.0"

from .config import CGIConfig
from .http import (
    Body,
    BodyAbsent,
    BodyBytes,
    BodyError,
    BodyMultipart,
    CGIEnvironmentError,
    CGIError,
    CGIInputError,
    CGIRequest,
    EmptyResponse,
    FullResponse,
    HTTPStatus,
    MultipartPart,
    Query,
    QueryAbsent,
    QueryError,
    QueryParsed,
    RequestAssembler,
    error_response,
    redirect,
)
from .log import setup_logging

__all__ = [
    "CGIConfig",
    "CGIRequest",
    "RequestAssembler",
    "Query",
    "QueryAbsent",
    "QueryParsed",
    "QueryError",
    "Body",
    "BodyAbsent",
    "BodyBytes",
    "BodyMultipart",
    "BodyError",
    "MultipartPart",
    "CGIError",
    "CGIEnvironmentError",
    "CGIInputError",
    "EmptyResponse",
    "FullResponse",
    "HTTPStatus",
    "error_response",
    "redirect",
    "setup_logging",
    "__version__",
]
