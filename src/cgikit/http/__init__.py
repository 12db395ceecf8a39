"""
=============================================================================
CGI PROTOCOL IMPLEMENTATION
=============================================================================

Everything between "the web server started us" and "we wrote a response".

=============================================================================
MODULE COMPONENTS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │ REQUEST ASSEMBLY (request.py)                                       │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Input:   environment mapping + stdin                                │
    │ Output:  CGIRequest(vars, headers, query, body)                     │
    └─────────────────────────────────────────────────────────────────────┘
           │ uses
           ▼
    ┌──────────────────────┐ ┌──────────────────────┐ ┌──────────────────┐
    │ query.py             │ │ multipart.py         │ │ headers.py       │
    │ name=value&... pairs │ │ boundary splitting   │ │ "Name: value"    │
    │   └─ percent.py      │ │ + part parsing       │ │ lines, HTTP_*    │
    │      %XX decoding    │ │   └─ scanner.py      │ │ name mapping     │
    └──────────────────────┘ └──────────────────────┘ └──────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ RESPONSE BUILDER (response.py)                                      │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Input:   EmptyResponse(200).with_content_type("text/plain")...     │
    │ Output:  b"Status: 200 OK\r\nContent-Type: ...\r\n\r\n..."          │
    └─────────────────────────────────────────────────────────────────────┘

Results (body.py, query.py) are small frozen classes, one per outcome;
errors (errors.py) travel inside them.

=============================================================================
"""

from .body import (
    Body,
    BodyAbsent,
    BodyBytes,
    BodyError,
    BodyMultipart,
    MultipartPart,
)
from .errors import CGIEnvironmentError, CGIError, CGIInputError
from .headers import parse_header_line
from .multipart import parse_multipart_body, parse_part, split_multipart
from .percent import percent_decode
from .query import Query, QueryAbsent, QueryError, QueryParsed, parse_query_string
from .request import CGIRequest, RequestAssembler
from .response import EmptyResponse, FullResponse, error_response, redirect
from .status_codes import HTTPStatus

__all__ = [
    # Request assembly
    "CGIRequest",
    "RequestAssembler",

    # Query results
    "Query",
    "QueryAbsent",
    "QueryParsed",
    "QueryError",
    "parse_query_string",
    "percent_decode",

    # Body results
    "Body",
    "BodyAbsent",
    "BodyBytes",
    "BodyMultipart",
    "BodyError",
    "MultipartPart",
    "split_multipart",
    "parse_part",
    "parse_multipart_body",
    "parse_header_line",

    # Errors
    "CGIError",
    "CGIEnvironmentError",
    "CGIInputError",

    # Responses
    "EmptyResponse",
    "FullResponse",
    "error_response",
    "redirect",
    "HTTPStatus",
]
