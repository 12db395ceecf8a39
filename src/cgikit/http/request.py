"""
=============================================================================
CGI REQUEST ASSEMBLY
=============================================================================

Builds one immutable CGIRequest from the process environment and stdin.

=============================================================================
WHERE A CGI REQUEST COMES FROM
=============================================================================

The web server starts one process per request and hands it everything
through two channels:

    ┌──────────────────────┐
    │      Web server      │
    └──────────┬───────────┘
               │ fork + exec
               ▼
    ┌──────────────────────────────────────────────────────────────────┐
    │  ENVIRONMENT                        STDIN                        │
    │  REQUEST_METHOD=POST                ------XYZ\r\n                 │
    │  QUERY_STRING=page=2                Content-Disposition: ...     │
    │  CONTENT_LENGTH=512                 ...                          │
    │  CONTENT_TYPE=multipart/...         (exactly CONTENT_LENGTH      │
    │  HTTP_USER_AGENT=curl/8.0            bytes)                      │
    │  HTTP_X_CUSTOM_HEADER=1                                          │
    └──────────────────────────────────────────────────────────────────┘

=============================================================================
ASSEMBLY PIPELINE
=============================================================================

    environ ──► classify ──┬──► vars     {"REQUEST_METHOD": "POST", ...}
                           └──► headers  {"user-agent": "curl/8.0", ...}

    vars["QUERY_STRING"] ──► parse_query_string ──► Query result

    content-length ──► read exactly N bytes ──► content-type?
                                                  │
                           multipart/form-data ◄──┼──► anything else
                                   │              │         │
                       parse_multipart_body       │     BodyBytes
                                   │
                             BodyMultipart

Every step that can fail produces an error *value* in its own field.
A bad Content-Length does not stop the query string from parsing, and a
failed body read still yields a complete CGIRequest.

=============================================================================
"""

import logging
import os
import re
import sys
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import BinaryIO, Dict, Iterator, Mapping, Optional, Tuple, Union

from ..config import CGIConfig
from .body import Body, BodyAbsent, BodyBytes, BodyError
from .errors import CGIEnvironmentError, CGIError, CGIInputError
from .headers import env_to_header_name, normalize_header_name
from .multipart import DroppedPartCallback, PartParser, parse_multipart_body, parse_part
from .query import Query, QueryAbsent, QueryParsed, parse_query_string
from .status_codes import HTTPStatus

logger = logging.getLogger("cgikit.request")

EnvironmentSource = Mapping[str, Union[str, bytes]]


def lossy_env_text(value: Union[str, bytes]) -> str:
    """
    Convert an environment value to clean UTF-8 text.

    os.environ smuggles undecodable bytes through as lone surrogates
    (PEP 383). Those are turned back into bytes and then replaced with
    U+FFFD, so nothing downstream sees a surrogate.
    """
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    try:
        raw = value.encode("utf-8", errors="surrogateescape")
    except UnicodeEncodeError:
        raw = value.encode("utf-8", errors="replace")
    return raw.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class CGIRequest:
    """
    Everything the CGI program knows about the request.

    =========================================================================
    LOOKUPS
    =========================================================================

        request.var("request_method")      → "POST"   (upper-cased first)
        request.header("X_Custom_Header")  → "1"      (kebab-cased first)
        request.query                      → QueryAbsent/QueryParsed/QueryError
        request.body                       → BodyAbsent/BodyBytes/
                                             BodyMultipart/BodyError

    =========================================================================
    """

    variables: Mapping[str, str] = field(default_factory=dict)
    header_map: Mapping[str, str] = field(default_factory=dict)
    query: Query = field(default_factory=QueryAbsent)
    body: Body = field(default_factory=BodyAbsent)
    # The Content-Length / Content-Type values the body was read with
    declared_length: Optional[str] = None
    declared_type: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))
        object.__setattr__(self, "header_map", MappingProxyType(dict(self.header_map)))

    @classmethod
    def from_environ(
        cls,
        environ: Optional[EnvironmentSource] = None,
        stdin: Optional[BinaryIO] = None,
        config: Optional[CGIConfig] = None,
    ) -> "CGIRequest":
        """Assemble a request; defaults to os.environ and sys.stdin."""
        return RequestAssembler(environ, stdin, config).assemble()

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    def var(self, name: str) -> Optional[str]:
        """Environment variable ``name`` (any case)."""
        return self.variables.get(name.upper())

    def vars(self) -> Iterator[Tuple[str, str]]:
        """All ``(VARIABLE, value)`` pairs that are not headers."""
        return iter(self.variables.items())

    def header(self, name: str) -> Optional[str]:
        """
        Request header ``name``.

        "Content-Type", "content_type" and "CONTENT-TYPE" all find the
        same header.
        """
        return self.header_map.get(normalize_header_name(name))

    def headers(self) -> Iterator[Tuple[str, str]]:
        """All ``(header-name, value)`` pairs exposed by the server."""
        return iter(self.header_map.items())

    # =========================================================================
    # CONVENIENCE PROPERTIES
    # =========================================================================

    @property
    def method(self) -> Optional[str]:
        return self.var("REQUEST_METHOD")

    @property
    def remote_addr(self) -> Optional[str]:
        return self.var("REMOTE_ADDR")

    @property
    def content_type(self) -> Optional[str]:
        """Content type without parameters, lower-cased."""
        if not self.declared_type:
            return None
        return self.declared_type.split(";")[0].strip().lower() or None

    @property
    def content_length(self) -> Optional[int]:
        """Declared body length, or None if absent or unparseable."""
        raw = self.declared_length
        if raw and RequestAssembler.CONTENT_LENGTH_PATTERN.fullmatch(raw):
            return int(raw)
        return None

    @property
    def form(self) -> Dict[str, str]:
        """Decoded query parameters, or an empty dict if there are none."""
        if isinstance(self.query, QueryParsed):
            return dict(self.query.params)
        return {}


class RequestAssembler:
    """
    Builds a CGIRequest from an environment mapping and an input stream.

    The environment is an explicit argument rather than a global so tests
    can pass a plain dict:

        env = {"REQUEST_METHOD": "GET", "QUERY_STRING": "a=1"}
        request = RequestAssembler(env).assemble()

    stdin is only touched when a Content-Length is present.
    """

    MULTIPART_CONTENT_TYPE = re.compile(r"multipart/form-data", re.IGNORECASE)
    MULTIPART_BOUNDARY = re.compile(r"boundary=", re.IGNORECASE)
    CONTENT_LENGTH_PATTERN = re.compile(r"[0-9]+")

    def __init__(
        self,
        environ: Optional[EnvironmentSource] = None,
        stdin: Optional[BinaryIO] = None,
        config: Optional[CGIConfig] = None,
        part_parser: PartParser = parse_part,
        on_dropped: Optional[DroppedPartCallback] = None,
    ):
        """
        Args:
            environ: Name → value mapping. Defaults to os.environ.
            stdin: Binary stream holding the body. Defaults to
                sys.stdin.buffer, looked up only when needed.
            config: Assembly settings. Defaults to CGIConfig().
            part_parser: Chunk parser handed to parse_multipart_body.
            on_dropped: Callback for multipart chunks the parser rejected.
        """
        self.environ = os.environ if environ is None else environ
        self.stdin = stdin
        self.config = config or CGIConfig()
        self.part_parser = part_parser
        self.on_dropped = on_dropped

    def assemble(self) -> CGIRequest:
        """Classify the environment, parse the query string, read the body."""
        variables, headers = self.classify()

        query = parse_query_string(variables.get("QUERY_STRING"))
        if isinstance(query, QueryParsed):
            logger.debug("query string: %d parameter(s)", len(query))

        length_text = self._lookup(headers, variables, "content-length", "CONTENT_LENGTH")
        content_type = self._lookup(headers, variables, "content-type", "CONTENT_TYPE")
        body = self.read_body(length_text, content_type)
        logger.debug("body result: %s", type(body).__name__)

        return CGIRequest(
            variables=variables,
            header_map=headers,
            query=query,
            body=body,
            declared_length=length_text,
            declared_type=content_type,
        )

    # =========================================================================
    # ENVIRONMENT CLASSIFICATION
    # =========================================================================

    def classify(self) -> Tuple[Dict[str, str], Dict[str, str]]:
        """
        Split the environment into plain variables and exposed headers.

            HTTP_X_CUSTOM_HEADER=1   →  headers["x-custom-header"] = "1"
            request_method=GET       →  vars["REQUEST_METHOD"] = "GET"
        """
        variables: Dict[str, str] = {}
        headers: Dict[str, str] = {}
        prefix = self.config.header_prefix

        for raw_key, raw_value in self.environ.items():
            key = lossy_env_text(raw_key)
            value = lossy_env_text(raw_value)
            header_name = env_to_header_name(key, prefix)
            if header_name is not None:
                logger.debug("  %r -> header %r", key, header_name)
                headers[header_name] = value
            else:
                variables[key.upper()] = value

        logger.debug("%d variable(s), %d header(s)", len(variables), len(headers))
        return variables, headers

    # =========================================================================
    # BODY
    # =========================================================================

    def _lookup(
        self,
        headers: Mapping[str, str],
        variables: Mapping[str, str],
        header_name: str,
        meta_variable: str,
    ) -> Optional[str]:
        value = headers.get(header_name)
        if value is None and self.config.use_meta_variables:
            # RFC 3875: an empty meta-variable means "no body"
            value = variables.get(meta_variable) or None
        return value

    def read_body(self, length_text: Optional[str], content_type: Optional[str]) -> Body:
        """Decide whether there is a body, read it, and classify it."""
        if length_text is None:
            return BodyAbsent()

        if not self.CONTENT_LENGTH_PATTERN.fullmatch(length_text):
            return BodyError(CGIEnvironmentError(
                "Invalid Content-length header value.",
                f'Error parsing Content-length header value "{length_text}": '
                f"not a non-negative integer",
            ))
        length = int(length_text)

        limit = self.config.max_content_length
        if limit is not None and length > limit:
            return BodyError(CGIInputError(
                "Request body too large.",
                f"Content-length {length} exceeds the limit of {limit} bytes",
                status_code=HTTPStatus.PAYLOAD_TOO_LARGE,
            ))

        try:
            data = self.read_exact(length)
        except CGIError as e:
            logger.debug("body read failed: %s", e.details)
            return BodyError(e)

        return self.dispatch(data, content_type)

    def read_exact(self, length: int) -> bytes:
        """
        Read exactly ``length`` bytes from stdin.

        A pipe may hand over the body in pieces, so reads are repeated
        until the full length has arrived or the stream ends.

        Raises:
            CGIInputError: (500) on EOF before ``length`` bytes or OSError.
        """
        if length == 0:
            return b""

        stream = self.stdin if self.stdin is not None else sys.stdin.buffer
        pieces = []
        remaining = length
        try:
            while remaining > 0:
                piece = stream.read(remaining)
                if not piece:
                    raise CGIInputError(
                        "Unable to read request body.",
                        f"Error reading request body: expected {length} bytes, "
                        f"got {length - remaining}",
                        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
                    )
                pieces.append(piece)
                remaining -= len(piece)
        except OSError as e:
            raise CGIInputError(
                "Unable to read request body.",
                f"Error reading request body: {e}",
                status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            )

        return b"".join(pieces)

    def dispatch(self, data: bytes, content_type: Optional[str]) -> Body:
        """Parse ``data`` as multipart if the content type says so."""
        if content_type is None:
            return BodyBytes(data)

        marker = self.MULTIPART_CONTENT_TYPE.search(content_type)
        if marker is None:
            return BodyBytes(data)

        boundary = self.extract_boundary(content_type, marker.end())
        if not boundary:
            return BodyError(CGIEnvironmentError(
                "Content-type: multipart/form-data lacks valid boundary specification.",
                f"Can't find boundary in Content-type header: {content_type}",
            ))

        logger.debug("multipart body, boundary %r, %d bytes", boundary, len(data))
        return parse_multipart_body(data, boundary, self.part_parser, self.on_dropped)

    @classmethod
    def extract_boundary(cls, content_type: str, start: int = 0) -> Optional[str]:
        """
        Pull the boundary token out of a Content-Type value.

            multipart/form-data; boundary=XYZ            → "XYZ"
            multipart/form-data; boundary="a b"; x=y     → "a b"
            multipart/form-data                          → None
        """
        match = cls.MULTIPART_BOUNDARY.search(content_type, start)
        if match is None:
            return None
        value = content_type[match.end():].split(";", 1)[0].strip()
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        return value or None
