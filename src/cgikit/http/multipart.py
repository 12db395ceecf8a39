"""
=============================================================================
MULTIPART/FORM-DATA PARSER
=============================================================================

Splits a multipart/form-data body into parts (RFC 7578), each with its
own header block and raw payload.

=============================================================================
BODY ANATOMY
=============================================================================

Content-Type: multipart/form-data; boundary=XYZ

    ┌─────────────────────────────────────────────────────────────────────┐
    │ --XYZ\r\n                                  ← first delimiter        │
    │ ┌─ chunk 0 ───────────────────────────────────────────────────────┐ │
    │ │ Content-Disposition: form-data; name="a"\r\n   ← part headers   │ │
    │ │ \r\n                                           ← blank line     │ │
    │ │ hello                                          ← part body      │ │
    │ └─────────────────────────────────────────────────────────────────┘ │
    │ \r\n--XYZ\r\n                              ← CRLF + delimiter + CRLF│
    │ ┌─ chunk 1 ───────────────────────────────────────────────────────┐ │
    │ │ Content-Disposition: form-data; name="f"; filename="x.bin"\r\n  │ │
    │ │ Content-Type: application/octet-stream\r\n                      │ │
    │ │ \r\n                                                            │ │
    │ │ <raw bytes, may themselves contain \r\n>                        │ │
    │ └─────────────────────────────────────────────────────────────────┘ │
    │ \r\n--XYZ--\r\n                            ← closing delimiter      │
    └─────────────────────────────────────────────────────────────────────┘

The boundary token in the header appears in the body with "--" in front.
The CRLF *before* each later delimiter belongs to the delimiter, not to
the previous part's payload.

=============================================================================
TWO STAGES
=============================================================================

    body bytes ──split_multipart()──► [chunk, chunk, ...]
                                          │
                          parse_part() ◄──┘ (one call per chunk)
                                          │
                                          ▼
                              BodyMultipart(parts, dropped)

=============================================================================
EDGE-CASE POLICY
=============================================================================

    Situation                                      Result
    ─────────                                      ──────
    delimiter never appears                        CGIInputError (400)
    first delimiter not followed by CRLF           zero parts, no error
    CRLF inside a payload, not before delimiter    part of the payload
    delimiter followed by "--" (or anything but    normal end of body
      CRLF)
    chunk whose part parser raises                 dropped, counted

The "not followed by CRLF" case is deliberately an empty success and not
an error; tests guard it.

=============================================================================
"""

import logging
from typing import Callable, List, Optional

from .body import BodyError, BodyMultipart, MultipartPart
from .errors import CGIError, CGIInputError
from .headers import parse_header_line
from .scanner import find, starts_with_at

logger = logging.getLogger("cgikit.multipart")

HTTP_NEWLINE = b"\r\n"
DELIMITER_PREFIX = b"--"

PartParser = Callable[[bytes], MultipartPart]
DroppedPartCallback = Callable[[int, bytes, CGIError], None]


def split_multipart(body: bytes, boundary: str) -> List[bytes]:
    """
    Locate the boundary-delimited chunks of a multipart body.

    Args:
        body: The full raw request body.
        boundary: The ``boundary=`` value from Content-Type, without "--".

    Returns:
        The chunks in body order. Empty if the first delimiter is not
        followed by CRLF.

    Raises:
        CGIInputError: If the delimiter does not occur in the body at all.
    """
    delimiter = DELIMITER_PREFIX + boundary.encode("utf-8")
    chunks: List[bytes] = []

    first = find(body, delimiter)
    if first is None:
        raise CGIInputError(
            "Not a valid multipart/form-data body.",
            "multipart body missing boundary string",
        )

    position = first + len(delimiter)
    if not starts_with_at(body, HTTP_NEWLINE, position):
        logger.debug("first delimiter at %d not followed by CRLF; no parts", first)
        return chunks
    position += len(HTTP_NEWLINE)
    logger.debug("first delimiter at %d, parts start at %d", first, position)

    # Searching for CRLF+delimiter as one needle skips every CRLF that is
    # not followed by the delimiter, in a single forward pass.
    separator = HTTP_NEWLINE + delimiter
    while True:
        end = find(body, separator, position)
        if end is None:
            break
        chunks.append(body[position:end])

        position = end + len(separator)
        if not starts_with_at(body, HTTP_NEWLINE, position):
            # Closing delimiter ("--XYZ--") or trailing garbage
            break
        position += len(HTTP_NEWLINE)

    logger.debug("found %d multipart chunks", len(chunks))
    return chunks


def parse_part(chunk: bytes) -> MultipartPart:
    """
    Turn one chunk into a MultipartPart.

    Lines are read up to each CRLF and offered to parse_header_line. The
    first line that is not a header (normally the blank line ending the
    header block) ends the headers; the payload starts right after that
    line's CRLF. A chunk with no CRLF at all is all payload.

    Never raises.
    """
    headers = {}
    position = 0

    while True:
        line_end = find(chunk, HTTP_NEWLINE, position)
        if line_end is None:
            break
        pair = parse_header_line(chunk[position:line_end])
        position = line_end + len(HTTP_NEWLINE)
        if pair is None:
            break
        name, value = pair
        headers[name] = value

    return MultipartPart(headers=headers, body=bytes(chunk[position:]))


def parse_multipart_body(
    body: bytes,
    boundary: str,
    part_parser: PartParser = parse_part,
    on_dropped: Optional[DroppedPartCallback] = None,
):
    """
    Parse a whole multipart body into a Body result.

    Args:
        body: The raw request body.
        boundary: Boundary token without the leading "--".
        part_parser: Chunk → MultipartPart function. The default never
            fails; a custom one may raise CGIError to reject a chunk.
        on_dropped: Called as ``on_dropped(index, chunk, error)`` for each
            rejected chunk.

    Returns:
        BodyMultipart, or BodyError if the boundary is missing entirely.
    """
    try:
        chunks = split_multipart(body, boundary)
    except CGIError as e:
        logger.debug("multipart split failed: %s", e.details)
        return BodyError(e)

    parts: List[MultipartPart] = []
    dropped = 0
    for index, chunk in enumerate(chunks):
        try:
            parts.append(part_parser(chunk))
        except CGIError as e:
            dropped += 1
            logger.warning("dropping multipart chunk %d: %s", index, e.details)
            if on_dropped is not None:
                on_dropped(index, chunk, e)

    return BodyMultipart(parts=tuple(parts), dropped=dropped)
