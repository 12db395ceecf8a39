"""
=============================================================================
QUERY STRING PARSING
=============================================================================

Turns the QUERY_STRING variable into a name → value mapping.

=============================================================================
RESULT VARIANTS
=============================================================================

    QUERY_STRING                 Result
    ────────────                 ──────
    (not set)                    QueryAbsent()
    ""                           QueryError(CGIInputError(...))
    "a=1&b=2&a=3"                QueryParsed({"a": "3", "b": "2"})
    "a=1&bogus"                  QueryError(CGIInputError(...))
    "q=abc%2"                    QueryError(CGIInputError(...))

Three outcomes, three classes. Callers check which one they got with
isinstance rather than testing for None:

    query = request.query
    if isinstance(query, QueryParsed):
        name = query.get("name")
    elif isinstance(query, QueryError):
        return error_response(query.error)

=============================================================================
STRICTNESS
=============================================================================

A single chunk without "=" or with a bad escape fails the *whole* query
string; there is no partial mapping. The raw value is still available
through request.var("QUERY_STRING").

An empty QUERY_STRING is one empty chunk, so it is an error too. Callers
that treat "" as "no parameters" check request.var("QUERY_STRING") first.

Duplicate names: the last occurrence wins.

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Union

from .errors import CGIError, CGIInputError
from .percent import percent_decode

logger = logging.getLogger("cgikit.query")


@dataclass(frozen=True)
class QueryAbsent:
    """No QUERY_STRING variable was set."""


@dataclass(frozen=True)
class QueryParsed:
    """The query string decoded cleanly into ``params``."""

    params: Dict[str, str] = field(default_factory=dict)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.params.get(name, default)

    def __getitem__(self, name: str) -> str:
        return self.params[name]

    def __contains__(self, name: object) -> bool:
        return name in self.params

    def __iter__(self) -> Iterator[str]:
        return iter(self.params)

    def __len__(self) -> int:
        return len(self.params)


@dataclass(frozen=True)
class QueryError:
    """The query string was malformed; ``error`` says why."""

    error: CGIError


Query = Union[QueryAbsent, QueryParsed, QueryError]


def _invalid(details: str) -> QueryError:
    return QueryError(CGIInputError("Invalid query string.", details))


def parse_query_string(raw: Optional[str]) -> Query:
    """
    Parse ``&``-separated ``name=value`` pairs.

    Args:
        raw: The QUERY_STRING value, or None if it was not set.

    Returns:
        QueryAbsent, QueryParsed or QueryError.
    """
    if raw is None:
        return QueryAbsent()

    params: Dict[str, str] = {}
    for chunk in raw.split("&"):
        coded_name, sep, coded_value = chunk.partition("=")
        if not sep:
            logger.debug("query chunk %r has no '='", chunk)
            return _invalid(f'Chunk "{chunk}" not a name=value pair.')

        try:
            name = percent_decode(coded_name)
        except CGIError as e:
            return _invalid(f'Error decoding name in chunk "{chunk}": {e.details}')

        try:
            value = percent_decode(coded_value)
        except CGIError as e:
            return _invalid(f'Error decoding value in chunk "{chunk}": {e.details}')

        params[name] = value

    return QueryParsed(params)
