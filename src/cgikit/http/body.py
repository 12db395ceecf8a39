"""
Request body result types.

    No Content-Length            ──►  BodyAbsent()
    Content-Length, other type   ──►  BodyBytes(data)
    multipart/form-data          ──►  BodyMultipart(parts, dropped)
    anything went wrong          ──►  BodyError(error)

The body kind is decided by the Content-Length and Content-Type headers,
never by the request method.
"""

from dataclasses import dataclass, field
from email.message import Message
from email.utils import collapse_rfc2231_value
from typing import Dict, Optional, Tuple, Union

from .errors import CGIError


@dataclass(frozen=True)
class MultipartPart:
    """
    One part of a multipart/form-data body.

    Header names are lower-cased and trimmed; values have their leading
    whitespace removed and everything else kept. ``body`` holds the raw
    payload bytes with no decoding applied.
    """

    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def _disposition_param(self, param: str) -> Optional[str]:
        disposition = self.headers.get("content-disposition")
        if disposition is None:
            return None
        message = Message()
        message["content-disposition"] = disposition
        value = message.get_param(param, header="content-disposition")
        if value is None:
            return None
        return collapse_rfc2231_value(value)

    @property
    def name(self) -> Optional[str]:
        """Form field name from ``Content-Disposition: form-data; name=...``."""
        return self._disposition_param("name")

    @property
    def filename(self) -> Optional[str]:
        """Uploaded file name, if this part is a file."""
        filename = self._disposition_param("filename")
        # Old IE sends the full client-side path
        if filename and (filename[1:3] == ":\\" or filename[:2] == "\\\\"):
            filename = filename.split("\\")[-1]
        return filename

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("content-type")

    def text(self, encoding: str = "utf-8", errors: str = "strict") -> str:
        """Payload decoded as text."""
        return self.body.decode(encoding, errors)


@dataclass(frozen=True)
class BodyAbsent:
    """The request carried no Content-Length, so no body was read."""


@dataclass(frozen=True)
class BodyBytes:
    """A body that is not multipart, kept unparsed."""

    data: bytes = b""

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class BodyMultipart:
    """
    A parsed multipart/form-data body.

    ``dropped`` counts chunks whose part parser failed; those chunks are
    left out of ``parts``.
    """

    parts: Tuple[MultipartPart, ...] = ()
    dropped: int = 0

    def __len__(self) -> int:
        return len(self.parts)

    def __iter__(self):
        return iter(self.parts)

    def get_field(self, name: str) -> Optional[MultipartPart]:
        """First part whose form field name is ``name``."""
        for part in self.parts:
            if part.name == name:
                return part
        return None


@dataclass(frozen=True)
class BodyError:
    """Reading or parsing the body failed."""

    error: CGIError


Body = Union[BodyAbsent, BodyBytes, BodyMultipart, BodyError]
