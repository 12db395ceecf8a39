"""
Byte-level substring search.

Thin helpers over ``bytes.find`` that answer ``None`` instead of ``-1``
and never index past the end of the haystack. The multipart code is
written against these so every "not found" is an explicit branch.
"""

from typing import Optional, Union

Buffer = Union[bytes, bytearray]


def find(haystack: Buffer, needle: bytes, start: int = 0) -> Optional[int]:
    """
    Return the offset of the first ``needle`` at or after ``start``.

    An empty needle never matches (there is nothing sensible to find),
    and a ``start`` beyond the end of the haystack simply finds nothing.

        >>> find(b"a\\r\\nb", b"\\r\\n")
        1
        >>> find(b"abc", b"") is None
        True
    """
    if not needle or start > len(haystack):
        return None
    index = haystack.find(needle, start)
    return index if index >= 0 else None


def starts_with_at(haystack: Buffer, prefix: bytes, offset: int) -> bool:
    """True if ``prefix`` occurs in full at ``offset``."""
    end = offset + len(prefix)
    if offset < 0 or end > len(haystack):
        return False
    return bytes(haystack[offset:end]) == prefix
