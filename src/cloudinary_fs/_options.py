"""Explicit option records for uploads and ranged downloads."""

from __future__ import annotations

import dataclasses
from typing import Union


@dataclasses.dataclass(frozen=True)
class UploadOptions:
    """Upload modifiers.

    :param overwrite: Replace an existing asset with the same public id.
    :param invalidate: Invalidate CDN copies of the replaced asset.
    """

    overwrite: bool = False
    invalidate: bool = False

    @classmethod
    def for_update(cls) -> UploadOptions:
        """The modifiers used when rewriting an existing object."""
        return cls(overwrite=True, invalidate=True)


@dataclasses.dataclass(frozen=True)
class RangeOption:
    """An inclusive byte range, as in an HTTP ``Range`` header.

    ``end`` of ``-1`` reads to the end of the object. ``start`` of ``-1``
    requests the last ``end`` bytes. An ``end`` before ``start`` raises
    ``ValueError``.
    """

    start: int
    end: int = -1

    def __post_init__(self) -> None:
        if self.start >= 0 and 0 <= self.end < self.start:
            raise ValueError(f"Range end {self.end} precedes start {self.start}")

    def span(self, size: int) -> tuple[int, int]:
        """Return ``(offset, count)`` clamped to an object of ``size`` bytes."""
        if self.start < 0:
            offset = max(size - max(self.end, 0), 0)
            return offset, size - offset
        offset = min(self.start, size)
        if self.end < 0 or self.end >= size:
            return offset, size - offset
        return offset, max(self.end - offset + 1, 0)

    def header(self, size: int) -> str:
        offset, count = self.span(size)
        if offset + count >= size:
            return f"bytes={offset}-"
        return f"bytes={offset}-{offset + count - 1}"


@dataclasses.dataclass(frozen=True)
class SeekOption:
    """Start reading at ``offset`` and continue to the end of the object."""

    offset: int

    def span(self, size: int) -> tuple[int, int]:
        offset = min(max(self.offset, 0), size)
        return offset, size - offset

    def header(self, size: int) -> str:
        offset, _ = self.span(size)
        return f"bytes={offset}-"


OpenOption = Union[RangeOption, SeekOption]  # noqa: UP007
