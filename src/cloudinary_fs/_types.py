"""Type aliases used throughout cloudinary_fs."""

from __future__ import annotations

from typing import BinaryIO, Callable, Union

ReadableContent = Union[BinaryIO, bytes]  # noqa: UP007
Payload = dict[str, object]
Sleeper = Callable[[float], None]
