"""Immutable, validated hierarchical path value object."""

from __future__ import annotations

from typing import Final

from cloudinary_fs._errors import InvalidPath


class RemotePath:
    """An immutable, normalized path within the hierarchical view of the store.

    The empty path is the root. Backslashes are ordinary name characters here;
    the path codec takes care of them on the way to the remote.

    :param raw: The raw path string to normalize and validate.
    :raises InvalidPath: If the path is malformed or unsafe.
    """

    __slots__ = ("_path",)
    _path: Final[str]  # type: ignore[misc]

    def __init__(self, raw: str = "") -> None:
        normalized = self._normalize(raw)
        object.__setattr__(self, "_path", normalized)

    @staticmethod
    def _normalize(raw: str) -> str:
        if "\0" in raw:
            raise InvalidPath("Path contains null byte", path=raw)
        parts: list[str] = []
        for segment in raw.split("/"):
            if segment == "" or segment == ".":
                continue
            if segment == "..":
                raise InvalidPath("Path contains '..' segment", path=raw)
            parts.append(segment)
        return "/".join(parts)

    @property
    def is_root(self) -> bool:
        """``True`` for the empty path."""
        return self._path == ""

    @property
    def name(self) -> str:
        """Final component of the path (empty for the root)."""
        return self._path.rsplit("/", 1)[-1]

    @property
    def parent(self) -> RemotePath:
        """Parent path. The root is its own parent.

        Example: ``RemotePath("a/b").parent`` is ``RemotePath("a")`` and
        ``RemotePath("a").parent`` is the root.
        """
        if "/" not in self._path:
            return _ROOT
        p = object.__new__(RemotePath)
        object.__setattr__(p, "_path", self._path.rsplit("/", 1)[0])
        return p

    @property
    def parts(self) -> tuple[str, ...]:
        """Tuple of path components (empty for the root)."""
        if not self._path:
            return ()
        return tuple(self._path.split("/"))

    def join(self, *others: str) -> RemotePath:
        """Append one or more relative paths."""
        return RemotePath("/".join([self._path, *others]))

    def __truediv__(self, other: str) -> RemotePath:
        return self.join(other)

    def __str__(self) -> str:
        return self._path

    def __repr__(self) -> str:
        return f"RemotePath({self._path!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, RemotePath):
            return self._path == other._path
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._path)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"RemotePath is immutable: cannot set '{name}'")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"RemotePath is immutable: cannot delete '{name}'")


_ROOT: Final = RemotePath("")
