"""Normalized error hierarchy for cloudinary_fs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from cloudinary_fs._filesystem import Filesystem


class CloudinaryFSError(Exception):
    """Base class for all cloudinary_fs errors.

    :param message: Human-readable error description.
    :param path: The path involved in the error, if any.
    :param backend: The backend name involved, if any.
    """

    def __init__(self, message: str = "", *, path: Optional[str] = None, backend: Optional[str] = None) -> None:
        self.path = path
        self.backend = backend
        super().__init__(message)

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.path is not None:
            parts.append(f"path={self.path!r}")
        if self.backend is not None:
            parts.append(f"backend={self.backend!r}")
        return " | ".join(parts) if len(parts) > 1 else parts[0]

    def __repr__(self) -> str:
        cls = type(self).__name__
        args = [repr(super().__str__())]
        if self.path is not None:
            args.append(f"path={self.path!r}")
        if self.backend is not None:
            args.append(f"backend={self.backend!r}")
        return f"{cls}({', '.join(args)})"


class NotFound(CloudinaryFSError):
    """Raised when an object does not resolve to any remote asset."""


class DirectoryNotFound(NotFound):
    """Raised when a folder-scoped operation targets a missing folder."""


class AmbiguousMatch(CloudinaryFSError):
    """Raised when more than one remote asset matches a single path."""


class AlreadyExists(CloudinaryFSError):
    """Raised when a plain upload collides with an existing asset."""


class InvalidPath(CloudinaryFSError):
    """Raised for malformed or unsafe paths."""


class EmptyUploadRejected(CloudinaryFSError):
    """Raised when asked to upload zero bytes."""


class UnsupportedHash(CloudinaryFSError):
    """Raised when a hash kind other than MD5 is requested."""


class CantSetModTime(CloudinaryFSError):
    """Raised on any attempt to change an object's modification time."""


class RangeVerificationFailed(CloudinaryFSError):
    """Raised when a ranged download keeps returning the wrong length.

    :param attempts: Number of download attempts made.
    """

    def __init__(
        self,
        message: str = "",
        *,
        path: Optional[str] = None,
        backend: Optional[str] = None,
        attempts: int = 0,
    ) -> None:
        self.attempts = attempts
        super().__init__(message, path=path, backend=backend)


class RemoteTransportError(CloudinaryFSError):
    """Raised when the remote service or CDN cannot be reached."""


class RemoteLogicalError(CloudinaryFSError):
    """Raised when a transport-successful response carries an error payload."""


class ListingFailed(RemoteLogicalError):
    """Raised when the asset sub-listing of a directory fails."""


class RootIsFile(CloudinaryFSError):
    """Raised by ``open_filesystem`` when the configured root is a file.

    :param filesystem: A filesystem rooted at the file's parent directory.
    """

    def __init__(
        self,
        message: str = "",
        *,
        path: Optional[str] = None,
        backend: Optional[str] = None,
        filesystem: Optional[Filesystem] = None,
    ) -> None:
        self.filesystem = filesystem
        super().__init__(message, path=path, backend=backend)
