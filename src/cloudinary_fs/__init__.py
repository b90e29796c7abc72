"""Hierarchical filesystem view over a Cloudinary-style flat asset store."""

from cloudinary_fs._config import BACKEND_NAME, OPTIONS, FilesystemConfig, OptionInfo
from cloudinary_fs._encoding import DEFAULT_ENCODING, CloudinaryCodec, EncodingFlag, PathEncoder
from cloudinary_fs._errors import (
    AlreadyExists,
    AmbiguousMatch,
    CantSetModTime,
    CloudinaryFSError,
    DirectoryNotFound,
    EmptyUploadRejected,
    InvalidPath,
    ListingFailed,
    NotFound,
    RangeVerificationFailed,
    RemoteLogicalError,
    RemoteTransportError,
    RootIsFile,
    UnsupportedHash,
)
from cloudinary_fs._filesystem import Filesystem, open_filesystem
from cloudinary_fs._models import DirEntry, Directory, Features, FileObject, HashType, RemoteAsset
from cloudinary_fs._options import RangeOption, SeekOption, UploadOptions
from cloudinary_fs._path import RemotePath
from cloudinary_fs._service import AssetService

__version__ = "0.1.0"

__all__ = [
    # Core
    "Filesystem",
    "open_filesystem",
    "AssetService",
    # Path & codec
    "RemotePath",
    "PathEncoder",
    "CloudinaryCodec",
    "EncodingFlag",
    "DEFAULT_ENCODING",
    # Models & options
    "RemoteAsset",
    "Directory",
    "FileObject",
    "DirEntry",
    "HashType",
    "Features",
    "UploadOptions",
    "RangeOption",
    "SeekOption",
    # Config
    "FilesystemConfig",
    "OptionInfo",
    "OPTIONS",
    "BACKEND_NAME",
    # Errors
    "CloudinaryFSError",
    "NotFound",
    "DirectoryNotFound",
    "AmbiguousMatch",
    "AlreadyExists",
    "InvalidPath",
    "EmptyUploadRejected",
    "UnsupportedHash",
    "CantSetModTime",
    "RangeVerificationFailed",
    "RemoteTransportError",
    "RemoteLogicalError",
    "ListingFailed",
    "RootIsFile",
    # Version
    "__version__",
]
