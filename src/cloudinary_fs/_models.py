"""Remote records, directory entries and object handles."""

from __future__ import annotations

import dataclasses
import enum
from datetime import datetime, timezone
from typing import TYPE_CHECKING, BinaryIO, Union

from cloudinary_fs._errors import CantSetModTime, UnsupportedHash

if TYPE_CHECKING:
    from cloudinary_fs._filesystem import Filesystem
    from cloudinary_fs._options import OpenOption
    from cloudinary_fs._types import Payload, ReadableContent


class HashType(enum.Enum):
    """Content hash kinds a caller may ask for."""

    NONE = "none"
    MD5 = "md5"
    SHA1 = "sha1"


@dataclasses.dataclass(frozen=True)
class Features:
    """Optional behaviours of the filesystem, as seen by a host."""

    case_insensitive: bool = False
    can_have_empty_directories: bool = True
    duplicate_files: bool = True


def parse_timestamp(value: object) -> datetime:
    """Parse a remote timestamp (ISO 8601 string or datetime) into an aware datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        return datetime.now(tz=timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclasses.dataclass(frozen=True)
class RemoteAsset:
    """Immutable snapshot of an asset record as returned by the remote store.

    :param asset_folder: Encoded folder attribute (``/``-separated).
    :param display_name: Encoded display name.
    :param size: Size in bytes (the remote's ``bytes`` field).
    :param created_at: Creation time.
    :param uploaded_at: Time of the last upload.
    :param public_id: Remote identifier.
    :param secure_url: HTTPS delivery URL.
    :param etag: MD5 of the content, if the remote reported one.
    :param resource_type: Resource classifier, echoed back on destroy.
    :param type: Delivery type classifier, echoed back on destroy.
    """

    asset_folder: str
    display_name: str
    size: int
    created_at: datetime
    uploaded_at: datetime
    public_id: str
    secure_url: str
    etag: str | None = None
    resource_type: str = "image"
    type: str = "upload"

    @classmethod
    def from_payload(cls, payload: Payload) -> RemoteAsset:
        """Build from a search, listing or upload response entry."""
        created_at = parse_timestamp(payload.get("created_at"))
        uploaded = payload.get("uploaded_at")
        etag = payload.get("etag")
        return cls(
            asset_folder=str(payload.get("asset_folder") or ""),
            display_name=str(payload.get("display_name") or ""),
            size=int(payload.get("bytes") or 0),  # type: ignore[call-overload]
            created_at=created_at,
            uploaded_at=parse_timestamp(uploaded) if uploaded else created_at,
            public_id=str(payload["public_id"]),
            secure_url=str(payload.get("secure_url") or ""),
            etag=str(etag) if etag else None,
            resource_type=str(payload.get("resource_type") or "image"),
            type=str(payload.get("type") or "upload"),
        )


@dataclasses.dataclass(frozen=True)
class Directory:
    """A directory entry. The remote does not track folder times, so ``mod_time``
    is the time the listing saw it.
    """

    remote: str
    mod_time: datetime

    @property
    def name(self) -> str:
        return self.remote.rsplit("/", 1)[-1]

    def __str__(self) -> str:
        return self.remote


@dataclasses.dataclass(eq=False)
class FileObject:
    """Handle on one remote asset, addressed by its hierarchical path.

    Only resolve, list and put create handles; only :meth:`update` mutates one.

    :param fs: Owning filesystem.
    :param remote: Path relative to the filesystem root.
    :param size: Size in bytes.
    :param mod_time: Modification time as far as the remote can tell.
    :param url: Content delivery URL.
    :param md5: Content MD5, empty when unknown.
    """

    fs: Filesystem = dataclasses.field(repr=False)
    remote: str
    size: int
    mod_time: datetime
    url: str
    md5: str = ""

    @property
    def name(self) -> str:
        return self.remote.rsplit("/", 1)[-1]

    def __str__(self) -> str:
        return self.remote

    def hash(self, kind: HashType) -> str:
        """Return the content hash of the requested kind.

        :raises UnsupportedHash: For anything but :attr:`HashType.MD5`.
        """
        if kind is not HashType.MD5:
            raise UnsupportedHash(f"Hash type {kind.value!r} is not supported", path=self.remote)
        return self.md5

    def set_mod_time(self, mod_time: datetime) -> None:
        """Always fails; the remote has no settable modification time.

        :raises CantSetModTime: Always.
        """
        raise CantSetModTime("Can't set modification time", path=self.remote)

    def open(self, *options: OpenOption, deadline: float | None = None) -> BinaryIO:
        """Open the content for reading, optionally a sub-range of it."""
        return self.fs.open(self, *options, deadline=deadline)

    def update(self, content: ReadableContent, size: int | None = None) -> None:
        """Replace the content, keeping the path.

        The remote only reports creation times, so ``mod_time`` becomes now.
        """
        updated = self.fs.update(self, content, size)
        self.size = updated.size
        self.mod_time = datetime.now(tz=timezone.utc)
        self.url = updated.url
        self.md5 = updated.md5

    def remove(self) -> None:
        """Delete the remote asset behind this handle."""
        self.fs.remove(self.remote)


DirEntry = Union[Directory, FileObject]  # noqa: UP007
