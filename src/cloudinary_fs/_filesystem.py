"""Filesystem — the hierarchical, user-facing view of the asset store."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, BinaryIO

import requests

from cloudinary_fs._config import BACKEND_NAME
from cloudinary_fs._encoding import CloudinaryCodec, PathEncoder
from cloudinary_fs._errors import DirectoryNotFound, InvalidPath, NotFound, RemoteLogicalError, RootIsFile
from cloudinary_fs._lister import DirectoryLister
from cloudinary_fs._models import Features, FileObject, HashType
from cloudinary_fs._options import UploadOptions
from cloudinary_fs._path import RemotePath
from cloudinary_fs._resolver import AssetResolver
from cloudinary_fs._service import FOLDER_NOT_FOUND_PREFIX
from cloudinary_fs._transfer import Downloader, Remover, Uploader

if TYPE_CHECKING:
    from datetime import timedelta
    from types import TracebackType

    from cloudinary_fs._config import FilesystemConfig
    from cloudinary_fs._models import DirEntry
    from cloudinary_fs._options import OpenOption
    from cloudinary_fs._service import AssetService
    from cloudinary_fs._types import ReadableContent, Sleeper

log = logging.getLogger(__name__)

_FEATURES = Features(case_insensitive=False, can_have_empty_directories=True, duplicate_files=True)
_HASHES = frozenset({HashType.MD5})


class Filesystem:
    """A directory tree over a flat, folder-tagged asset store.

    All paths are relative to ``root``. The filesystem keeps no state between
    calls besides its configuration, so one instance may be shared by threads.

    :param service: The remote asset service.
    :param root: Path prefix for all operations (may be empty).
    :param codec: Path codec; defaults to the full encoding ruleset.
    :param session: HTTP session for content downloads.
    :param upload_preset: Upload preset applied to every upload.
    :param optimistic_search: Retry empty searches while a fresh upload is indexed.
    :param sleep: Blocking sleep used by the retry loops.
    """

    def __init__(
        self,
        service: AssetService,
        *,
        root: str = "",
        codec: CloudinaryCodec | None = None,
        session: requests.Session | None = None,
        upload_preset: str = "",
        optimistic_search: bool = False,
        sleep: Sleeper = time.sleep,
    ) -> None:
        self._service = service
        self._root = RemotePath(root)
        self._codec = codec or CloudinaryCodec()
        self._session = session or requests.Session()
        self._resolver = AssetResolver(
            service, self._codec, self._root, optimistic=optimistic_search, sleep=sleep
        )
        self._lister = DirectoryLister(service, self._codec, self._root)
        self._uploader = Uploader(service, self._codec, self._root, upload_preset=upload_preset)
        self._downloader = Downloader(self._session, sleep=sleep, backend=service.name)
        self._remover = Remover(service, self._resolver)

    def __repr__(self) -> str:
        return f"Filesystem(service={self._service.name!r}, root={str(self._root)!r})"

    def __str__(self) -> str:
        return f"Cloudinary root '{self._root}'"

    @property
    def name(self) -> str:
        return BACKEND_NAME

    @property
    def root(self) -> str:
        return str(self._root)

    @property
    def codec(self) -> CloudinaryCodec:
        return self._codec

    @property
    def features(self) -> Features:
        return _FEATURES

    @property
    def hashes(self) -> frozenset[HashType]:
        """Hash kinds objects can report."""
        return _HASHES

    @property
    def precision(self) -> timedelta | None:
        """Modification time precision; ``None`` as times cannot be set."""
        return None

    def close(self) -> None:
        """Close the HTTP session and the service."""
        self._session.close()
        self._service.close()

    def __enter__(self) -> Filesystem:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    # region: directories

    def list(self, directory: str = "") -> list[DirEntry]:
        """List the directories and files directly inside ``directory``.

        :raises DirectoryNotFound: If the folder does not exist.
        :raises ListingFailed: If the asset listing fails.
        """
        return self._lister.list(directory, self)

    def mkdir(self, directory: str = "") -> None:
        """Create a folder. Creating the store root is a no-op.

        :raises RemoteLogicalError: If the remote refuses.
        """
        folder = self._codec.full_path(self._root, RemotePath(directory))
        if not folder:
            return
        result = self._service.create_folder(folder)
        if result.error is not None:
            raise RemoteLogicalError(
                f"Failed to create folder {directory}: {result.error}", path=directory, backend=self._service.name
            )
        log.debug("Created folder %r", folder)

    def rmdir(self, directory: str) -> None:
        """Delete a folder.

        :raises DirectoryNotFound: If the folder does not exist.
        :raises InvalidPath: If ``directory`` is the store root.
        :raises RemoteLogicalError: If the remote refuses.
        """
        folder = self._codec.full_path(self._root, RemotePath(directory))
        if not folder:
            raise InvalidPath("Cannot delete the store root", path=directory, backend=self._service.name)
        result = self._service.delete_folder(folder)
        if result.error is not None:
            if result.error.startswith(FOLDER_NOT_FOUND_PREFIX):
                raise DirectoryNotFound(
                    f"Directory not found: {directory}", path=directory, backend=self._service.name
                )
            raise RemoteLogicalError(
                f"Failed to delete folder {directory}: {result.error}", path=directory, backend=self._service.name
            )
        log.debug("Deleted folder %r", folder)

    # endregion

    # region: objects

    def new_object(self, remote: str, *, deadline: float | None = None) -> FileObject:
        """Return a handle on the object at ``remote``.

        :raises NotFound: If no asset matches.
        :raises AmbiguousMatch: If several assets match.
        """
        asset = self._resolver.resolve(remote, deadline=deadline)
        return FileObject(
            fs=self,
            remote=str(RemotePath(remote)),
            size=asset.size,
            mod_time=asset.uploaded_at,
            url=asset.secure_url,
            md5=asset.etag or "",
        )

    def put(
        self,
        content: ReadableContent,
        remote: str,
        size: int | None = None,
        *,
        options: UploadOptions | None = None,
    ) -> FileObject:
        """Upload ``content`` as a new object at ``remote``.

        :param size: Declared size; taken from ``content`` when it is ``bytes``.
        :param options: Upload modifiers; plain create by default.
        :raises EmptyUploadRejected: If the content is empty.
        :raises AlreadyExists: If an object already exists and overwrite is off.
        """
        return self._uploader.put(content, remote, size, options or UploadOptions(), self)

    def update(self, obj: FileObject, content: ReadableContent, size: int | None = None) -> FileObject:
        """Overwrite the content behind ``obj`` and return a fresh handle.

        The returned handle's fields are what :meth:`FileObject.update` copies.
        """
        return self._uploader.put(content, obj.remote, size, UploadOptions.for_update(), self)

    def open(self, obj: FileObject, *options: OpenOption, deadline: float | None = None) -> BinaryIO:
        """Open the content of ``obj`` for reading."""
        return self._downloader.open(obj, *options, deadline=deadline)

    def remove(self, remote: str, *, deadline: float | None = None) -> None:
        """Delete the object at ``remote``.

        :raises NotFound: If the path does not resolve.
        """
        self._remover.remove(remote, deadline=deadline)

    # endregion


def open_filesystem(
    config: FilesystemConfig,
    *,
    service: AssetService | None = None,
    session: requests.Session | None = None,
    sleep: Sleeper = time.sleep,
) -> Filesystem:
    """Create a :class:`Filesystem` from a configuration.

    :param config: Validated immediately.
    :param service: Remote service; a ``CloudinaryService`` built from ``config`` by default.
    :param session: HTTP session for downloads.
    :param sleep: Blocking sleep used by the retry loops.
    :raises ValueError: If the configuration is incomplete.
    :raises RootIsFile: If ``config.root`` names an existing object. The error
        carries a filesystem rooted at its parent directory.
    """
    config.validate()
    if service is None:
        from cloudinary_fs.services._cloudinary import CloudinaryService

        service = CloudinaryService(
            cloud_name=config.cloud_name,
            api_key=config.api_key,
            api_secret=config.api_secret,
        )

    # The root probe and the returned filesystem share one session.
    shared = session if session is not None else requests.Session()

    def build(root: str) -> Filesystem:
        return Filesystem(
            service,
            root=root,
            codec=CloudinaryCodec(PathEncoder(config.encoding)),
            session=shared,
            upload_preset=config.upload_preset,
            optimistic_search=config.optimistic_search,
            sleep=sleep,
        )

    root = RemotePath(config.root)
    if root.is_root:
        return build("")

    parent = build(str(root.parent))
    try:
        parent.new_object(root.name)
    except NotFound:
        return build(str(root))
    raise RootIsFile(f"Root {str(root)!r} is a file", path=str(root), backend=service.name, filesystem=parent)
