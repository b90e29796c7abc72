"""Merges the folder and asset listings of one directory into directory entries."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from cloudinary_fs._errors import DirectoryNotFound, ListingFailed, RemoteLogicalError
from cloudinary_fs._models import Directory, FileObject
from cloudinary_fs._path import RemotePath
from cloudinary_fs._service import FOLDER_NOT_FOUND_PREFIX

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from cloudinary_fs._encoding import CloudinaryCodec
    from cloudinary_fs._filesystem import Filesystem
    from cloudinary_fs._models import DirEntry
    from cloudinary_fs._service import AssetService

log = logging.getLogger(__name__)

PAGE_SIZE = 500


def child_path(directory: RemotePath, name: str) -> str:
    """Join a decoded entry name onto a directory without re-normalizing it."""
    if directory.is_root:
        return name
    return f"{directory}/{name}"


def iter_folder_names(service: AssetService, codec: CloudinaryCodec, prefix: str) -> Iterator[str]:
    """Yield the decoded name of each child folder of ``prefix``, page by page.

    Names may repeat if the remote reports deeper descendants.

    :raises DirectoryNotFound: If the remote does not know the folder.
    :raises RemoteLogicalError: On any other error payload.
    """
    strip = f"{prefix}/" if prefix else ""
    cursor = ""
    while True:
        page = service.list_sub_folders(prefix, cursor, PAGE_SIZE)
        if page.error is not None:
            if page.error.startswith(FOLDER_NOT_FOUND_PREFIX):
                raise DirectoryNotFound(f"Directory not found: {prefix}", path=prefix, backend=service.name)
            raise RemoteLogicalError(
                f"Failed to list sub-folders: {page.error}", path=prefix, backend=service.name
            )
        for folder in page.folders:
            relative = folder.path[len(strip) :] if folder.path.startswith(strip) else folder.path
            name = codec.to_standard_name(relative.split("/", 1)[0])
            if name:
                yield name
        if not page.next_cursor:
            return
        cursor = page.next_cursor


def iter_file_objects(
    service: AssetService,
    codec: CloudinaryCodec,
    prefix: str,
    directory: RemotePath,
    fs: Filesystem,
) -> Iterator[FileObject]:
    """Yield a handle for every asset whose folder attribute is ``prefix``.

    :raises ListingFailed: On an error payload.
    """
    cursor = ""
    while True:
        page = service.list_assets_by_folder(prefix, cursor, PAGE_SIZE)
        if page.error is not None:
            raise ListingFailed(f"Failed to list assets: {page.error}", path=prefix, backend=service.name)
        for asset in page.assets:
            yield FileObject(
                fs=fs,
                remote=child_path(directory, codec.to_standard_name(asset.display_name)),
                size=asset.size,
                mod_time=asset.created_at,
                url=asset.secure_url,
                md5=asset.etag or "",
            )
        if not page.next_cursor:
            return
        cursor = page.next_cursor


def merge_entries(
    directory: RemotePath,
    folder_names: Iterable[str],
    files: Iterable[FileObject],
    now: datetime,
) -> list[DirEntry]:
    """Combine both listings, keeping the first occurrence of each directory name."""
    entries: list[DirEntry] = []
    seen: set[str] = set()
    for name in folder_names:
        if name in seen:
            continue
        seen.add(name)
        entries.append(Directory(remote=child_path(directory, name), mod_time=now))
    entries.extend(files)
    return entries


class DirectoryLister:
    """Lists one directory of the hierarchical view.

    :param service: The remote asset service.
    :param codec: Path codec.
    :param root: Filesystem root the paths are relative to.
    """

    def __init__(self, service: AssetService, codec: CloudinaryCodec, root: RemotePath) -> None:
        self._service = service
        self._codec = codec
        self._root = root

    def list(self, directory: str, fs: Filesystem) -> list[DirEntry]:
        """Return every child directory and file of ``directory``.

        Both listings are drained before anything is returned.
        """
        path = RemotePath(directory)
        prefix = self._codec.full_path(self._root, path)
        folder_names = list(iter_folder_names(self._service, self._codec, prefix))
        files = list(iter_file_objects(self._service, self._codec, prefix, path, fs))
        entries = merge_entries(path, folder_names, files, datetime.now(tz=timezone.utc))
        log.debug("Listed %r: %d entries", str(path), len(entries))
        return entries
