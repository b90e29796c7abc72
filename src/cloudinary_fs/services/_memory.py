"""In-memory asset service used as a stand-in for the remote in tests and examples.

Mimics the remote's flat model: assets carry a folder attribute and a display
name, folders are either created explicitly or implied by asset folders, and
every listing is paginated with opaque cursors. Content is served to
``requests`` through :class:`MemoryAdapter` under the ``memory://`` scheme.
"""

from __future__ import annotations

import dataclasses
import hashlib
import io
import threading
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

from cloudinary_fs._models import RemoteAsset
from cloudinary_fs._service import (
    FOLDER_NOT_FOUND_PREFIX,
    AssetPage,
    AssetService,
    DestroyResult,
    FolderPage,
    RemoteFolder,
    ServiceResult,
    UploadResult,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cloudinary_fs._service import UploadParams
    from cloudinary_fs._types import ReadableContent

URL_SCHEME = "memory://"


@dataclasses.dataclass
class _Stored:
    asset: RemoteAsset
    content: bytes
    hidden_searches: int = 0


def _ancestors(folder: str) -> list[str]:
    """``"a/b/c"`` -> ``["a", "a/b", "a/b/c"]``."""
    if not folder:
        return []
    parts = folder.split("/")
    return ["/".join(parts[: i + 1]) for i in range(len(parts))]


def _paginate(items: Sequence[Any], cursor: str, max_results: int) -> tuple[tuple[Any, ...], str]:
    start = int(cursor) if cursor else 0
    end = start + max_results
    next_cursor = str(end) if end < len(items) else ""
    return tuple(items[start:end]), next_cursor


class MemoryAssetService(AssetService):
    """Thread-safe in-process stand-in for the remote asset store.

    :param page_size: Caps every page, regardless of the requested size.
    :param search_lag: Number of searches a fresh upload stays invisible to.
    """

    def __init__(self, *, page_size: int | None = None, search_lag: int = 0) -> None:
        self._page_size = page_size
        self._search_lag = search_lag
        self._lock = threading.Lock()
        self._assets: dict[str, _Stored] = {}
        self._folders: set[str] = set()
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return "memory"

    # region: helpers

    def _limit(self, max_results: int) -> int:
        if self._page_size is not None:
            return min(self._page_size, max_results)
        return max_results

    def _known_folders(self) -> set[str]:
        known = set(self._folders)
        for stored in self._assets.values():
            known.update(_ancestors(stored.asset.asset_folder))
        return known

    def content(self, public_id: str) -> bytes:
        """Return the stored bytes of an asset.

        :raises KeyError: If no such asset exists.
        """
        with self._lock:
            return self._assets[public_id].content

    def content_for_url(self, url: str) -> bytes | None:
        with self._lock:
            for stored in self._assets.values():
                if stored.asset.secure_url == url:
                    return stored.content
        return None

    def add_asset(self, asset: RemoteAsset, content: bytes = b"") -> None:
        """Insert a record directly, bypassing upload rules (e.g. to seed duplicates)."""
        with self._lock:
            key = asset.public_id
            while key in self._assets:
                key += "~"
            self._assets[key] = _Stored(asset=asset, content=content)

    def session(self) -> requests.Session:
        """A ``requests`` session that serves this service's content URLs."""
        session = requests.Session()
        session.mount(URL_SCHEME, MemoryAdapter(self))
        return session

    # endregion

    # region: AssetService

    def search_by_folder_and_name(self, folder: str, name: str, max_results: int) -> AssetPage:
        with self._lock:
            self.calls.append("search")
            matches: list[RemoteAsset] = []
            for stored in self._assets.values():
                if stored.asset.asset_folder != folder or stored.asset.display_name != name:
                    continue
                if stored.hidden_searches > 0:
                    stored.hidden_searches -= 1
                    continue
                matches.append(stored.asset)
        assets, next_cursor = _paginate(matches, "", self._limit(max_results))
        return AssetPage(assets=assets, next_cursor=next_cursor)

    def list_sub_folders(self, folder: str, cursor: str, max_results: int) -> FolderPage:
        with self._lock:
            self.calls.append("list_sub_folders")
            known = self._known_folders()
        if folder and folder not in known:
            return FolderPage(error=f"{FOLDER_NOT_FOUND_PREFIX} {folder}")
        prefix = f"{folder}/" if folder else ""
        children = sorted(
            path for path in known if path.startswith(prefix) and "/" not in path[len(prefix) :]
        )
        folders = [RemoteFolder(name=path.rsplit("/", 1)[-1], path=path) for path in children]
        page, next_cursor = _paginate(folders, cursor, self._limit(max_results))
        return FolderPage(folders=page, next_cursor=next_cursor)

    def list_assets_by_folder(self, folder: str, cursor: str, max_results: int) -> AssetPage:
        with self._lock:
            self.calls.append("list_assets_by_folder")
            matches = [stored.asset for stored in self._assets.values() if stored.asset.asset_folder == folder]
        page, next_cursor = _paginate(matches, cursor, self._limit(max_results))
        return AssetPage(assets=page, next_cursor=next_cursor)

    def create_folder(self, path: str) -> ServiceResult:
        with self._lock:
            self.calls.append("create_folder")
            self._folders.update(_ancestors(path))
        return ServiceResult()

    def delete_folder(self, path: str) -> ServiceResult:
        with self._lock:
            self.calls.append("delete_folder")
            if path not in self._known_folders():
                return ServiceResult(error=f"{FOLDER_NOT_FOUND_PREFIX} {path}")
            prefix = f"{path}/"
            for stored in self._assets.values():
                folder = stored.asset.asset_folder
                if folder == path or folder.startswith(prefix):
                    return ServiceResult(error=f"Folder is not empty: {path}")
            self._folders = {f for f in self._folders if f != path and not f.startswith(prefix)}
        return ServiceResult()

    def upload(self, content: ReadableContent, params: UploadParams) -> UploadResult:
        data = content if isinstance(content, bytes) else content.read()
        now = datetime.now(tz=timezone.utc)
        with self._lock:
            self.calls.append("upload")
            current = self._assets.get(params.public_id)
            if current is not None and params.overwrite is False:
                return UploadResult(asset=current.asset, existing=True)
            asset = RemoteAsset(
                asset_folder=params.asset_folder,
                display_name=params.display_name,
                size=len(data),
                created_at=current.asset.created_at if current is not None else now,
                uploaded_at=now,
                public_id=params.public_id,
                secure_url=f"{URL_SCHEME}{params.public_id}",
                etag=hashlib.md5(data).hexdigest(),  # noqa: S324
                resource_type="raw",
                type="upload",
            )
            self._assets[params.public_id] = _Stored(
                asset=asset, content=data, hidden_searches=0 if current is not None else self._search_lag
            )
        return UploadResult(asset=asset)

    def destroy(self, public_id: str, resource_type: str, type: str) -> DestroyResult:  # noqa: A002
        with self._lock:
            self.calls.append("destroy")
            stored = self._assets.get(public_id)
            if stored is None or (stored.asset.resource_type, stored.asset.type) != (resource_type, type):
                return DestroyResult(result="not found")
            del self._assets[public_id]
        return DestroyResult(result="ok")

    # endregion


class MemoryAdapter(BaseAdapter):
    """``requests`` transport adapter serving :class:`MemoryAssetService` content.

    Honors ``Range: bytes=a-b`` and ``bytes=a-`` and reports ``accept-ranges``
    and ``content-length`` like the real CDN.
    """

    def __init__(self, service: MemoryAssetService) -> None:
        super().__init__()
        self._service = service

    def send(self, request: requests.PreparedRequest, **kwargs: Any) -> requests.Response:
        response = requests.Response()
        response.request = request
        response.url = request.url or ""
        data = self._service.content_for_url(response.url)
        if data is None:
            response.status_code = 404
            response.raw = io.BytesIO(b"")
            return response

        status = 200
        range_header = request.headers.get("Range", "")
        if range_header.startswith("bytes="):
            first, _, last = range_header[len("bytes=") :].partition("-")
            start = int(first)
            end = int(last) if last else len(data) - 1
            data = data[start : end + 1]
            status = 206
        response.status_code = status
        response.headers = CaseInsensitiveDict({"accept-ranges": "bytes", "content-length": str(len(data))})
        response.raw = io.BytesIO(data)
        return response

    def close(self) -> None:
        pass
