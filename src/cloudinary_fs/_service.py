"""AssetService abstract base class — the remote store contract."""

from __future__ import annotations

import abc
import dataclasses
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from cloudinary_fs._models import RemoteAsset
    from cloudinary_fs._types import ReadableContent

FOLDER_NOT_FOUND_PREFIX = "Can't find folder with path"


@dataclasses.dataclass(frozen=True)
class RemoteFolder:
    """A folder record from a sub-folder listing.

    :param name: Final component (encoded).
    :param path: Full folder path (encoded).
    """

    name: str
    path: str


@dataclasses.dataclass(frozen=True)
class ServiceResult:
    """Outcome of a call with no payload besides a possible error message."""

    error: Optional[str] = None


@dataclasses.dataclass(frozen=True)
class AssetPage(ServiceResult):
    """One page of assets. An empty ``next_cursor`` means no further pages."""

    assets: tuple[RemoteAsset, ...] = ()
    next_cursor: str = ""


@dataclasses.dataclass(frozen=True)
class FolderPage(ServiceResult):
    """One page of sub-folders. An empty ``next_cursor`` means no further pages."""

    folders: tuple[RemoteFolder, ...] = ()
    next_cursor: str = ""


@dataclasses.dataclass(frozen=True)
class UploadParams:
    """Parameters of an upload.

    ``overwrite`` and ``invalidate`` of ``None`` leave the remote default alone.
    """

    asset_folder: str
    display_name: str
    public_id: str
    upload_preset: str = ""
    overwrite: Optional[bool] = None
    invalidate: Optional[bool] = None


@dataclasses.dataclass(frozen=True)
class UploadResult(ServiceResult):
    """Outcome of an upload.

    :param existing: The remote kept an existing asset instead of writing.
    """

    asset: Optional[RemoteAsset] = None
    existing: bool = False


@dataclasses.dataclass(frozen=True)
class DestroyResult(ServiceResult):
    """Outcome of a destroy call; ``result`` is ``"ok"`` on success."""

    result: str = ""


class AssetService(abc.ABC):
    """Abstract remote asset store.

    Implementations report API-level failures in the ``error`` field of the
    returned record and raise ``RemoteTransportError`` when the store cannot be
    reached. Native exceptions must never leak.
    """

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Identifier of the service implementation."""

    @abc.abstractmethod
    def search_by_folder_and_name(self, folder: str, name: str, max_results: int) -> AssetPage:
        """Find assets whose folder attribute and display name both match exactly."""

    @abc.abstractmethod
    def list_sub_folders(self, folder: str, cursor: str, max_results: int) -> FolderPage:
        """List the immediate sub-folders of ``folder`` (``""`` for the root)."""

    @abc.abstractmethod
    def list_assets_by_folder(self, folder: str, cursor: str, max_results: int) -> AssetPage:
        """List the assets whose folder attribute equals ``folder``."""

    @abc.abstractmethod
    def create_folder(self, path: str) -> ServiceResult:
        """Create a folder (and any missing ancestors)."""

    @abc.abstractmethod
    def delete_folder(self, path: str) -> ServiceResult:
        """Delete a folder.

        A missing folder is reported with an error starting with
        :data:`FOLDER_NOT_FOUND_PREFIX`.
        """

    @abc.abstractmethod
    def upload(self, content: ReadableContent, params: UploadParams) -> UploadResult:
        """Upload content as one asset."""

    @abc.abstractmethod
    def destroy(self, public_id: str, resource_type: str, type: str) -> DestroyResult:  # noqa: A002
        """Delete one asset by its identifying fields."""

    def close(self) -> None:  # noqa: B027
        """Release resources. Default is a no-op."""
