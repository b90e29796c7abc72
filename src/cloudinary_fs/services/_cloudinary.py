"""Cloudinary asset service using the cloudinary SDK."""

from __future__ import annotations

import io
import logging
import re
from typing import TYPE_CHECKING, Any, Callable

from cloudinary_fs._errors import CloudinaryFSError, RemoteTransportError
from cloudinary_fs._models import RemoteAsset
from cloudinary_fs._service import (
    AssetPage,
    AssetService,
    DestroyResult,
    FolderPage,
    RemoteFolder,
    ServiceResult,
    UploadResult,
)

if TYPE_CHECKING:
    from cloudinary_fs._service import UploadParams
    from cloudinary_fs._types import Payload, ReadableContent

log = logging.getLogger(__name__)

# The SDK formats API errors as "Error 404 - <remote message>".
_STATUS_PREFIX = re.compile(r"^Error \d{3} - ")
# Messages the SDK itself raises (as GeneralError) when the API can't be reached.
_TRANSPORT_PREFIXES = ("Socket error", "Server returned unexpected status code", "Unexpected error")


def _status_errors() -> tuple[type[Exception], ...]:
    """SDK exceptions raised for an HTTP status the API answered with."""
    import cloudinary.exceptions as exc

    return (exc.NotFound, exc.BadRequest, exc.NotAllowed, exc.AlreadyExists, exc.RateLimited, exc.AuthorizationRequired)


def _error_message(exc: Exception) -> str:
    return _STATUS_PREFIX.sub("", str(exc))


def _payload_error(result: Payload) -> str | None:
    error = result.get("error")
    if not error:
        return None
    if isinstance(error, dict):
        return str(error.get("message", error))
    return str(error)


class CloudinaryService(AssetService):
    """Remote asset service backed by the Cloudinary Admin, Search and Upload APIs.

    Credentials are passed with every call instead of through the SDK's global
    configuration, so several services with different clouds can coexist.

    :param cloud_name: Cloudinary environment (cloud) name.
    :param api_key: API key.
    :param api_secret: API secret.
    """

    def __init__(self, cloud_name: str, api_key: str, api_secret: str) -> None:
        if not cloud_name or not cloud_name.strip():
            raise ValueError("cloud_name must be a non-empty string")
        self._credentials = {"cloud_name": cloud_name, "api_key": api_key, "api_secret": api_secret}

    @property
    def name(self) -> str:
        return "cloudinary"

    def __repr__(self) -> str:
        return f"CloudinaryService(cloud_name={self._credentials['cloud_name']!r})"

    # region: error mapping

    def _classify_error(self, exc: Exception, path: str) -> CloudinaryFSError | None:
        """Return a transport error for connectivity failures, ``None`` for API errors.

        Only the SDK's own connectivity messages count; API error messages
        embed user paths and are never searched for keywords.
        """
        import cloudinary.exceptions

        if isinstance(exc, _status_errors()):
            return None
        if isinstance(exc, cloudinary.exceptions.GeneralError) and str(exc).startswith(_TRANSPORT_PREFIXES):
            return RemoteTransportError(str(exc), path=path, backend=self.name)
        return None

    def _call(self, path: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> tuple[Payload, str | None]:
        """Invoke an SDK function, turning API errors into an error message."""
        import cloudinary.exceptions

        try:
            result = func(*args, **kwargs, **self._credentials)
        except cloudinary.exceptions.Error as exc:
            transport = self._classify_error(exc, path)
            if transport is not None:
                raise transport from exc
            return {}, _error_message(exc)
        except OSError as exc:
            raise RemoteTransportError(str(exc), path=path, backend=self.name) from exc
        payload: Payload = dict(result)
        return payload, _payload_error(payload)

    # endregion

    # region: AssetService

    def search_by_folder_and_name(self, folder: str, name: str, max_results: int) -> AssetPage:
        from cloudinary.search import Search

        expression = f'asset_folder="{folder}" AND display_name="{name}"'

        def execute(**options: Any) -> Any:
            return Search().expression(expression).max_results(max_results).execute(**options)

        result, error = self._call(folder, execute)
        if error is not None:
            return AssetPage(error=error)
        return AssetPage(
            assets=tuple(RemoteAsset.from_payload(r) for r in result.get("resources", [])),  # type: ignore[attr-defined]
            next_cursor=str(result.get("next_cursor") or ""),
        )

    def list_sub_folders(self, folder: str, cursor: str, max_results: int) -> FolderPage:
        import cloudinary.api

        paging: dict[str, Any] = {"max_results": max_results}
        if cursor:
            paging["next_cursor"] = cursor
        if folder:
            result, error = self._call(folder, cloudinary.api.subfolders, folder, **paging)
        else:
            result, error = self._call(folder, cloudinary.api.root_folders, **paging)
        if error is not None:
            return FolderPage(error=error)
        return FolderPage(
            folders=tuple(
                RemoteFolder(name=str(f.get("name", "")), path=str(f.get("path", "")))
                for f in result.get("folders", [])  # type: ignore[attr-defined]
            ),
            next_cursor=str(result.get("next_cursor") or ""),
        )

    def list_assets_by_folder(self, folder: str, cursor: str, max_results: int) -> AssetPage:
        import cloudinary.api

        paging: dict[str, Any] = {"max_results": max_results}
        if cursor:
            paging["next_cursor"] = cursor
        result, error = self._call(folder, cloudinary.api.resources_by_asset_folder, folder, **paging)
        if error is not None:
            return AssetPage(error=error)
        return AssetPage(
            assets=tuple(RemoteAsset.from_payload(r) for r in result.get("resources", [])),  # type: ignore[attr-defined]
            next_cursor=str(result.get("next_cursor") or ""),
        )

    def create_folder(self, path: str) -> ServiceResult:
        import cloudinary.api

        _, error = self._call(path, cloudinary.api.create_folder, path)
        return ServiceResult(error=error)

    def delete_folder(self, path: str) -> ServiceResult:
        import cloudinary.api

        _, error = self._call(path, cloudinary.api.delete_folder, path)
        return ServiceResult(error=error)

    def upload(self, content: ReadableContent, params: UploadParams) -> UploadResult:
        import cloudinary.uploader

        options: dict[str, Any] = {
            "asset_folder": params.asset_folder,
            "display_name": params.display_name,
            "public_id": params.public_id,
            "resource_type": "auto",
        }
        if params.upload_preset:
            options["upload_preset"] = params.upload_preset
        if params.overwrite is not None:
            options["overwrite"] = params.overwrite
        if params.invalidate is not None:
            options["invalidate"] = params.invalidate
        stream = io.BytesIO(content) if isinstance(content, bytes) else content

        log.debug("Uploading public id %r to folder %r", params.public_id, params.asset_folder)
        result, error = self._call(params.public_id, cloudinary.uploader.upload, stream, **options)
        if error is not None:
            return UploadResult(error=error)
        return UploadResult(asset=RemoteAsset.from_payload(result), existing=bool(result.get("existing")))

    def destroy(self, public_id: str, resource_type: str, type: str) -> DestroyResult:  # noqa: A002
        import cloudinary.uploader

        result, error = self._call(
            public_id, cloudinary.uploader.destroy, public_id, resource_type=resource_type, type=type
        )
        if error is not None:
            return DestroyResult(error=error)
        return DestroyResult(result=str(result.get("result", "")))

    # endregion
