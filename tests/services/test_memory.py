"""Tests for the in-memory asset service and its HTTP adapter."""

from __future__ import annotations

from typing import Callable

import pytest

from cloudinary_fs._models import RemoteAsset
from cloudinary_fs._service import FOLDER_NOT_FOUND_PREFIX, UploadParams
from cloudinary_fs.services import MemoryAssetService

MakeAsset = Callable[..., RemoteAsset]


def _params(folder: str, name: str, **kwargs: object) -> UploadParams:
    public_id = f"{folder}/{name}" if folder else name
    return UploadParams(asset_folder=folder, display_name=name, public_id=public_id, **kwargs)  # type: ignore[arg-type]


class TestFolders:
    def test_implied_by_assets(self, service: MemoryAssetService) -> None:
        service.upload(b"x", _params("a/b", "f"))

        assert [f.path for f in service.list_sub_folders("", "", 10).folders] == ["a"]
        assert [f.name for f in service.list_sub_folders("a", "", 10).folders] == ["b"]

    def test_unknown_folder(self, service: MemoryAssetService) -> None:
        page = service.list_sub_folders("nope", "", 10)
        assert page.error is not None
        assert page.error.startswith(FOLDER_NOT_FOUND_PREFIX)

    def test_pagination(self) -> None:
        service = MemoryAssetService(page_size=2)
        for name in "abcde":
            service.create_folder(name)

        first = service.list_sub_folders("", "", 500)
        second = service.list_sub_folders("", first.next_cursor, 500)
        third = service.list_sub_folders("", second.next_cursor, 500)

        assert [f.name for f in first.folders + second.folders + third.folders] == list("abcde")
        assert third.next_cursor == ""

    def test_create_adds_ancestors(self, service: MemoryAssetService) -> None:
        service.create_folder("a/b/c")
        assert [f.path for f in service.list_sub_folders("a/b", "", 10).folders] == ["a/b/c"]

    def test_delete(self, service: MemoryAssetService) -> None:
        service.create_folder("a/b")
        assert service.delete_folder("a").error is None
        assert service.list_sub_folders("", "", 10).folders == ()

    def test_delete_not_empty(self, service: MemoryAssetService) -> None:
        service.upload(b"x", _params("a", "f"))
        assert service.delete_folder("a").error == "Folder is not empty: a"

    def test_delete_missing(self, service: MemoryAssetService) -> None:
        error = service.delete_folder("nope").error
        assert error is not None
        assert error.startswith(FOLDER_NOT_FOUND_PREFIX)


class TestAssets:
    def test_upload_records_fields(self, service: MemoryAssetService) -> None:
        result = service.upload(b"abc", _params("a", "f"))

        assert result.asset is not None
        assert result.asset.size == 3
        assert result.asset.secure_url == "memory://a/f"
        assert result.asset.etag == "900150983cd24fb0d6963f7d28e17f72"
        assert not result.existing

    def test_upload_existing_without_overwrite(self, service: MemoryAssetService) -> None:
        service.upload(b"abc", _params("a", "f"))
        result = service.upload(b"zzz", _params("a", "f", overwrite=False))

        assert result.existing
        assert service.content("a/f") == b"abc"

    def test_overwrite_keeps_created_at(self, service: MemoryAssetService) -> None:
        first = service.upload(b"abc", _params("a", "f")).asset
        second = service.upload(b"zz", _params("a", "f", overwrite=True)).asset

        assert first is not None and second is not None
        assert second.created_at == first.created_at
        assert service.content("a/f") == b"zz"

    def test_search_exact_match(self, service: MemoryAssetService) -> None:
        service.upload(b"x", _params("a", "f"))
        service.upload(b"x", _params("a", "ff"))
        service.upload(b"x", _params("ab", "f"))

        assert [a.public_id for a in service.search_by_folder_and_name("a", "f", 10).assets] == ["a/f"]

    def test_search_cursor_on_extra_matches(self, service: MemoryAssetService, make_asset: MakeAsset) -> None:
        service.add_asset(make_asset("a", "f"))
        service.add_asset(make_asset("a", "f"))

        page = service.search_by_folder_and_name("a", "f", 1)

        assert len(page.assets) == 1
        assert page.next_cursor != ""

    def test_search_lag(self) -> None:
        service = MemoryAssetService(search_lag=1)
        service.upload(b"x", _params("a", "f"))

        assert service.search_by_folder_and_name("a", "f", 1).assets == ()
        assert len(service.search_by_folder_and_name("a", "f", 1).assets) == 1

    def test_destroy(self, service: MemoryAssetService) -> None:
        service.upload(b"x", _params("a", "f"))

        assert service.destroy("a/f", "image", "upload").result == "not found"
        assert service.destroy("a/f", "raw", "upload").result == "ok"
        with pytest.raises(KeyError):
            service.content("a/f")

    def test_calls_are_recorded(self, service: MemoryAssetService) -> None:
        service.create_folder("a")
        service.list_assets_by_folder("a", "", 10)
        assert service.calls == ["create_folder", "list_assets_by_folder"]


class TestMemoryAdapter:
    def test_full_body(self, service: MemoryAssetService) -> None:
        service.upload(b"0123456789", _params("", "f"))

        response = service.session().get("memory://f")

        assert response.status_code == 200
        assert response.content == b"0123456789"
        assert response.headers["Content-Length"] == "10"

    def test_range(self, service: MemoryAssetService) -> None:
        service.upload(b"0123456789", _params("", "f"))

        response = service.session().get("memory://f", headers={"Range": "bytes=3-5"})

        assert response.status_code == 206
        assert response.content == b"345"
        assert response.headers["accept-ranges"] == "bytes"

    def test_open_range(self, service: MemoryAssetService) -> None:
        service.upload(b"0123456789", _params("", "f"))
        assert service.session().get("memory://f", headers={"Range": "bytes=7-"}).content == b"789"

    def test_missing(self, service: MemoryAssetService) -> None:
        assert service.session().get("memory://nope").status_code == 404
