"""Shared test fixtures and marker registration."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable
from unittest.mock import MagicMock

import pytest

from cloudinary_fs._filesystem import Filesystem
from cloudinary_fs._models import RemoteAsset
from cloudinary_fs._service import AssetService
from cloudinary_fs.services._memory import MemoryAssetService

if TYPE_CHECKING:
    from collections.abc import Iterator

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def pytest_configure(config: object) -> None:
    """Register custom markers."""
    if isinstance(config, pytest.Config):
        config.addinivalue_line("markers", "integration: requires a real Cloudinary account")


@pytest.fixture
def make_asset() -> Callable[..., RemoteAsset]:
    """Factory for remote asset records."""

    def _make(folder: str, name: str, size: int = 10, public_id: str | None = None, etag: str = "abc") -> RemoteAsset:
        pid = public_id or (f"{folder}/{name}" if folder else name)
        return RemoteAsset(
            asset_folder=folder,
            display_name=name,
            size=size,
            created_at=NOW,
            uploaded_at=NOW,
            public_id=pid,
            secure_url=f"https://res.example.com/{pid}",
            etag=etag,
            resource_type="raw",
            type="upload",
        )

    return _make


@pytest.fixture
def sleeps() -> list[float]:
    """Collects the waits requested by retry loops instead of sleeping."""
    return []


@pytest.fixture
def fake_service() -> MagicMock:
    """A scripted AssetService; set side effects per test."""
    service = MagicMock(spec=AssetService)
    service.name = "fake"
    return service


@pytest.fixture
def service() -> MemoryAssetService:
    return MemoryAssetService()


@pytest.fixture
def fs(service: MemoryAssetService, sleeps: list[float]) -> Iterator[Filesystem]:
    """Filesystem over the in-memory service, with downloads served from memory."""
    with Filesystem(service, session=service.session(), sleep=sleeps.append) as filesystem:
        yield filesystem
