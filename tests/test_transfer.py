"""Tests for the upload, download and removal paths."""

from __future__ import annotations

import io
import time
from typing import Callable
from unittest.mock import MagicMock

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from cloudinary_fs._encoding import CloudinaryCodec
from cloudinary_fs._errors import (
    AlreadyExists,
    EmptyUploadRejected,
    NotFound,
    RangeVerificationFailed,
    RemoteLogicalError,
    RemoteTransportError,
)
from cloudinary_fs._models import FileObject, RemoteAsset
from cloudinary_fs._options import RangeOption, SeekOption, UploadOptions
from cloudinary_fs._path import RemotePath
from cloudinary_fs._service import DestroyResult, UploadParams, UploadResult
from cloudinary_fs._transfer import DOWNLOAD_ATTEMPTS, Downloader, Remover, Uploader, declared_size, measure_content

MakeAsset = Callable[..., RemoteAsset]


def _response(status: int = 200, body: bytes = b"", headers: dict[str, str] | None = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.headers = CaseInsensitiveDict(headers or {})
    response.raw = io.BytesIO(body)
    return response


def _ranged(body: bytes) -> requests.Response:
    return _response(206, body, {"accept-ranges": "bytes", "content-length": str(len(body))})


class _Pipe(io.RawIOBase):
    """A readable stream that can't seek, like a pipe or socket."""

    def __init__(self, data: bytes) -> None:
        super().__init__()
        self._data = io.BytesIO(data)

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: bytearray) -> int:  # type: ignore[override]
        return self._data.readinto(buffer)


def _obj(size: int = 10) -> FileObject:
    return FileObject(fs=MagicMock(), remote="a/f.txt", size=size, mod_time=MagicMock(), url="https://cdn/a/f.txt")


@pytest.fixture
def session() -> MagicMock:
    return MagicMock(spec=requests.Session)


@pytest.fixture
def downloader(session: MagicMock, sleeps: list[float]) -> Downloader:
    return Downloader(session, sleep=sleeps.append)


class TestDeclaredSize:
    def test_bytes(self) -> None:
        assert declared_size(b"abc", None) == 3

    def test_explicit_size_wins(self) -> None:
        assert declared_size(b"abc", 5) == 5

    def test_stream_unknown(self) -> None:
        assert declared_size(io.BytesIO(b"abc"), None) is None


class TestMeasureContent:
    def test_seekable_stream_measured_from_position(self) -> None:
        stream = io.BytesIO(b"abcdef")
        stream.seek(2)

        content, size = measure_content(stream, None)

        assert (content, size) == (stream, 4)
        assert stream.tell() == 2

    def test_seekable_stream_at_end_is_empty(self) -> None:
        stream = io.BytesIO(b"abc")
        stream.read()
        assert measure_content(stream, None)[1] == 0

    def test_pipe_is_replayed(self) -> None:
        content, size = measure_content(_Pipe(b"abc"), None)

        assert size is None
        assert content.read() == b"abc"  # type: ignore[union-attr]

    def test_empty_pipe(self) -> None:
        assert measure_content(_Pipe(b""), None)[1] == 0

    def test_explicit_size_skips_measuring(self) -> None:
        stream = io.BytesIO(b"abc")
        assert measure_content(stream, 7) == (stream, 7)


class TestUploader:
    @pytest.fixture
    def uploader(self, fake_service: MagicMock) -> Uploader:
        return Uploader(fake_service, CloudinaryCodec(), RemotePath(""), upload_preset="preset")

    def test_params(self, uploader: Uploader) -> None:
        params = uploader.params_for("a/b/f&g.txt", UploadOptions())
        assert params == UploadParams(
            asset_folder="a/b",
            display_name="f＆g.txt",
            public_id="a/b/f＆g.txt",
            upload_preset="preset",
            overwrite=False,
            invalidate=None,
        )

    def test_params_at_root(self, uploader: Uploader) -> None:
        params = uploader.params_for("f.txt", UploadOptions())
        assert (params.asset_folder, params.public_id) == ("", "f.txt")

    def test_params_for_update(self, uploader: Uploader) -> None:
        params = uploader.params_for("a/f.txt", UploadOptions.for_update())
        assert (params.overwrite, params.invalidate) == (True, True)

    def test_params_with_root(self, fake_service: MagicMock) -> None:
        uploader = Uploader(fake_service, CloudinaryCodec(), RemotePath("base"))
        assert uploader.params_for("f.txt", UploadOptions()).public_id == "base/f.txt"

    @pytest.mark.parametrize(
        ("content", "size"),
        [(b"", None), (io.BytesIO(b"x"), 0), (io.BytesIO(b""), None), (_Pipe(b""), None)],
        ids=["bytes", "declared", "stream", "pipe"],
    )
    def test_empty_rejected_before_remote_call(
        self, uploader: Uploader, fake_service: MagicMock, content: object, size: int | None
    ) -> None:
        with pytest.raises(EmptyUploadRejected):
            uploader.put(content, "a/f.txt", size, UploadOptions(), MagicMock())  # type: ignore[arg-type]
        fake_service.upload.assert_not_called()

    def test_put(self, uploader: Uploader, fake_service: MagicMock, make_asset: MakeAsset) -> None:
        fake_service.upload.return_value = UploadResult(asset=make_asset("a", "f.txt", size=3, etag="m"))
        fs = MagicMock()

        obj = uploader.put(b"abc", "a/f.txt", None, UploadOptions(), fs)

        assert (obj.remote, obj.size, obj.md5, obj.url) == ("a/f.txt", 3, "m", "https://res.example.com/a/f.txt")
        assert obj.fs is fs
        content, params = fake_service.upload.call_args.args
        assert content == b"abc"
        assert params.public_id == "a/f.txt"

    def test_pipe_uploaded_whole(self, uploader: Uploader, fake_service: MagicMock, make_asset: MakeAsset) -> None:
        fake_service.upload.return_value = UploadResult(asset=make_asset("a", "f.txt", size=3))

        uploader.put(_Pipe(b"abc"), "a/f.txt", None, UploadOptions(), MagicMock())

        content, _ = fake_service.upload.call_args.args
        assert content.read() == b"abc"

    def test_error_payload(self, uploader: Uploader, fake_service: MagicMock) -> None:
        fake_service.upload.return_value = UploadResult(error="Invalid preset")
        with pytest.raises(RemoteLogicalError, match="Invalid preset"):
            uploader.put(b"abc", "a/f.txt", None, UploadOptions(), MagicMock())

    def test_existing_without_overwrite(self, uploader: Uploader, fake_service: MagicMock, make_asset: MakeAsset) -> None:
        fake_service.upload.return_value = UploadResult(asset=make_asset("a", "f.txt"), existing=True)
        with pytest.raises(AlreadyExists):
            uploader.put(b"abc", "a/f.txt", None, UploadOptions(), MagicMock())

    def test_existing_with_overwrite(self, uploader: Uploader, fake_service: MagicMock, make_asset: MakeAsset) -> None:
        fake_service.upload.return_value = UploadResult(asset=make_asset("a", "f.txt"), existing=True)
        obj = uploader.put(b"abc", "a/f.txt", None, UploadOptions.for_update(), MagicMock())
        assert obj.remote == "a/f.txt"

    def test_missing_asset(self, uploader: Uploader, fake_service: MagicMock) -> None:
        fake_service.upload.return_value = UploadResult()
        with pytest.raises(RemoteLogicalError, match="no asset"):
            uploader.put(b"abc", "a/f.txt", None, UploadOptions(), MagicMock())


class TestDownloaderRanges:
    def test_wrong_lengths_are_retried(self, downloader: Downloader, session: MagicMock, sleeps: list[float]) -> None:
        session.get.side_effect = [_ranged(b"0123456789"), _ranged(b"01234"), _ranged(b"234")]

        stream = downloader.open(_obj(), RangeOption(2, 4))

        assert stream.read() == b"234"
        assert session.get.call_count == 3
        assert sleeps == [1, 2]
        assert session.get.call_args.kwargs["headers"] == {"Range": "bytes=2-4"}
        assert session.get.call_args.kwargs["stream"] is True

    def test_gives_up_after_seven_attempts(self, downloader: Downloader, session: MagicMock, sleeps: list[float]) -> None:
        session.get.side_effect = lambda *a, **kw: _ranged(b"0123456789")

        with pytest.raises(RangeVerificationFailed) as exc_info:
            downloader.open(_obj(), RangeOption(2, 4))

        assert session.get.call_count == DOWNLOAD_ATTEMPTS
        assert exc_info.value.attempts == DOWNLOAD_ATTEMPTS
        assert sleeps == [1, 2, 3, 4, 5, 6]

    def test_missing_headers_are_accepted(self, downloader: Downloader, session: MagicMock, sleeps: list[float]) -> None:
        session.get.return_value = _response(200, b"0123456789")

        assert downloader.open(_obj(), RangeOption(2, 4)).read() == b"0123456789"
        assert session.get.call_count == 1
        assert sleeps == []

    def test_no_range_is_not_verified(self, downloader: Downloader, session: MagicMock) -> None:
        session.get.return_value = _response(200, b"abc", {"accept-ranges": "bytes", "content-length": "3"})

        assert downloader.open(_obj(size=99)).read() == b"abc"
        assert session.get.call_args.kwargs["headers"] == {}

    def test_seek_header(self, downloader: Downloader, session: MagicMock) -> None:
        session.get.return_value = _ranged(b"789")

        assert downloader.open(_obj(), SeekOption(7)).read() == b"789"
        assert session.get.call_args.kwargs["headers"] == {"Range": "bytes=7-"}

    def test_passed_deadline_allows_one_attempt(self, downloader: Downloader, session: MagicMock) -> None:
        session.get.side_effect = lambda *a, **kw: _ranged(b"0123456789")

        with pytest.raises(RangeVerificationFailed) as exc_info:
            downloader.open(_obj(), RangeOption(2, 4), deadline=time.monotonic() - 1)

        assert session.get.call_count == 1
        assert exc_info.value.attempts == 1

    def test_deadline_inside_backoff_stops(
        self, downloader: Downloader, session: MagicMock, sleeps: list[float]
    ) -> None:
        session.get.side_effect = lambda *a, **kw: _ranged(b"0123456789")

        with pytest.raises(RangeVerificationFailed) as exc_info:
            downloader.open(_obj(), RangeOption(2, 4), deadline=time.monotonic() + 0.5)

        assert session.get.call_count == 1
        assert exc_info.value.attempts == 1
        assert sleeps == []


class TestDownloaderFailures:
    def test_connection_error_is_retried(self, downloader: Downloader, session: MagicMock, sleeps: list[float]) -> None:
        session.get.side_effect = [requests.ConnectionError("reset"), _response(200, b"ok")]

        assert downloader.open(_obj()).read() == b"ok"
        assert sleeps == [1]

    def test_server_errors_exhaust(self, downloader: Downloader, session: MagicMock) -> None:
        session.get.side_effect = lambda *a, **kw: _response(503)

        with pytest.raises(RemoteTransportError, match="HTTP 503") as exc_info:
            downloader.open(_obj())

        assert type(exc_info.value) is RemoteTransportError
        assert exc_info.value.path == "a/f.txt"
        assert session.get.call_count == DOWNLOAD_ATTEMPTS

    def test_not_found(self, downloader: Downloader, session: MagicMock) -> None:
        session.get.return_value = _response(404)

        with pytest.raises(NotFound):
            downloader.open(_obj())

        assert session.get.call_count == 1

    def test_client_error_not_retried(self, downloader: Downloader, session: MagicMock) -> None:
        session.get.return_value = _response(403)

        with pytest.raises(RemoteTransportError, match="HTTP 403"):
            downloader.open(_obj())

        assert session.get.call_count == 1

    def test_invalid_url_not_retried(self, downloader: Downloader, session: MagicMock) -> None:
        session.get.side_effect = requests.exceptions.InvalidURL("bad")

        with pytest.raises(RemoteTransportError):
            downloader.open(_obj())

        assert session.get.call_count == 1


class TestRemover:
    def test_destroys_resolved_asset(self, fake_service: MagicMock, make_asset: MakeAsset) -> None:
        resolver = MagicMock()
        resolver.resolve.return_value = make_asset("a", "f.txt", public_id="pid")
        fake_service.destroy.return_value = DestroyResult(result="ok")

        Remover(fake_service, resolver).remove("a/f.txt", deadline=5.0)

        resolver.resolve.assert_called_once_with("a/f.txt", deadline=5.0)
        fake_service.destroy.assert_called_once_with("pid", "raw", "upload")

    def test_unresolved_is_not_destroyed(self, fake_service: MagicMock) -> None:
        resolver = MagicMock()
        resolver.resolve.side_effect = NotFound("gone")

        with pytest.raises(NotFound):
            Remover(fake_service, resolver).remove("a/f.txt")

        fake_service.destroy.assert_not_called()

    @pytest.mark.parametrize("result", [DestroyResult(error="denied"), DestroyResult(result="not found")])
    def test_refused(self, fake_service: MagicMock, make_asset: MakeAsset, result: DestroyResult) -> None:
        resolver = MagicMock()
        resolver.resolve.return_value = make_asset("a", "f.txt")
        fake_service.destroy.return_value = result

        with pytest.raises(RemoteLogicalError):
            Remover(fake_service, resolver).remove("a/f.txt")
