"""Transfer engine — uploads, verified ranged downloads and removal."""

from __future__ import annotations

import io
import logging
import time
from typing import TYPE_CHECKING, Any, BinaryIO

import requests
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from cloudinary_fs._errors import (
    AlreadyExists,
    EmptyUploadRejected,
    NotFound,
    RangeVerificationFailed,
    RemoteLogicalError,
    RemoteTransportError,
)
from cloudinary_fs._models import FileObject
from cloudinary_fs._options import UploadOptions
from cloudinary_fs._path import RemotePath
from cloudinary_fs._retry import stop_at_deadline
from cloudinary_fs._service import UploadParams

if TYPE_CHECKING:
    from cloudinary_fs._encoding import CloudinaryCodec
    from cloudinary_fs._filesystem import Filesystem
    from cloudinary_fs._options import OpenOption
    from cloudinary_fs._resolver import AssetResolver
    from cloudinary_fs._service import AssetService
    from cloudinary_fs._types import ReadableContent, Sleeper

log = logging.getLogger(__name__)

DOWNLOAD_ATTEMPTS = 7
DOWNLOAD_TIMEOUT = 60.0


class _TransientDownloadError(RemoteTransportError):
    """A download failure worth another attempt."""


def declared_size(content: ReadableContent, size: int | None) -> int | None:
    """Return the byte count of ``content`` if known without reading it."""
    if size is None and isinstance(content, bytes):
        return len(content)
    return size


class _PeekedStream(io.RawIOBase):
    """Replays bytes already read from ``rest`` before reading on."""

    def __init__(self, head: bytes, rest: BinaryIO) -> None:
        super().__init__()
        self._head = head
        self._rest = rest

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: Any) -> int:
        if self._head:
            n = min(len(buffer), len(self._head))
            buffer[:n] = self._head[:n]
            self._head = self._head[n:]
            return n
        data = self._rest.read(len(buffer))
        n = len(data)
        buffer[:n] = data
        return n


def measure_content(content: ReadableContent, size: int | None) -> tuple[ReadableContent, int | None]:
    """Find out whether ``content`` is empty, returning the stream to upload.

    Seekable streams are measured in place. Other streams are peeked by one
    byte and handed back wrapped so that nothing is lost.
    """
    known = declared_size(content, size)
    if known is not None:
        return content, known
    seekable = getattr(content, "seekable", None)
    if seekable is not None and seekable():
        position = content.tell()
        end = content.seek(0, io.SEEK_END)
        content.seek(position)
        return content, end - position
    head = content.read(1)
    if not head:
        return content, 0
    return _PeekedStream(head, content), None  # type: ignore[return-value]


class Uploader:
    """Uploads content to a deterministic public id derived from the path.

    :param service: The remote asset service.
    :param codec: Path codec.
    :param root: Filesystem root the paths are relative to.
    :param upload_preset: Upload preset applied to every upload.
    """

    def __init__(
        self,
        service: AssetService,
        codec: CloudinaryCodec,
        root: RemotePath,
        *,
        upload_preset: str = "",
    ) -> None:
        self._service = service
        self._codec = codec
        self._root = root
        self._upload_preset = upload_preset

    def params_for(self, remote: str, options: UploadOptions) -> UploadParams:
        """Build the upload parameters for ``remote``."""
        path = RemotePath(remote)
        folder = self._codec.remote_dir(self._root, path)
        display_name = self._codec.to_remote_name(path.name)
        return UploadParams(
            asset_folder=folder,
            display_name=display_name,
            public_id=f"{folder}/{display_name}" if folder else display_name,
            upload_preset=self._upload_preset,
            overwrite=options.overwrite,
            invalidate=True if options.invalidate else None,
        )

    def put(
        self,
        content: ReadableContent,
        remote: str,
        size: int | None,
        options: UploadOptions,
        fs: Filesystem,
    ) -> FileObject:
        """Upload ``content`` to ``remote`` and return a handle on the new asset.

        :raises EmptyUploadRejected: If the content is known to be empty.
        :raises AlreadyExists: If a non-overwriting upload hit an existing asset.
        :raises RemoteLogicalError: If the upload reports an error.
        """
        content, size = measure_content(content, size)
        if size == 0:
            raise EmptyUploadRejected("Can't upload empty files", path=remote, backend=self._service.name)
        params = self.params_for(remote, options)
        log.debug("Uploading %r as public id %r (overwrite=%s)", remote, params.public_id, options.overwrite)
        result = self._service.upload(content, params)
        if result.error is not None:
            raise RemoteLogicalError(
                f"Failed to upload {remote}: {result.error}", path=remote, backend=self._service.name
            )
        if result.existing and not options.overwrite:
            raise AlreadyExists(f"Object already exists: {remote}", path=remote, backend=self._service.name)
        asset = result.asset
        if asset is None:
            raise RemoteLogicalError(
                f"Upload of {remote} returned no asset", path=remote, backend=self._service.name
            )
        return FileObject(
            fs=fs,
            remote=str(RemotePath(remote)),
            size=asset.size,
            mod_time=asset.created_at,
            url=asset.secure_url,
            md5=asset.etag or "",
        )


class Downloader:
    """Fetches object content from its delivery URL.

    Ranged responses are checked against the requested byte count because the
    CDN does not always honor ``Range``. Mismatches and transient failures are
    retried with a linearly growing wait.

    :param session: HTTP session used for all requests.
    :param sleep: Blocking sleep used between attempts.
    :param timeout: Per-request timeout in seconds.
    :param backend: Backend name reported in errors.
    """

    def __init__(
        self,
        session: requests.Session,
        *,
        sleep: Sleeper = time.sleep,
        timeout: float = DOWNLOAD_TIMEOUT,
        backend: str = "cloudinary",
    ) -> None:
        self._session = session
        self._sleep = sleep
        self._timeout = timeout
        self._backend = backend

    def open(self, obj: FileObject, *options: OpenOption, deadline: float | None = None) -> BinaryIO:
        """Open the content of ``obj``, or the part selected by ``options``.

        :raises RangeVerificationFailed: If every attempt returned the wrong length.
        :raises RemoteTransportError: If the content could not be fetched.
        """
        headers: dict[str, str] = {}
        count: int | None = None
        for option in options:
            _, count = option.span(obj.size)
            headers["Range"] = option.header(obj.size)

        retryer = Retrying(
            retry=retry_if_exception_type((RangeVerificationFailed, _TransientDownloadError)),
            stop=stop_after_attempt(DOWNLOAD_ATTEMPTS) | stop_at_deadline(deadline),
            wait=wait_incrementing(start=1, increment=1),
            sleep=self._sleep,
            before_sleep=before_sleep_log(log, logging.WARNING),  # type: ignore[arg-type,unused-ignore]
            reraise=True,
        )
        try:
            response: requests.Response = retryer(self._fetch, obj, headers, count)
        except RangeVerificationFailed as exc:
            exc.attempts = retryer.statistics.get("attempt_number", 0)
            raise
        except _TransientDownloadError as exc:
            raise RemoteTransportError(str(exc.args[0]), path=obj.remote, backend=self._backend) from exc

        response.raw.decode_content = True
        return response.raw  # type: ignore[no-any-return]

    def _fetch(self, obj: FileObject, headers: dict[str, str], count: int | None) -> requests.Response:
        try:
            response = self._session.get(obj.url, headers=headers, stream=True, timeout=self._timeout)
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise _TransientDownloadError(
                f"Failed download of {obj.url!r}: {exc}", path=obj.remote, backend=self._backend
            ) from exc
        except requests.RequestException as exc:
            raise RemoteTransportError(
                f"Failed download of {obj.url!r}: {exc}", path=obj.remote, backend=self._backend
            ) from exc

        status = response.status_code
        if status == 429 or status >= 500:
            response.close()
            raise _TransientDownloadError(
                f"Failed download of {obj.url!r}: HTTP {status}", path=obj.remote, backend=self._backend
            )
        if status == 404:
            response.close()
            raise NotFound(f"Content not found: {obj.remote}", path=obj.remote, backend=self._backend)
        if status >= 400:
            response.close()
            raise RemoteTransportError(
                f"Failed download of {obj.url!r}: HTTP {status}", path=obj.remote, backend=self._backend
            )

        if count is not None:
            accept_ranges = response.headers.get("accept-ranges")
            content_length = response.headers.get("content-length")
            if accept_ranges and content_length:
                try:
                    length = int(content_length)
                except ValueError:
                    length = -1
                if length != count:
                    response.close()
                    raise RangeVerificationFailed(
                        f"Expected {count} bytes from {obj.url!r}, got content-length {content_length}",
                        path=obj.remote,
                        backend=self._backend,
                    )
        return response


class Remover:
    """Deletes the asset behind a path, using the identifiers the remote reports.

    :param service: The remote asset service.
    :param resolver: Resolver used to look the asset up first.
    """

    def __init__(self, service: AssetService, resolver: AssetResolver) -> None:
        self._service = service
        self._resolver = resolver

    def remove(self, remote: str, *, deadline: float | None = None) -> None:
        """Resolve ``remote`` and destroy the asset.

        :raises NotFound: If the path does not resolve; nothing is destroyed.
        :raises RemoteLogicalError: If the remote refuses the deletion.
        """
        asset = self._resolver.resolve(remote, deadline=deadline)
        result = self._service.destroy(asset.public_id, asset.resource_type, asset.type)
        if result.error is not None:
            raise RemoteLogicalError(
                f"Failed to remove {remote}: {result.error}", path=remote, backend=self._service.name
            )
        if result.result != "ok":
            raise RemoteLogicalError(
                f"Failed to remove {remote}: {result.result}", path=remote, backend=self._service.name
            )
        log.debug("Removed %r (public id %r)", remote, asset.public_id)
