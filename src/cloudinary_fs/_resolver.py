"""Resolves one hierarchical path to at most one remote asset."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from tenacity import Retrying, before_sleep_log, retry_if_result, stop_after_attempt, wait_fixed

from cloudinary_fs._errors import AmbiguousMatch, NotFound, RemoteLogicalError
from cloudinary_fs._path import RemotePath
from cloudinary_fs._retry import last_result, stop_at_deadline

if TYPE_CHECKING:
    from cloudinary_fs._encoding import CloudinaryCodec
    from cloudinary_fs._models import RemoteAsset
    from cloudinary_fs._service import AssetPage, AssetService
    from cloudinary_fs._types import Sleeper

log = logging.getLogger(__name__)

# One query plus three retries while the remote indexes a fresh upload.
OPTIMISTIC_ATTEMPTS = 4
OPTIMISTIC_WAIT = 1.0


def _nothing_yet(page: AssetPage) -> bool:
    return page.error is None and not page.assets


class AssetResolver:
    """Locates the remote asset behind a path with a folder + name search.

    :param service: The remote asset service.
    :param codec: Path codec.
    :param root: Filesystem root the paths are relative to.
    :param optimistic: Retry empty searches, assuming the asset is being indexed.
    :param sleep: Blocking sleep used between retries.
    """

    def __init__(
        self,
        service: AssetService,
        codec: CloudinaryCodec,
        root: RemotePath,
        *,
        optimistic: bool = False,
        sleep: Sleeper = time.sleep,
    ) -> None:
        self._service = service
        self._codec = codec
        self._root = root
        self._optimistic = optimistic
        self._sleep = sleep

    def resolve(self, remote: str, *, deadline: float | None = None) -> RemoteAsset:
        """Return the single asset stored at ``remote``.

        :param remote: Path relative to the filesystem root.
        :param deadline: ``time.monotonic()`` value after which no new attempt starts.
        :raises NotFound: If nothing matches after the allowed attempts.
        :raises AmbiguousMatch: If more than one asset matches.
        :raises RemoteLogicalError: If the search reports an error.
        """
        path = RemotePath(remote)
        folder = self._codec.remote_dir(self._root, path)
        name = self._codec.to_remote_name(path.name)

        retryer = Retrying(
            retry=retry_if_result(_nothing_yet),
            stop=stop_after_attempt(OPTIMISTIC_ATTEMPTS if self._optimistic else 1) | stop_at_deadline(deadline),
            wait=wait_fixed(OPTIMISTIC_WAIT),
            sleep=self._sleep,
            before_sleep=before_sleep_log(log, logging.DEBUG),  # type: ignore[arg-type,unused-ignore]
            retry_error_callback=last_result,
        )
        # Ask for one result: a continuation cursor then means a second match exists.
        page: AssetPage = retryer(self._service.search_by_folder_and_name, folder, name, 1)

        if page.error is not None:
            raise RemoteLogicalError(
                f"Search failed for {remote}: {page.error}", path=remote, backend=self._service.name
            )
        if not page.assets:
            raise NotFound(f"Object not found: {remote}", path=remote, backend=self._service.name)
        if page.next_cursor or len(page.assets) > 1:
            raise AmbiguousMatch(
                f"Duplicate objects found for {remote}", path=remote, backend=self._service.name
            )
        return page.assets[0]
