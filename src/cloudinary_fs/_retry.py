"""Retry helpers shared by the resolver and the downloader."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from tenacity.stop import stop_base

if TYPE_CHECKING:
    from tenacity import RetryCallState


class stop_at_deadline(stop_base):  # noqa: N801
    """Stop when the wait before the next attempt would reach a ``time.monotonic()`` deadline.

    Checked between attempts, so an in-flight call is never interrupted and
    no new attempt starts after the deadline. ``None`` never stops.
    """

    def __init__(self, deadline: float | None) -> None:
        self.deadline = deadline

    def __call__(self, retry_state: RetryCallState) -> bool:
        if self.deadline is None:
            return False
        return time.monotonic() + retry_state.upcoming_sleep >= self.deadline


def last_result(retry_state: RetryCallState) -> object:
    """``retry_error_callback`` that hands back the final outcome unchanged."""
    assert retry_state.outcome is not None
    return retry_state.outcome.result()
