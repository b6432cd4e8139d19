"""Shared GitHub API quota tracking."""

import logging
import threading
from typing import Mapping, Optional

from starsentry.core.constants import QUOTA_RESET_BUFFER

logger = logging.getLogger(__name__)


def _header_int(headers: Mapping[str, str], name: str) -> Optional[int]:
    value = headers.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class RateLimitQuota:
    """
    Process-wide view of one GitHub API quota.

    One instance is shared by every client that spends the same quota, so
    concurrent analyses observe each other's exhaustion and take turns waiting
    for the reset instead of all hammering the API with requests that will 403.

    Attributes:
        remaining: Requests left in the current window, None until observed
        limit: Size of the window
        reset_at: UNIX timestamp when the window resets
    """

    def __init__(self):
        self.remaining: Optional[int] = None
        self.limit: Optional[int] = None
        self.reset_at: Optional[int] = None
        self._lock = threading.Lock()

    def update_from_headers(self, headers: Mapping[str, str]) -> None:
        """Record X-RateLimit-* headers from a response."""
        remaining = _header_int(headers, "X-RateLimit-Remaining")
        if remaining is None:
            return
        self.remaining = remaining
        limit = _header_int(headers, "X-RateLimit-Limit")
        if limit is not None:
            self.limit = limit
        reset_at = _header_int(headers, "X-RateLimit-Reset")
        if reset_at is not None:
            self.reset_at = reset_at

        if remaining <= 10:
            logger.debug(f"GitHub API quota low: {remaining} requests remaining")

    @property
    def is_exhausted(self) -> bool:
        return self.remaining == 0

    def seconds_until_reset(self, now: float) -> float:
        """Time to wait for the reset plus a one second buffer, never negative."""
        if self.reset_at is None:
            return 0.0
        return max(0.0, self.reset_at - now + QUOTA_RESET_BUFFER)

    def wait_for_reset(self, clock) -> float:
        """
        Sleep until the quota resets.

        Waiters are serialised; a waiter that acquires the lock after someone
        else already waited out the same window returns immediately.

        Returns:
            float: Seconds actually slept
        """
        with self._lock:
            if not self.is_exhausted:
                return 0.0
            wait_time = self.seconds_until_reset(clock.now())
            if wait_time > 0:
                logger.warning(f"Rate limit hit. Waiting {wait_time:.0f} seconds...")
                clock.sleep(wait_time)
            # Unknown until the next response reports it
            self.remaining = None
            return wait_time

    def wait_if_exhausted(self, clock) -> float:
        """Wait before a request if the quota is known to be spent and not yet reset."""
        if self.is_exhausted and self.reset_at is not None and self.reset_at > clock.now():
            return self.wait_for_reset(clock)
        return 0.0
