"""
Per-user fixed-window rate limiter.

Windows live for the whole process and are never evicted, so memory grows
with the number of distinct users seen since startup.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 10.0
DEFAULT_MAX_REQUESTS = 3


@dataclass
class RateWindow:
    """Request count for one user within the current window."""
    request_count: int
    window_reset_at: float


class RateLimiter:
    """
    Admission control: at most `max_requests` per user per `window_seconds`.

    A window starts on the first request after the previous one expired.
    """

    def __init__(
        self,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self.clock = clock
        self.windows: Dict[int, RateWindow] = {}
        logger.info(
            f"[RATE] RateLimiter initialized: {max_requests} request(s) per {window_seconds:g}s"
        )

    def admit(self, user_id: int) -> bool:
        """
        Record a request for user_id and decide whether it is allowed.

        Returns:
            True if admitted, False if the user exhausted the current window
        """
        now = self.clock()
        window = self.windows.get(user_id)

        if window is None or now > window.window_reset_at:
            self.windows[user_id] = RateWindow(
                request_count=1,
                window_reset_at=now + self.window_seconds,
            )
            return True

        if window.request_count < self.max_requests:
            window.request_count += 1
            return True

        logger.info(
            f"[RATE] User {user_id} rate limited "
            f"({window.request_count}/{self.max_requests}, resets in {window.window_reset_at - now:.1f}s)"
        )
        return False

    def retry_after(self, user_id: int) -> float:
        """Seconds until the user's current window resets (0 if none)."""
        window = self.windows.get(user_id)
        if window is None:
            return 0.0
        return max(0.0, window.window_reset_at - self.clock())
