"""Requests-per-minute throttle for the web search API."""

import asyncio
import time
from typing import Callable, List, Optional

from .logging import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """Sliding-window limiter shared by every caller of one API key.

    Keeps the timestamps of calls made in the last ``window`` seconds and sleeps
    until the oldest relevant call ages out once the effective limit is reached.
    """

    def __init__(
        self,
        rpm_limit: int = 30,
        buffer_percent: float = 0.1,
        window: float = 60.0,
        clock: Callable[[], float] = time.monotonic
    ):
        self.rpm_limit = rpm_limit
        self.buffer_percent = buffer_percent
        self.window = window
        self._clock = clock
        self.calls: List[float] = []
        self.lock = asyncio.Lock()
        self.last_warning_time = 0.0

    @property
    def effective_limit(self) -> int:
        return max(1, int(self.rpm_limit * (1 - self.buffer_percent)))

    async def wait_if_needed(self, call_id: Optional[str] = None) -> float:
        """Block until a call is allowed and record it.

        Returns:
            float: Seconds spent waiting
        """
        async with self.lock:
            now = self._clock()
            self.calls = [t for t in self.calls if now - t < self.window]

            wait_time = 0.0
            if len(self.calls) >= self.effective_limit:
                oldest_relevant = self.calls[-self.effective_limit]
                wait_time = max(0.0, self.window - (now - oldest_relevant))
                if now - self.last_warning_time > self.window / 2:
                    logger.warning(
                        "Search rate limit reached, throttling",
                        limit=self.effective_limit,
                        calls_in_window=len(self.calls),
                        wait_seconds=round(wait_time, 2),
                        call_id=call_id or "unknown"
                    )
                    self.last_warning_time = now

            if wait_time > 0:
                await asyncio.sleep(wait_time)
                now = self._clock()

            self.calls.append(now)
            return wait_time
