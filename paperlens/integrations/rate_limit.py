"""Client-side minimum-interval limiter for outbound bibliographic requests."""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from paperlens.core.logging_utils import log_event


class RateLimiter:
    """Space consecutive calls at least ``min_interval_seconds`` apart.

    One limiter is shared by every caller of a source; callers are serialised
    under a lock so concurrent requests queue rather than burst.
    """

    def __init__(
        self,
        min_interval_seconds: float = 1.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        name: str = "",
    ) -> None:
        self.min_interval_seconds = max(0.0, float(min_interval_seconds))
        self.name = name
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_call: Optional[float] = None

    def wait(self) -> float:
        """Block until the next call is allowed; returns the seconds slept."""
        with self._lock:
            waited = 0.0
            now = self._clock()
            if self._last_call is not None:
                remaining = self.min_interval_seconds - (now - self._last_call)
                if remaining > 0:
                    log_event("rate_limit_wait", {"source": self.name, "wait_seconds": round(remaining, 3)})
                    self._sleep(remaining)
                    waited = remaining
                    now = self._clock()
            self._last_call = now
            return waited
