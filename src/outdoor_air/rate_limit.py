from __future__ import annotations

import logging
import time
from typing import Callable

logger = logging.getLogger(__name__)


class TokenBucket:
    """
    Token-bucket limiter for sequential provider calls.

    With capacity 1 and an initially empty bucket, `acquire()` spaces calls
    at least `1 / rate_per_second` apart, including before the first call.
    """

    def __init__(
        self,
        rate_per_second: float,
        capacity: float = 1.0,
        *,
        start_full: bool = False,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if rate_per_second <= 0:
            raise ValueError(f"rate_per_second must be > 0, got {rate_per_second}")
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")

        self.rate = rate_per_second
        self.capacity = capacity
        self._clock = clock
        self._sleep = sleep
        self._tokens = capacity if start_full else 0.0
        self._last = clock()

    def _refill(self) -> None:
        now = self._clock()
        self._tokens = min(self.capacity, self._tokens + (now - self._last) * self.rate)
        self._last = now

    def acquire(self) -> float:
        """Take one token, sleeping until one is available. Returns seconds slept."""
        self._refill()
        waited = 0.0
        if self._tokens < 1.0:
            waited = (1.0 - self._tokens) / self.rate
            logger.debug("[rate_limit] sleeping %.3fs", waited)
            self._sleep(waited)
            self._refill()
        self._tokens -= 1.0
        return waited
