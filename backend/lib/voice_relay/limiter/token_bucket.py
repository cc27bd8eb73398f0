"""Continuous-refill token bucket used for request admission.

Credits accrue smoothly from elapsed time (no interval ticks) and are
computed lazily on each evaluation, never by a background timer.
"""

import asyncio
import logging
import threading
import time
from typing import Callable

from ..core.errors import ConfigurationError

logger = logging.getLogger(__name__)


class TokenBucket:
    """
    Token bucket rate limiter.

    Holds at most `capacity` credits and refills a full bucket every
    `refill_period` seconds. Each admitted request costs one credit.

    Example:
        bucket = TokenBucket(capacity=6, refill_period=10.0)
        if await bucket.await_acquire(max_wait=2.0):
            ...  # admitted
    """

    def __init__(
        self,
        capacity: float,
        refill_period: float,
        poll_interval: float = 0.15,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            capacity: Maximum credits (burst size)
            refill_period: Seconds to refill from empty to full
            poll_interval: Seconds between attempts in await_acquire
            clock: Monotonic time source in seconds

        Raises:
            ConfigurationError: If any of the durations or capacity is not positive
        """
        if capacity <= 0:
            raise ConfigurationError(f"capacity must be positive, got {capacity}")
        if refill_period <= 0:
            raise ConfigurationError(f"refill_period must be positive, got {refill_period}")
        if poll_interval <= 0:
            raise ConfigurationError(f"poll_interval must be positive, got {poll_interval}")

        self.capacity = float(capacity)
        self.refill_period = float(refill_period)
        self.poll_interval = poll_interval
        self._clock = clock
        self._tokens = float(capacity)
        self._last_refill = clock()
        self._lock = threading.Lock()

    def _refill(self) -> None:
        # Caller holds self._lock
        now = self._clock()
        elapsed = now - self._last_refill
        added = elapsed / self.refill_period * self.capacity
        if added > 0:
            self._tokens = min(self.capacity, self._tokens + added)
            self._last_refill = now

    @property
    def available(self) -> float:
        """Current credit balance after refill."""
        with self._lock:
            self._refill()
            return self._tokens

    def try_acquire(self) -> bool:
        """
        Take one credit if available.

        Returns:
            True if a credit was deducted, False otherwise (nothing deducted)
        """
        with self._lock:
            self._refill()
            if self._tokens >= 1:
                self._tokens -= 1.0
                return True
            return False

    async def await_acquire(self, max_wait: float) -> bool:
        """
        Poll try_acquire until it succeeds or max_wait elapses.

        A non-positive max_wait makes exactly one attempt. Sleeps are clipped
        to the deadline.

        Args:
            max_wait: Maximum seconds to wait

        Returns:
            True if admitted, False on timeout
        """
        if self.try_acquire():
            return True
        if max_wait <= 0:
            return False

        deadline = self._clock() + max_wait
        while True:
            remaining = deadline - self._clock()
            if remaining <= 0:
                logger.debug(f"Admission wait expired after {max_wait:.2f}s")
                return False
            await asyncio.sleep(min(self.poll_interval, remaining))
            if self.try_acquire():
                return True
