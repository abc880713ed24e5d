import asyncio
import random
import time
from typing import Awaitable, Callable, Optional
import structlog

from sentinel.observability.metrics import RATE_LIMIT_WAIT_SECONDS

logger = structlog.get_logger()


class RateLimiter:
    """Minimum-spacing rate limiter with randomized jitter.

    Each acquire() waits until at least ``min_interval + jitter`` has passed
    since the start of the previous call, jitter being drawn uniformly from
    ``[jitter_min, jitter_max]`` on every call so that clients do not fall
    into a synchronized cadence. The first call never waits.

    The timestamp is recorded when the caller is released (call start), not
    when its request finishes, so request latency counts toward the spacing.

    Not safe for concurrent use: one limiter per sequential session.
    """

    def __init__(
        self,
        min_interval_ms: int,
        jitter_min_ms: int = 0,
        jitter_max_ms: int = 0,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if jitter_min_ms > jitter_max_ms:
            raise ValueError("jitter_min_ms must not exceed jitter_max_ms")

        self.min_interval = min_interval_ms / 1000.0
        self.jitter_min = jitter_min_ms / 1000.0
        self.jitter_max = jitter_max_ms / 1000.0
        self.name = name
        self.calls = 0
        self._clock = clock
        self._sleep = sleep
        self._last_call: Optional[float] = None

    async def acquire(self) -> float:
        """Wait for the next slot.

        Returns:
            Seconds spent waiting (0.0 when no wait was needed)
        """
        waited = 0.0

        if self._last_call is not None:
            jitter = random.uniform(self.jitter_min, self.jitter_max)
            required = self.min_interval + jitter
            elapsed = self._clock() - self._last_call
            if elapsed < required:
                waited = required - elapsed
                await self._sleep(waited)

        self._last_call = self._clock()
        self.calls += 1

        RATE_LIMIT_WAIT_SECONDS.labels(limiter=self.name).observe(waited)
        if waited:
            logger.debug("rate_limit_wait", limiter=self.name, waited_seconds=round(waited, 3))

        return waited


def arxiv_rate_limiter(
    min_interval_ms: int = 3000,
    jitter_min_ms: int = 100,
    jitter_max_ms: int = 500,
) -> RateLimiter:
    """Limiter for the discovery catalog (one request per ~3s)"""
    return RateLimiter(min_interval_ms, jitter_min_ms, jitter_max_ms, name="arxiv")


def anthropic_rate_limiter(
    min_interval_ms: int = 200,
    jitter_min_ms: int = 50,
    jitter_max_ms: int = 100,
) -> RateLimiter:
    """Limiter for the model API (~5 requests/second)"""
    return RateLimiter(min_interval_ms, jitter_min_ms, jitter_max_ms, name="anthropic")
