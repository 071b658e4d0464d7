"""
In-memory Rate Limiter

Fixed-window request counter per client address. Each limiter owns its
visitor map, its lock and its sweep task, so the application can run several
independent instances (the global one and the stricter login one) and tests
can build a fresh limiter each time.

A window starts at a client's first request and is reset wholesale by the
first request that arrives after it elapsed. Because of that reset, a burst
straddling the boundary can be admitted up to twice the limit.
"""

import asyncio
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import structlog

logger = structlog.get_logger(__name__)

LOGIN_MAX_ATTEMPTS = 5
LOGIN_WINDOW_SECONDS = 15 * 60


@dataclass
class Visitor:
    last_seen: float
    count: int


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one request against a limiter"""
    allowed: bool
    limit: int
    count: int
    retry_after: float = 0.0

    @property
    def remaining(self) -> int:
        return max(self.limit - self.count, 0)

    @property
    def retry_after_seconds(self) -> int:
        return max(int(math.ceil(self.retry_after)), 0)

    @property
    def retry_after_minutes(self) -> int:
        return max(int(math.ceil(self.retry_after / 60)), 1)


class RateLimiter:
    """
    Fixed-window limiter keyed by client identifier.

    Example:
        limiter = RateLimiter(max_requests=100, window_seconds=60)
        await limiter.start()
        decision = await limiter.hit("203.0.113.7")
        ...
        await limiter.stop()
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        name: str = "global",
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.name = name
        self._clock = clock
        self._visitors: Dict[str, Visitor] = {}
        self._lock = asyncio.Lock()
        self._sweep_started = False
        self._sweep_task: Optional[asyncio.Task] = None

    @classmethod
    def for_login(cls, clock: Callable[[], float] = time.monotonic) -> "RateLimiter":
        """The login limiter: 5 attempts per 15 minutes whatever the global settings."""
        return cls(LOGIN_MAX_ATTEMPTS, LOGIN_WINDOW_SECONDS, name="login", clock=clock)

    def __len__(self) -> int:
        return len(self._visitors)

    async def hit(self, client_id: str) -> RateLimitDecision:
        """Count one request from ``client_id`` and decide whether it may proceed."""
        async with self._lock:
            now = self._clock()
            visitor = self._visitors.get(client_id)

            if visitor is None:
                self._visitors[client_id] = Visitor(last_seen=now, count=1)
                return RateLimitDecision(True, self.max_requests, 1)

            if now - visitor.last_seen > self.window_seconds:
                visitor.last_seen = now
                visitor.count = 1
                return RateLimitDecision(True, self.max_requests, 1)

            visitor.count += 1
            if visitor.count > self.max_requests:
                retry_after = self.window_seconds - (now - visitor.last_seen)
                return RateLimitDecision(False, self.max_requests, visitor.count, retry_after)

            return RateLimitDecision(True, self.max_requests, visitor.count)

    async def sweep(self) -> int:
        """Forget visitors whose window elapsed. Returns how many were removed."""
        async with self._lock:
            now = self._clock()
            expired = [
                client_id for client_id, visitor in self._visitors.items()
                if now - visitor.last_seen > self.window_seconds
            ]
            for client_id in expired:
                del self._visitors[client_id]

        if expired:
            logger.debug("Rate limiter swept", limiter=self.name, removed=len(expired))
        return len(expired)

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.window_seconds)
            await self.sweep()

    async def start(self) -> None:
        """Start the periodic sweep. Calling it again is a no-op."""
        async with self._lock:
            if self._sweep_started:
                return
            self._sweep_started = True
            self._sweep_task = asyncio.create_task(
                self._sweep_forever(), name=f"rate-limit-sweep-{self.name}"
            )
        logger.info(
            "Rate limiter started",
            limiter=self.name,
            max_requests=self.max_requests,
            window_seconds=self.window_seconds,
        )

    async def stop(self) -> None:
        """Cancel the sweep task and wait for it to finish."""
        async with self._lock:
            task, self._sweep_task = self._sweep_task, None
            self._sweep_started = False

        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Rate limiter stopped", limiter=self.name)

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()
