"""IRC flood control: token bucket for rate limiting."""

from __future__ import annotations

import asyncio
import time


class TokenBucket:
    """Token bucket for IRC message rate limiting."""

    def __init__(self, limit: int, refill_rate: float = 1.0) -> None:
        self._limit = limit
        self._tokens = float(limit)
        self._refill_rate = refill_rate
        self._last_refill = time.monotonic()

    @classmethod
    def from_delay(cls, delay_ms: int) -> TokenBucket:
        """One message per delay_ms, no burst."""
        return cls(limit=1, refill_rate=1000.0 / max(delay_ms, 1))

    def use_token(self) -> bool:
        """Consume one token. Returns True if token was available, False otherwise."""
        self._refill()
        if self._tokens >= 1:
            self._tokens -= 1
            return True
        return False

    def acquire(self) -> float:
        """Return seconds to wait before a token is available. 0 if available now."""
        self._refill()
        if self._tokens >= 1:
            return 0.0
        return (1 - self._tokens) / self._refill_rate

    async def wait(self) -> None:
        """Sleep until a token is available, then consume it."""
        delay = self.acquire()
        while delay > 0:
            await asyncio.sleep(delay)
            delay = self.acquire()
        self.use_token()

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self._last_refill
        self._tokens = min(self._limit, self._tokens + elapsed * self._refill_rate)
        self._last_refill = now
