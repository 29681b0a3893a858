"""Login attempt rate limiting.

Attempts are counted per client key (the source address) in a window that
restarts once the last attempt is older than the window. A successful login
clears the key.

The in-memory implementation is process-local: several server processes
each keep their own counts. Implement ``LoginRateLimiter`` on a shared store
to get a distributed limit.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Request

from uniboard.core.errors import RateLimitedError


@dataclass
class RateLimitResult:
    """Result of rate limit check."""

    allowed: bool
    remaining: int
    limit: int
    retry_after: Optional[int] = None


@dataclass
class _Attempts:
    count: int
    last_attempt: float


class LoginRateLimiter(ABC):
    """Abstract base class for login rate limiters."""

    @abstractmethod
    async def check(self, key: str) -> RateLimitResult:
        """Record an attempt for key and report whether it is allowed."""

    @abstractmethod
    async def reset(self, key: str) -> None:
        """Forget all attempts for key."""

    @abstractmethod
    async def clear(self) -> None:
        """Forget all attempts for every key."""

    async def hit(self, key: str) -> None:
        """Record an attempt, raising RateLimitedError when over the limit."""
        result = await self.check(key)
        if not result.allowed:
            raise RateLimitedError(retry_after=result.retry_after)


class InMemoryLoginRateLimiter(LoginRateLimiter):
    """Per-process attempt counter."""

    def __init__(
        self,
        max_attempts: int = 5,
        window: int = 15 * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_attempts = max_attempts
        self.window = window
        self._clock = clock
        self._attempts: dict[str, _Attempts] = {}
        self._lock = asyncio.Lock()
        self._last_prune = clock()

    async def check(self, key: str) -> RateLimitResult:
        async with self._lock:
            now = self._clock()
            if now - self._last_prune > self.window:
                self._prune(now)
            attempts = self._attempts.get(key)

            if attempts is None or now - attempts.last_attempt > self.window:
                self._attempts[key] = _Attempts(count=1, last_attempt=now)
                return RateLimitResult(
                    allowed=True,
                    remaining=self.max_attempts - 1,
                    limit=self.max_attempts,
                )

            if attempts.count >= self.max_attempts:
                retry_after = int(attempts.last_attempt + self.window - now) + 1
                return RateLimitResult(
                    allowed=False,
                    remaining=0,
                    limit=self.max_attempts,
                    retry_after=max(retry_after, 1),
                )

            attempts.count += 1
            attempts.last_attempt = now
            return RateLimitResult(
                allowed=True,
                remaining=self.max_attempts - attempts.count,
                limit=self.max_attempts,
            )

    def _prune(self, now: float) -> None:
        """Drop keys whose window has passed."""
        stale = [k for k, a in self._attempts.items() if now - a.last_attempt > self.window]
        for k in stale:
            del self._attempts[k]
        self._last_prune = now

    async def reset(self, key: str) -> None:
        async with self._lock:
            self._attempts.pop(key, None)

    async def clear(self) -> None:
        async with self._lock:
            self._attempts.clear()


class NoopLoginRateLimiter(LoginRateLimiter):
    """Allows every attempt. Used when RATE_LIMIT_ENABLED is false."""

    async def check(self, key: str) -> RateLimitResult:
        return RateLimitResult(allowed=True, remaining=0, limit=0)

    async def reset(self, key: str) -> None:
        return None

    async def clear(self) -> None:
        return None


def get_login_limiter(request: Request) -> LoginRateLimiter:
    """Dependency returning the limiter installed on the application."""
    return request.app.state.login_limiter
