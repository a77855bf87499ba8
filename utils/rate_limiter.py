"""
Rate limiter for outbound provider calls.

Spaces requests per origin and backs off exponentially after failures so a
burst of submissions does not trip the email provider's quota.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from functools import wraps
from typing import Callable, Dict, Optional, TypeVar

from config import settings

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class RateLimitState:
    """Tracks rate limit state for a specific origin."""
    last_request_time: float = 0.0
    consecutive_failures: int = 0
    backoff_until: float = 0.0


class RateLimiter:
    """
    Per-origin rate limiter with exponential backoff.

    Args:
        requests_per_second: Maximum requests per second per origin
        base_backoff: Backoff after the first failure, in seconds
        max_backoff: Upper bound on any backoff, in seconds
    """

    def __init__(
        self,
        requests_per_second: float = 1.0,
        base_backoff: float = 1.0,
        max_backoff: float = 30.0
    ):
        self.min_interval = 1.0 / requests_per_second
        self.base_backoff = base_backoff
        self.max_backoff = max_backoff

        self._states: Dict[str, RateLimitState] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _state(self, origin: str) -> RateLimitState:
        return self._states.setdefault(origin, RateLimitState())

    def _lock(self, origin: str) -> asyncio.Lock:
        return self._locks.setdefault(origin, asyncio.Lock())

    async def acquire(self, origin: str) -> None:
        """Wait until a request to origin is allowed."""
        state = self._state(origin)
        async with self._lock(origin):
            now = time.monotonic()
            wait_until = max(state.backoff_until, state.last_request_time + self.min_interval)
            if now < wait_until:
                logger.debug(f"Rate limiter: waiting {wait_until - now:.2f}s for {origin}")
                await asyncio.sleep(wait_until - now)
            state.last_request_time = time.monotonic()

    def report_success(self, origin: str) -> None:
        state = self._state(origin)
        state.consecutive_failures = 0
        state.backoff_until = 0.0

    def report_failure(self, origin: str) -> None:
        """Record a failed request and push the next one back, doubling up to max_backoff."""
        state = self._state(origin)
        state.consecutive_failures += 1

        backoff = min(
            self.base_backoff * (2 ** (state.consecutive_failures - 1)),
            self.max_backoff
        )
        state.backoff_until = time.monotonic() + backoff
        logger.debug(f"Rate limiter: backing off {backoff:.2f}s for {origin}")

    def reset(self, origin: Optional[str] = None) -> None:
        """Reset rate limiter state."""
        if origin:
            self._states.pop(origin, None)
        else:
            self._states.clear()


# Global rate limiter instance
_rate_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    """Get the global rate limiter, built from settings on first use."""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = RateLimiter(
            requests_per_second=settings.rate_limit_per_second
        )
    return _rate_limiter


def with_rate_limit(origin: str) -> Callable:
    """
    Decorator applying the global rate limiter to an async function.

    Calls are never retried here. Exceptions propagate after scheduling a
    backoff for the next call to the same origin.

    Example:
        @with_rate_limit("resend")
        async def post_email(payload: dict) -> dict:
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            limiter = get_rate_limiter()
            await limiter.acquire(origin)
            try:
                result = await func(*args, **kwargs)
            except Exception:
                limiter.report_failure(origin)
                raise
            limiter.report_success(origin)
            return result

        return wrapper

    return decorator
