"""Utilities package for the Survey Engine."""

from .cache import get_cache, mark_seen, forget, clear_cache
from .rate_limiter import RateLimiter, get_rate_limiter, with_rate_limit
from .rounding import round_half_up

__all__ = [
    "get_cache",
    "mark_seen",
    "forget",
    "clear_cache",
    "RateLimiter",
    "get_rate_limiter",
    "with_rate_limit",
    "round_half_up",
]
