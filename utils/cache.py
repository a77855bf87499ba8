"""
Named in-memory TTL caches.

Used to remember recently handled events (for example "result email already
sent for response X") so an at-least-once trigger does not act twice.
"""

import threading
from typing import Hashable, Optional

from cachetools import TTLCache

from config import settings

# Global cache instances with thread-safe access
_cache_lock = threading.Lock()
_caches: dict = {}


def get_cache(
    name: str,
    maxsize: Optional[int] = None,
    ttl: Optional[int] = None,
) -> TTLCache:
    """
    Get or create a named cache instance.

    Args:
        name: Cache namespace (e.g., "notifications")
        maxsize: Maximum number of items (defaults to settings)
        ttl: Time-to-live in seconds (defaults to settings)

    Returns:
        TTLCache instance for the namespace
    """
    with _cache_lock:
        if name not in _caches:
            _caches[name] = TTLCache(
                maxsize=maxsize or settings.notification_cache_max_size,
                ttl=ttl or settings.notification_cache_ttl_seconds,
            )
        return _caches[name]


def mark_seen(name: str, key: Hashable) -> bool:
    """
    Record a key in a named cache.

    Returns:
        True if the key was new, False if it was already present (and unexpired)
    """
    cache = get_cache(name)
    with _cache_lock:
        if key in cache:
            return False
        cache[key] = True
        return True


def forget(name: str, key: Hashable) -> None:
    """Drop a key so the event it stands for may be handled again."""
    cache = get_cache(name)
    with _cache_lock:
        cache.pop(key, None)


def clear_cache(cache_name: Optional[str] = None) -> None:
    """
    Clear cache contents.

    Args:
        cache_name: Specific cache to clear, or None to clear all
    """
    with _cache_lock:
        if cache_name:
            if cache_name in _caches:
                _caches[cache_name].clear()
        else:
            for cache in _caches.values():
                cache.clear()
