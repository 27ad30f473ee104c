"""Cache port used to memoize source distribution and facade results."""

from feedrank.cache.backend import CacheBackend, CacheStats, Clock, InMemoryCache
from feedrank.cache.errors import CacheError, CacheUnavailableError


__all__ = [
    "CacheBackend",
    "CacheError",
    "CacheStats",
    "CacheUnavailableError",
    "Clock",
    "InMemoryCache",
]
