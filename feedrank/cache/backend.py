"""Key-value cache port and an in-process TTL implementation."""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeVar

import structlog

from feedrank.cache.errors import CacheUnavailableError


logger = structlog.get_logger()

T = TypeVar("T")

Clock = Callable[[], float]


class CacheBackend(Protocol):
    """Protocol for cache storage operations.

    Values are opaque to the cache. Expiry is driven by ttl_seconds.
    """

    def get(self, key: str) -> Any | None:
        """Get a live value, or None on miss or expiry."""
        ...

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store a value for ttl_seconds."""
        ...

    def remember(self, key: str, ttl_seconds: float, factory: Callable[[], T]) -> T:
        """Return the cached value, computing and storing it on miss.

        Args:
            key: Cache key.
            ttl_seconds: Lifetime of a freshly computed value.
            factory: Zero-argument callable producing the value.

        Returns:
            Cached or freshly computed value.
        """
        ...

    def forget(self, key: str) -> None:
        """Drop a key if present."""
        ...


@dataclass
class CacheStats:
    """Hit/miss counters for a cache instance.

    Attributes:
        hits: Lookups answered from a live entry.
        misses: Lookups that found nothing or an expired entry.
        computes: Factory invocations made by remember().
    """

    hits: int = 0
    misses: int = 0
    computes: int = 0

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary for serialization."""
        return {"hits": self.hits, "misses": self.misses, "computes": self.computes}


@dataclass
class _Entry:
    value: Any
    expires_at: float


@dataclass
class InMemoryCache:
    """Thread-safe in-process TTL cache.

    remember() is single-flight per key: when several callers miss the
    same key at once, the first computes and the others wait for and reuse
    its result.

    Attributes:
        clock: Monotonic seconds source; inject a fake for tests.
    """

    clock: Clock = time.monotonic
    stats: CacheStats = field(default_factory=CacheStats)

    _entries: dict[str, _Entry] = field(init=False, default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _key_locks: dict[str, threading.Lock] = field(init=False, default_factory=dict)
    _closed: bool = field(init=False, default=False)

    def __post_init__(self) -> None:
        """Bind the logger."""
        self._log = logger.bind(component="cache")

    def _check_open(self, key: str) -> None:
        if self._closed:
            raise CacheUnavailableError("Cache is closed", key=key)

    def _lookup(self, key: str) -> _Entry | None:
        """Find a live entry, evicting it if expired.

        Must be called while holding the lock.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self.clock():
            del self._entries[key]
            return None
        return entry

    def get(self, key: str) -> Any | None:
        """Get a live value, or None on miss or expiry.

        Args:
            key: Cache key.

        Returns:
            The cached value or None.
        """
        with self._lock:
            self._check_open(key)
            entry = self._lookup(key)
            if entry is None:
                self.stats.misses += 1
                return None
            self.stats.hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store a value.

        Args:
            key: Cache key.
            value: Value to store.
            ttl_seconds: Lifetime in seconds; non-positive values are not stored.
        """
        with self._lock:
            self._check_open(key)
            if ttl_seconds <= 0:
                self._entries.pop(key, None)
                return
            self._entries[key] = _Entry(value=value, expires_at=self.clock() + ttl_seconds)

    def forget(self, key: str) -> None:
        """Drop a key if present.

        Args:
            key: Cache key.
        """
        with self._lock:
            self._check_open(key)
            self._entries.pop(key, None)

    def remember(self, key: str, ttl_seconds: float, factory: Callable[[], T]) -> T:
        """Return the cached value, computing and storing it on miss.

        Args:
            key: Cache key.
            ttl_seconds: Lifetime of a freshly computed value.
            factory: Zero-argument callable producing the value.

        Returns:
            Cached or freshly computed value.
        """
        with self._lock:
            self._check_open(key)
            entry = self._lookup(key)
            if entry is not None:
                self.stats.hits += 1
                return entry.value  # type: ignore[no-any-return]
            self.stats.misses += 1
            key_lock = self._key_locks.setdefault(key, threading.Lock())

        with key_lock:
            # Another caller may have filled the key while we waited.
            with self._lock:
                entry = self._lookup(key)
                if entry is not None:
                    return entry.value  # type: ignore[no-any-return]

            self._log.debug("cache_miss", key=key, ttl_seconds=ttl_seconds)
            value = factory()
            self.stats.computes += 1
            self.set(key, value, ttl_seconds)
            return value

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()

    def close(self) -> None:
        """Drop every entry and refuse further use."""
        with self._lock:
            self._entries.clear()
            self._closed = True
