"""Exceptions for the cache port."""

from feedrank.errors import RankingError


class CacheError(RankingError):
    """Base exception for cache errors."""


class CacheUnavailableError(CacheError):
    """Raised when the cache backend cannot serve a request.

    Factory errors raised inside ``remember`` are not wrapped; they keep
    their own type so a store outage still reads as a store outage.
    """

    def __init__(self, message: str = "Cache unavailable", key: str | None = None) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message.
            key: Cache key being accessed.
        """
        self.key = key
        if key:
            message = f"{message} (key: {key})"
        super().__init__(message)
