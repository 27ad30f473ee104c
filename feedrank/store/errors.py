"""Domain exceptions for the post store.

Infrastructure failures (database missing, locked, corrupted) are raised as
StoreUnavailableError so callers can tell "backend down" apart from
"no content".
"""

from feedrank.errors import RankingError


class PostStoreError(RankingError):
    """Base exception for all post store errors."""


class StoreUnavailableError(PostStoreError):
    """Raised when the post store cannot be reached or queried."""

    def __init__(self, message: str = "Post store unavailable", operation: str | None = None) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message.
            operation: Store operation that failed.
        """
        self.operation = operation
        if operation:
            message = f"{message} (operation: {operation})"
        super().__init__(message)


class PostNotFoundError(PostStoreError):
    """Raised when a requested post does not exist."""

    def __init__(self, post_id: int) -> None:
        """Initialize the error with the missing post ID.

        Args:
            post_id: The post ID that was not found.
        """
        self.post_id = post_id
        super().__init__(f"Post not found: {post_id}")
