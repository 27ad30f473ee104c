"""Post store port consumed by the ranking engine."""

from datetime import datetime
from typing import Protocol

from feedrank.store.models import Post, PostQuery


class PostStore(Protocol):
    """Protocol for post storage operations.

    Abstracts the storage layer to enable testing and alternative
    implementations. Implementations raise StoreUnavailableError when the
    backend cannot answer.
    """

    def query(self, query: PostQuery) -> list[Post]:
        """Fetch qualifying posts.

        Args:
            query: Filter, ordering and limit.

        Returns:
            Posts matching the query.
        """
        ...

    def write_score(self, post_id: int, score: float, calculated_at: datetime) -> None:
        """Persist a precomputed ranking score.

        Args:
            post_id: Post to update.
            score: Ranking score.
            calculated_at: When the score was computed.
        """
        ...
