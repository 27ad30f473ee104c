"""Source distribution statistic used by the diversity signal."""

from collections import Counter
from collections.abc import Iterable
from datetime import datetime

import structlog

from feedrank.cache.backend import CacheBackend
from feedrank.config.constants import DISTRIBUTION_TTL_SECONDS, SOURCE_DISTRIBUTION_KEY
from feedrank.ranker.domain import normalize_domain
from feedrank.ranker.models import SourceShare
from feedrank.store.base import PostStore
from feedrank.store.models import Post, PostQuery


logger = structlog.get_logger()


def compute_source_distribution(posts: Iterable[Post]) -> dict[str, SourceShare]:
    """Compute each domain's share of the given posts.

    Posts without a source URL count toward the total but get no entry.

    Args:
        posts: Qualifying posts.

    Returns:
        Domain to SourceShare mapping (empty when there are no posts).
    """
    total = 0
    counts: Counter[str] = Counter()

    for post in posts:
        total += 1
        if post.source_url:
            counts[normalize_domain(post.source_url)] += 1

    if total == 0:
        return {}

    return {
        domain: SourceShare(count=count, percentage=count / total * 100.0)
        for domain, count in counts.items()
    }


class SourceDistribution:
    """Memoized source distribution over all qualifying posts.

    The mapping is recomputed wholesale after the TTL expires. Posts
    published in between are invisible to diversity scoring until then.
    """

    def __init__(
        self,
        store: PostStore,
        cache: CacheBackend,
        ttl_seconds: int = DISTRIBUTION_TTL_SECONDS,
        run_id: str = "ranker",
    ) -> None:
        """Initialize the distribution provider.

        Args:
            store: Post store to scan on a cache miss.
            cache: Cache backend.
            ttl_seconds: Lifetime of a computed distribution.
            run_id: Run identifier for logging.
        """
        self._store = store
        self._cache = cache
        self._ttl = ttl_seconds
        self._log = logger.bind(
            component="ranker",
            subcomponent="distribution",
            run_id=run_id,
        )

    def get_source_distribution(self, now: datetime) -> dict[str, SourceShare]:
        """Get the cached distribution, computing it on a miss.

        Args:
            now: Reference timestamp for the qualifying-post scan.

        Returns:
            Domain to SourceShare mapping.
        """
        return self._cache.remember(
            SOURCE_DISTRIBUTION_KEY, self._ttl, lambda: self._compute(now)
        )

    def _compute(self, now: datetime) -> dict[str, SourceShare]:
        posts = self._store.query(PostQuery(now=now))
        distribution = compute_source_distribution(posts)

        self._log.info(
            "source_distribution_computed",
            posts_scanned=len(posts),
            domains=len(distribution),
            ttl_seconds=self._ttl,
        )
        return distribution
