"""Content ranking service.

Wires the scorer, the source distribution and the diversity reorderer to a
post store and a cache, and exposes the query facades used by feeds:
trending, hero and anonymous-user rankings, plus the score recalculation job.
"""

from collections.abc import Generator
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta

import structlog

from feedrank.cache.backend import CacheBackend
from feedrank.cache.errors import CacheError
from feedrank.config.constants import HERO_KEY_TEMPLATE, TRENDING_KEY_TEMPLATE
from feedrank.config.schemas import RankingConfig
from feedrank.ranker.authority import DomainAuthorityTable
from feedrank.ranker.distribution import SourceDistribution
from feedrank.ranker.diversity import DiversityReorderer
from feedrank.ranker.metrics import RankerMetrics
from feedrank.ranker.models import ScoreBreakdown, ScoredPost, SourceShare
from feedrank.ranker.scorer import ContentScorer, sort_scored_posts
from feedrank.store.base import PostStore
from feedrank.store.errors import PostStoreError
from feedrank.store.models import Post, PostOrder, PostQuery


logger = structlog.get_logger()


class ContentRankingService:
    """Query facades over scored, diversified posts.

    Trending and hero results recompute scores inline and are cached for a
    short window. The anonymous-user feed reads the persisted ranking_score
    written by recalculate_scores and is not cached.

    Store and cache failures are logged and re-raised unchanged; they are
    never turned into empty results.
    """

    def __init__(
        self,
        store: PostStore,
        cache: CacheBackend,
        config: RankingConfig | None = None,
        metrics: RankerMetrics | None = None,
        run_id: str = "ranker",
    ) -> None:
        """Initialize the service.

        Args:
            store: Post store.
            cache: Cache backend for distribution and facade results.
            config: Ranking configuration (defaults when omitted).
            metrics: Optional metrics instance.
            run_id: Run identifier for logging.
        """
        self._store = store
        self._cache = cache
        self._config = config or RankingConfig()
        self._metrics = metrics or RankerMetrics.get_instance()
        self._log = logger.bind(
            component="ranker",
            subcomponent="service",
            run_id=run_id,
        )

        self._authority = DomainAuthorityTable.from_config(self._config.authority)
        self._distribution = SourceDistribution(
            store,
            cache,
            ttl_seconds=self._config.cache.distribution_ttl,
            run_id=run_id,
        )
        self._scorer = ContentScorer(
            self._config.weights,
            self._authority,
            distribution=self._distribution,
            metrics=self._metrics,
            run_id=run_id,
        )
        self._reorderer = DiversityReorderer(
            max_consecutive=self._config.diversity.max_consecutive,
            backfill_deferred=self._config.diversity.backfill_deferred,
            metrics=self._metrics,
            run_id=run_id,
        )

    @property
    def config(self) -> RankingConfig:
        """Active ranking configuration."""
        return self._config

    @property
    def scorer(self) -> ContentScorer:
        """Underlying content scorer."""
        return self._scorer

    @contextmanager
    def _backend_call(self, operation: str) -> Generator[None]:
        """Log store and cache failures for ``operation`` and re-raise."""
        try:
            yield
        except (PostStoreError, CacheError) as e:
            self._log.error(
                "ranking_backend_failed",
                operation=operation,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise

    # Scoring

    def calculate_content_score(self, post: Post, now: datetime | None = None) -> float:
        """Compute the total weighted score for a post.

        Args:
            post: Post to score.
            now: Reference timestamp (current UTC time when omitted).

        Returns:
            Total score.
        """
        now = now or datetime.now(UTC)
        with self._backend_call("calculate_content_score"):
            return self._scorer.calculate_content_score(post, now)

    def get_score_breakdown(
        self, post: Post, now: datetime | None = None
    ) -> ScoreBreakdown:
        """Explain a post's score signal by signal.

        Args:
            post: Post to explain.
            now: Reference timestamp (current UTC time when omitted).

        Returns:
            ScoreBreakdown for the post.
        """
        now = now or datetime.now(UTC)
        with self._backend_call("get_score_breakdown"):
            return self._scorer.get_score_breakdown(post, now)

    def get_source_distribution(
        self, now: datetime | None = None
    ) -> dict[str, SourceShare]:
        """Get each domain's share of qualifying posts (cached).

        Args:
            now: Reference timestamp (current UTC time when omitted).

        Returns:
            Domain to SourceShare mapping.
        """
        now = now or datetime.now(UTC)
        with self._backend_call("get_source_distribution"):
            return self._distribution.get_source_distribution(now)

    def apply_source_diversity(self, candidates: list[Post], limit: int) -> list[Post]:
        """Reorder candidates so no source runs past the configured length.

        Args:
            candidates: Posts sorted by score descending.
            limit: Maximum output length.

        Returns:
            Up to ``limit`` posts.
        """
        return self._reorderer.reorder(candidates, limit)

    def _rank_scored(self, posts: list[Post], now: datetime) -> list[ScoredPost]:
        """Score, sort and diversify posts, keeping each post's score."""
        ordered = sort_scored_posts(self._scorer.score_posts(posts, now))
        scores = {s.post.id: s.score for s in ordered}
        diversified = self._reorderer.reorder(
            [s.post for s in ordered], len(ordered)
        )
        return [ScoredPost(post=p, score=scores[p.id]) for p in diversified]

    def rank_posts(self, posts: list[Post], now: datetime | None = None) -> list[Post]:
        """Rank posts by freshly computed score, then diversify.

        Ties are broken by published_at descending, then id ascending.

        Args:
            posts: Posts to rank.
            now: Reference timestamp (current UTC time when omitted).

        Returns:
            All input posts in ranked, diversified order.
        """
        now = now or datetime.now(UTC)
        with self._backend_call("rank_posts"):
            return [s.post for s in self._rank_scored(posts, now)]

    # Facades

    def get_trending_posts(
        self,
        limit: int = 10,
        window_hours: int | None = None,
        now: datetime | None = None,
    ) -> list[Post]:
        """Get recent posts with enough traction, best first.

        A post is trending when it has at least the configured views or
        likes. Results are cached per (limit, window_hours).

        Args:
            limit: Maximum number of posts.
            window_hours: Lookback window (configured default when omitted).
            now: Reference timestamp (current UTC time when omitted).

        Returns:
            Up to ``limit`` posts.
        """
        now = now or datetime.now(UTC)
        hours = window_hours
        if hours is None:
            hours = self._config.thresholds.trending_hours
        key = TRENDING_KEY_TEMPLATE.format(limit=limit, hours=hours)

        with self._backend_call("get_trending_posts"):
            return self._cache.remember(
                key,
                self._config.cache.trending_ttl,
                lambda: self._compute_trending(limit, hours, now),
            )

    def _compute_trending(self, limit: int, hours: int, now: datetime) -> list[Post]:
        if limit <= 0:
            return []

        thresholds = self._config.thresholds
        posts = self._store.query(
            PostQuery(now=now, published_since=now - timedelta(hours=hours))
        )
        ranked = self._rank_scored(posts, now)
        trending = [
            s.post
            for s in ranked
            if s.post.views_count >= thresholds.trending_min_views
            or s.post.likes_count >= thresholds.trending_min_likes
        ][:limit]

        self._log.info(
            "trending_computed",
            window_hours=hours,
            candidates=len(posts),
            returned=len(trending),
        )
        return trending

    def get_hero_content(self, limit: int = 3, now: datetime | None = None) -> list[Post]:
        """Get high-scoring posts from the recent window for the hero slot.

        Args:
            limit: Maximum number of posts.
            now: Reference timestamp (current UTC time when omitted).

        Returns:
            Up to ``limit`` posts scoring at least the hero threshold.
        """
        now = now or datetime.now(UTC)
        key = HERO_KEY_TEMPLATE.format(limit=limit)

        with self._backend_call("get_hero_content"):
            return self._cache.remember(
                key,
                self._config.cache.hero_ttl,
                lambda: self._compute_hero(limit, now),
            )

    def _compute_hero(self, limit: int, now: datetime) -> list[Post]:
        if limit <= 0:
            return []

        thresholds = self._config.thresholds
        posts = self._store.query(
            PostQuery(now=now, published_since=now - timedelta(days=thresholds.hero_days))
        )
        ranked = self._rank_scored(posts, now)
        hero = [s.post for s in ranked if s.score >= thresholds.hero_min_score][:limit]

        self._log.info(
            "hero_computed",
            candidates=len(posts),
            min_score=thresholds.hero_min_score,
            returned=len(hero),
        )
        return hero

    def get_ranked_posts_for_anonymous_user(
        self, limit: int = 50, now: datetime | None = None
    ) -> list[Post]:
        """Get the default feed ordered by persisted ranking score.

        Over-fetches the top candidates, then diversifies down to ``limit``.
        Posts never scored sort after all scored posts.

        Args:
            limit: Maximum number of posts.
            now: Reference timestamp (current UTC time when omitted).

        Returns:
            Up to ``limit`` posts.
        """
        if limit <= 0:
            return []

        now = now or datetime.now(UTC)
        with self._backend_call("get_ranked_posts_for_anonymous_user"):
            candidates = self._store.query(
                PostQuery(
                    now=now,
                    order_by=PostOrder.RANKING_SCORE,
                    limit=limit * self._config.diversity.overfetch_factor,
                )
            )
        return self._reorderer.reorder(candidates, limit)

    def get_configuration(self) -> dict[str, object]:
        """Describe the active ranking configuration.

        Returns:
            Mapping with weights, source_authority_table, version, cache,
            thresholds and diversity sections.
        """
        return describe_configuration(self._config, self._authority)

    # Jobs

    def _needs_rescore(self, post: Post, cutoff: datetime) -> bool:
        if post.ranking_score is None or post.ranking_calculated_at is None:
            return True
        return post.ranking_calculated_at < cutoff

    def recalculate_scores(self, now: datetime | None = None, force: bool = False) -> int:
        """Recompute and persist ranking scores.

        Only posts never scored or scored before the staleness window are
        rewritten, unless ``force`` is set.

        Args:
            now: Reference timestamp (current UTC time when omitted).
            force: Rescore every qualifying post.

        Returns:
            Number of scores written.
        """
        now = now or datetime.now(UTC)
        cutoff = now - timedelta(hours=self._config.thresholds.stale_after_hours)

        with self._backend_call("recalculate_scores"):
            posts = self._store.query(PostQuery(now=now))
            pending = [p for p in posts if force or self._needs_rescore(p, cutoff)]

            for scored in self._scorer.score_posts(pending, now):
                self._store.write_score(scored.post.id, scored.score, now)

        self._metrics.record_scores_written(len(pending))
        self._log.info(
            "scores_recalculated",
            qualifying=len(posts),
            written=len(pending),
            force=force,
        )
        return len(pending)


def describe_configuration(
    config: RankingConfig, authority: DomainAuthorityTable | None = None
) -> dict[str, object]:
    """Describe a ranking configuration.

    Args:
        config: Ranking configuration.
        authority: Compiled authority table (built from config when omitted).

    Returns:
        Mapping with weights, source_authority_table, version, cache,
        thresholds and diversity sections.
    """
    authority = authority or DomainAuthorityTable.from_config(config.authority)
    return {
        "weights": config.weights.to_dict(),
        "source_authority_table": authority.to_dict(),
        "version": config.algorithm_version,
        "cache": config.cache.model_dump(),
        "thresholds": config.thresholds.model_dump(),
        "diversity": config.diversity.model_dump(),
    }
