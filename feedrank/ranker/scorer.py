"""Scoring engine for post ranking."""

import time
from collections.abc import Mapping
from datetime import datetime

import structlog

from feedrank.config.schemas import WeightsConfig
from feedrank.ranker.authority import DomainAuthorityTable
from feedrank.ranker.constants import DIVERSITY_NEUTRAL_SCORE
from feedrank.ranker.distribution import SourceDistribution
from feedrank.ranker.domain import normalize_domain
from feedrank.ranker.metrics import RankerMetrics
from feedrank.ranker.models import ScoreBreakdown, ScoredPost, SignalScore, SourceShare
from feedrank.ranker.signals import (
    as_utc,
    engagement_rate,
    engagement_score,
    hours_since_publish,
    recency_score,
    source_authority_score,
    source_diversity_score,
)
from feedrank.store.models import Post


logger = structlog.get_logger()


class ContentScorer:
    """Computes a composite relevance score per post.

    Scoring formula:
        score = authority * w_authority + recency * w_recency
              + engagement * w_engagement + diversity * w_diversity

    The diversity term is skipped entirely (no distribution lookup) when
    its weight is zero.
    """

    def __init__(
        self,
        weights: WeightsConfig,
        authority: DomainAuthorityTable,
        distribution: SourceDistribution | None = None,
        metrics: RankerMetrics | None = None,
        run_id: str = "ranker",
    ) -> None:
        """Initialize the scorer.

        Args:
            weights: Signal weights.
            authority: Domain authority table.
            distribution: Source distribution provider; required for a
                non-zero diversity weight, otherwise the signal is neutral.
            metrics: Optional metrics instance.
            run_id: Run identifier for logging.
        """
        self._weights = weights
        self._authority = authority
        self._distribution = distribution
        self._metrics = metrics or RankerMetrics.get_instance()
        self._log = logger.bind(
            component="ranker",
            subcomponent="scorer",
            run_id=run_id,
        )

        if weights.uses_diversity and distribution is None:
            self._log.warning("diversity_weight_without_distribution")

    @property
    def weights(self) -> WeightsConfig:
        """Configured signal weights."""
        return self._weights

    def _distribution_for(self, now: datetime) -> Mapping[str, SourceShare]:
        if self._distribution is None:
            return {}
        return self._distribution.get_source_distribution(now)

    def _diversity_score(self, post: Post, now: datetime) -> float:
        if not post.source_url:
            return DIVERSITY_NEUTRAL_SCORE
        return source_diversity_score(post, self._distribution_for(now))

    def calculate_content_score(self, post: Post, now: datetime) -> float:
        """Compute the total weighted score for a post.

        Deterministic for a given post, now, and distribution snapshot.

        Args:
            post: Post to score.
            now: Reference timestamp.

        Returns:
            Total score.
        """
        total = (
            source_authority_score(post, self._authority) * self._weights.source_authority
            + recency_score(post, now) * self._weights.recency
            + engagement_score(post, now) * self._weights.engagement
        )
        if self._weights.uses_diversity:
            total += self._diversity_score(post, now) * self._weights.source_diversity
        return total

    def get_score_breakdown(self, post: Post, now: datetime) -> ScoreBreakdown:
        """Explain a post's score signal by signal.

        Args:
            post: Post to explain.
            now: Reference timestamp.

        Returns:
            ScoreBreakdown with per-signal entries and diagnostics.
        """
        authority = SignalScore.of(
            source_authority_score(post, self._authority), self._weights.source_authority
        )
        recency = SignalScore.of(recency_score(post, now), self._weights.recency)
        engagement = SignalScore.of(
            engagement_score(post, now), self._weights.engagement
        )

        diversity: SignalScore | None = None
        if self._weights.uses_diversity:
            diversity = SignalScore.of(
                self._diversity_score(post, now), self._weights.source_diversity
            )

        return ScoreBreakdown(
            source_authority=authority,
            recency=recency,
            engagement=engagement,
            source_diversity=diversity,
            total_score=self.calculate_content_score(post, now),
            domain=normalize_domain(post.source_url),
            hours_old=hours_since_publish(post, now),
            views=post.views_count,
            likes=post.likes_count,
            engagement_rate=round(engagement_rate(post), 2),
        )

    def score_posts(self, posts: list[Post], now: datetime) -> list[ScoredPost]:
        """Score multiple posts, preserving input order.

        Args:
            posts: Posts to score.
            now: Reference timestamp.

        Returns:
            List of ScoredPost objects.
        """
        start = time.perf_counter()
        scored = [ScoredPost(post=p, score=self.calculate_content_score(p, now)) for p in posts]
        self._metrics.record_scoring_duration((time.perf_counter() - start) * 1000)

        for s in scored:
            self._metrics.record_score(s.score)

        self._log.info(
            "scoring_complete",
            posts_scored=len(scored),
            min_score=min((s.score for s in scored), default=0.0),
            max_score=max((s.score for s in scored), default=0.0),
        )
        return scored


def sort_scored_posts(scored: list[ScoredPost]) -> list[ScoredPost]:
    """Sort scored posts with a deterministic tie-breaker.

    Order:
    1. Score descending
    2. published_at descending (NULL last)
    3. Post id ascending

    Args:
        scored: Posts to sort.

    Returns:
        Sorted posts.
    """

    def sort_key(s: ScoredPost) -> tuple[float, float, int]:
        if s.post.published_at is not None:
            pub_key = -as_utc(s.post.published_at).timestamp()
        else:
            pub_key = float("inf")
        return (-s.score, pub_key, s.post.id)

    return sorted(scored, key=sort_key)
