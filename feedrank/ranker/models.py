"""Data models for the content ranker."""

from dataclasses import dataclass, field

from feedrank.store.models import Post


@dataclass(frozen=True)
class SourceShare:
    """A domain's share of qualifying posts.

    Attributes:
        count: Posts from the domain.
        percentage: count / total qualifying posts * 100.
    """

    count: int
    percentage: float

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary for serialization."""
        return {"count": self.count, "percentage": self.percentage}


@dataclass(frozen=True)
class SignalScore:
    """One weighted signal in a score breakdown.

    Attributes:
        score: Raw signal value (0-10).
        weight: Configured weight.
        weighted_score: score * weight.
    """

    score: float
    weight: float
    weighted_score: float

    @classmethod
    def of(cls, score: float, weight: float) -> "SignalScore":
        """Build a signal entry from score and weight."""
        return cls(score=score, weight=weight, weighted_score=score * weight)


@dataclass(frozen=True)
class ScoreBreakdown:
    """Per-signal explanation of a post's total score.

    Reporting view only; never persisted.

    Attributes:
        source_authority: Authority signal.
        recency: Recency signal.
        engagement: Engagement signal.
        source_diversity: Diversity signal, None when its weight is zero.
        total_score: Sum of weighted scores.
        domain: Normalized source domain.
        hours_old: Hours since publish, None when unpublished.
        views: View count.
        likes: Like count.
        engagement_rate: Likes per hundred views, rounded to 2 places.
    """

    source_authority: SignalScore
    recency: SignalScore
    engagement: SignalScore
    source_diversity: SignalScore | None
    total_score: float
    domain: str
    hours_old: float | None
    views: int
    likes: int
    engagement_rate: float

    def to_dict(self) -> dict[str, object]:
        """Convert to the nested reporting structure.

        Returns:
            Mapping of signal name to {score, weight, weighted_score, ...}
            plus total_score.
        """
        result: dict[str, object] = {
            "source_authority": {
                "score": self.source_authority.score,
                "weight": self.source_authority.weight,
                "weighted_score": self.source_authority.weighted_score,
                "domain": self.domain,
            },
            "recency": {
                "score": self.recency.score,
                "weight": self.recency.weight,
                "weighted_score": self.recency.weighted_score,
                "hours_old": self.hours_old,
            },
            "engagement": {
                "score": self.engagement.score,
                "weight": self.engagement.weight,
                "weighted_score": self.engagement.weighted_score,
                "views": self.views,
                "likes": self.likes,
                "engagement_rate": self.engagement_rate,
            },
        }
        if self.source_diversity is not None:
            result["source_diversity"] = {
                "score": self.source_diversity.score,
                "weight": self.source_diversity.weight,
                "weighted_score": self.source_diversity.weighted_score,
                "domain": self.domain,
            }
        result["total_score"] = self.total_score
        return result


@dataclass
class ScoredPost:
    """A post with its freshly computed score.

    Attributes:
        post: The scored post.
        score: Total weighted score.
    """

    post: Post
    score: float


@dataclass
class ReorderStats:
    """Counters from one diversity reordering.

    Attributes:
        candidates_in: Candidates offered.
        placed_first_pass: Posts placed in score order.
        deferred: Posts deferred by the consecutive-source rule.
        placed_from_deferred: Deferred posts placed on the retry pass.
        backfilled: Deferred posts appended without a legal slot.
        deferred_by_source: Deferral count per domain.
    """

    candidates_in: int = 0
    placed_first_pass: int = 0
    deferred: int = 0
    placed_from_deferred: int = 0
    backfilled: int = 0
    deferred_by_source: dict[str, int] = field(default_factory=dict)
