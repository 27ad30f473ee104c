"""Content ranker: scoring, source diversity and feed facades.

Posts are scored from source authority, recency, engagement velocity and
(optionally) source diversity, then reordered so no single source fills
more than two consecutive slots.
"""

from feedrank.ranker.authority import DomainAuthorityTable, authority_score
from feedrank.ranker.distribution import SourceDistribution, compute_source_distribution
from feedrank.ranker.diversity import DiversityReorderer, apply_source_diversity
from feedrank.ranker.domain import normalize_domain
from feedrank.ranker.metrics import RankerMetrics
from feedrank.ranker.models import (
    ReorderStats,
    ScoreBreakdown,
    ScoredPost,
    SignalScore,
    SourceShare,
)
from feedrank.ranker.scorer import ContentScorer, sort_scored_posts
from feedrank.ranker.service import ContentRankingService, describe_configuration


__all__ = [
    "ContentRankingService",
    "ContentScorer",
    "DiversityReorderer",
    "DomainAuthorityTable",
    "RankerMetrics",
    "ReorderStats",
    "ScoreBreakdown",
    "ScoredPost",
    "SignalScore",
    "SourceDistribution",
    "SourceShare",
    "apply_source_diversity",
    "authority_score",
    "compute_source_distribution",
    "describe_configuration",
    "normalize_domain",
    "sort_scored_posts",
]
