"""Signal calculators for content scoring.

Each signal is a pure function of a post and an explicit ``now`` and
returns a value on a 0-10 scale. None of them raise on missing data.
"""

import math
from collections.abc import Mapping
from datetime import UTC, datetime

from feedrank.ranker.authority import DomainAuthorityTable
from feedrank.ranker.constants import (
    DIVERSITY_NEUTRAL_SCORE,
    DIVERSITY_STEPS,
    DIVERSITY_UNDERREPRESENTED_SCORE,
    ENGAGEMENT_LOG_SCALE,
    ENGAGEMENT_RATE_WEIGHT,
    LIKE_VELOCITY_MULTIPLIER,
    LIKE_VELOCITY_WEIGHT,
    MAX_SIGNAL_SCORE,
    RECENCY_FRESH_HOURS,
    RECENCY_TAIL_DECAY_HOURS,
    RECENCY_TAIL_SCORE,
    RECENCY_WEEK_DECAY_HOURS,
    RECENCY_WEEK_HOURS,
    VIEW_VELOCITY_WEIGHT,
)
from feedrank.ranker.domain import normalize_domain
from feedrank.ranker.models import SourceShare
from feedrank.store.models import Post


def as_utc(value: datetime) -> datetime:
    """Treat a naive datetime as UTC."""
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


def hours_since_publish(post: Post, now: datetime) -> float | None:
    """Fractional hours between publish time and now.

    Future publish times clamp to 0.

    Args:
        post: Post to inspect.
        now: Reference timestamp.

    Returns:
        Hours since publish, or None when the post has no publish time.
    """
    if post.published_at is None:
        return None
    delta = as_utc(now) - as_utc(post.published_at)
    return max(delta.total_seconds() / 3600.0, 0.0)


def source_authority_score(post: Post, table: DomainAuthorityTable) -> float:
    """Authority of the post's source domain."""
    return table.authority_score(post.source_url)


def recency_score(post: Post, now: datetime) -> float:
    """Compute recency decay score.

    Flat maximum for the first day, slow exponential decay through the
    first week, then a lower tail decaying over roughly a month.

    Args:
        post: Post to score.
        now: Reference timestamp.

    Returns:
        Recency score (0.0 when unpublished).
    """
    hours = hours_since_publish(post, now)
    if hours is None:
        return 0.0

    if hours <= RECENCY_FRESH_HOURS:
        return MAX_SIGNAL_SCORE
    if hours <= RECENCY_WEEK_HOURS:
        return MAX_SIGNAL_SCORE * math.exp(
            -(hours - RECENCY_FRESH_HOURS) / RECENCY_WEEK_DECAY_HOURS
        )
    return RECENCY_TAIL_SCORE * math.exp(
        -(hours - RECENCY_WEEK_HOURS) / RECENCY_TAIL_DECAY_HOURS
    )


def engagement_rate(post: Post) -> float:
    """Likes per hundred views, 0 when there are no views."""
    if post.views_count <= 0:
        return 0.0
    return post.likes_count / post.views_count * 100.0


def engagement_score(post: Post, now: datetime) -> float:
    """Compute engagement velocity score.

    Views and likes are normalized by hours live (at least 1), blended with
    the like rate, then compressed logarithmically into 0-10.

    Args:
        post: Post to score.
        now: Reference timestamp.

    Returns:
        Engagement score.
    """
    hours_live = max(hours_since_publish(post, now) or 1.0, 1.0)

    view_velocity = post.views_count / hours_live
    like_velocity = post.likes_count / hours_live

    raw = (
        view_velocity * VIEW_VELOCITY_WEIGHT
        + like_velocity * LIKE_VELOCITY_MULTIPLIER * LIKE_VELOCITY_WEIGHT
        + engagement_rate(post) * ENGAGEMENT_RATE_WEIGHT
    )

    return max(0.0, min(MAX_SIGNAL_SCORE, math.log(raw + 1.0) * ENGAGEMENT_LOG_SCALE))


def diversity_score_for_share(percentage: float) -> float:
    """Map a source's share of all posts to a diversity score.

    Dominant sources are penalized, underrepresented ones boosted.

    Args:
        percentage: Share of qualifying posts, 0-100.

    Returns:
        Diversity score.
    """
    for threshold, score in DIVERSITY_STEPS:
        if percentage > threshold:
            return score
    return DIVERSITY_UNDERREPRESENTED_SCORE


def source_diversity_score(
    post: Post, distribution: Mapping[str, SourceShare]
) -> float:
    """Compute source diversity score from a source distribution.

    Args:
        post: Post to score.
        distribution: Domain to share mapping.

    Returns:
        Diversity score (neutral for unknown or unseen sources).
    """
    if not post.source_url:
        return DIVERSITY_NEUTRAL_SCORE

    share = distribution.get(normalize_domain(post.source_url))
    if share is None:
        return DIVERSITY_NEUTRAL_SCORE

    return diversity_score_for_share(share.percentage)
