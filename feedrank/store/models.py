"""Data models for the post store."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PostStatus(str, Enum):
    """Editorial status of a post.

    Only PUBLISHED posts are visible to the ranking engine.
    """

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class PostType(str, Enum):
    """Kind of content a post points at."""

    POST = "post"
    VIDEO = "video"
    PODCAST = "podcast"


class PostOrder(str, Enum):
    """Result ordering for post queries.

    - RANKING_SCORE: persisted ranking_score desc (NULL last), then
      published_at desc
    - PUBLISHED_AT: published_at desc
    """

    RANKING_SCORE = "ranking_score"
    PUBLISHED_AT = "published_at"


class Post(BaseModel):
    """A scraped article, video or podcast episode.

    ranking_score is a cache column written by the score recalculation job;
    it can always be recomputed from the other fields.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: Annotated[int, Field(ge=0, description="Post identifier")]
    title: str = Field(default="", description="Post title")
    source_url: str | None = Field(default=None, description="Original URL")
    status: PostStatus = Field(default=PostStatus.PUBLISHED)
    type: PostType = Field(default=PostType.POST)
    published_at: datetime | None = Field(
        default=None, description="Publication timestamp (nullable)"
    )
    views_count: Annotated[int, Field(ge=0)] = 0
    likes_count: Annotated[int, Field(ge=0)] = 0
    ranking_score: float | None = Field(
        default=None, description="Precomputed ranking score (nullable)"
    )
    ranking_calculated_at: datetime | None = Field(
        default=None, description="When ranking_score was computed"
    )

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, v: Any) -> PostStatus:
        """Coerce string to PostStatus enum."""
        if isinstance(v, PostStatus):
            return v
        if isinstance(v, str):
            return PostStatus(v.lower())
        msg = f"Invalid status: {v}"
        raise ValueError(msg)

    def is_published(self, now: datetime) -> bool:
        """Check whether the post qualifies as published at ``now``.

        Args:
            now: Reference timestamp.

        Returns:
            True if status is published and published_at <= now.
        """
        return (
            self.status == PostStatus.PUBLISHED
            and self.published_at is not None
            and self.published_at <= now
        )


class PostQuery(BaseModel):
    """Filter for post store queries.

    Queries always return qualifying posts only: status=published and
    published_at <= now.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    now: datetime
    published_since: datetime | None = None
    order_by: PostOrder = PostOrder.PUBLISHED_AT
    limit: Annotated[int | None, Field(ge=0)] = None
