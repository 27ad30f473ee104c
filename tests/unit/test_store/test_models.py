"""Unit tests for post store models."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from feedrank.store.models import Post, PostOrder, PostQuery, PostStatus
from tests.helpers.time import FIXED_NOW


class TestPost:
    """Tests for the Post model."""

    def test_defaults(self) -> None:
        """Minimal posts are published with zero engagement."""
        post = Post(id=1)

        assert post.status == PostStatus.PUBLISHED
        assert post.views_count == 0
        assert post.ranking_score is None

    def test_status_coerced_case_insensitively(self) -> None:
        """Status strings are normalized."""
        assert Post(id=1, status="Draft").status == PostStatus.DRAFT

    def test_invalid_status(self) -> None:
        """Unknown statuses are rejected."""
        with pytest.raises(ValidationError):
            Post(id=1, status="deleted")

    def test_negative_counts_rejected(self) -> None:
        """Counts are non-negative."""
        with pytest.raises(ValidationError):
            Post(id=1, views_count=-1)

    @pytest.mark.parametrize(
        ("status", "offset_hours", "expected"),
        [
            (PostStatus.PUBLISHED, -1, True),
            (PostStatus.PUBLISHED, 0, True),
            (PostStatus.PUBLISHED, 1, False),
            (PostStatus.DRAFT, -1, False),
            (PostStatus.ARCHIVED, -1, False),
        ],
    )
    def test_is_published(self, status: PostStatus, offset_hours: int, expected: bool) -> None:
        """Published status and a past publish time are both required."""
        post = Post(id=1, status=status, published_at=FIXED_NOW + timedelta(hours=offset_hours))
        assert post.is_published(FIXED_NOW) is expected

    def test_undated_never_published(self) -> None:
        """A post without publish time never qualifies."""
        assert not Post(id=1).is_published(FIXED_NOW)


class TestPostQuery:
    """Tests for PostQuery."""

    def test_defaults(self) -> None:
        """Queries default to newest first without a limit."""
        query = PostQuery(now=FIXED_NOW)

        assert query.order_by == PostOrder.PUBLISHED_AT
        assert query.limit is None
        assert query.published_since is None

    def test_negative_limit_rejected(self) -> None:
        """Limits cannot be negative."""
        with pytest.raises(ValidationError):
            PostQuery(now=FIXED_NOW, limit=-1)
