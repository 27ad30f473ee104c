"""Integration tests for ranking over a real SQLite store."""

import tempfile
from collections.abc import Generator
from datetime import timedelta
from pathlib import Path

import pytest

from feedrank.cache.backend import InMemoryCache
from feedrank.config.schemas import RankingConfig, WeightsConfig
from feedrank.ranker.domain import normalize_domain
from feedrank.ranker.metrics import RankerMetrics
from feedrank.ranker.service import ContentRankingService
from feedrank.store.models import Post
from feedrank.store.store import SqlitePostStore
from tests.helpers.time import FIXED_NOW


@pytest.fixture
def store() -> Generator[SqlitePostStore]:
    """Create a connected store seeded with a skewed inventory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = SqlitePostStore(Path(tmpdir) / "posts.sqlite", run_id="test")
        store.connect()

        sources = ["laravel.com"] * 5 + ["stitcher.io"] * 3 + ["dev.to", "unknown-blog.com"]
        for post_id, source in enumerate(sources, start=1):
            store.upsert_post(
                Post(
                    id=post_id,
                    title=f"Post {post_id}",
                    source_url=f"https://{source}/p/{post_id}",
                    published_at=FIXED_NOW - timedelta(hours=post_id),
                    views_count=200 - post_id * 10,
                    likes_count=20 - post_id,
                )
            )

        yield store
        store.close()


class TestRankingPipeline:
    """End-to-end ranking tests."""

    def test_precompute_then_serve(self, store: SqlitePostStore) -> None:
        """Scores written by the job drive the anonymous feed."""
        service = ContentRankingService(store, InMemoryCache(), metrics=RankerMetrics())

        written = service.recalculate_scores(now=FIXED_NOW)
        feed = service.get_ranked_posts_for_anonymous_user(6, now=FIXED_NOW)

        assert written == 10
        assert len(feed) == 6
        domains = [normalize_domain(p.source_url) for p in feed]
        assert all(
            not (domains[i] == domains[i + 1] == domains[i + 2]) for i in range(len(domains) - 2)
        )
        for post in feed:
            assert post.ranking_score == pytest.approx(
                service.calculate_content_score(post, now=FIXED_NOW)
            )

    def test_hero_from_store(self, store: SqlitePostStore) -> None:
        """Hero content respects the threshold and the limit."""
        service = ContentRankingService(store, InMemoryCache(), metrics=RankerMetrics())

        hero = service.get_hero_content(3, now=FIXED_NOW)

        assert 0 < len(hero) <= 3
        for post in hero:
            assert service.calculate_content_score(post, now=FIXED_NOW) >= 7.0

    def test_four_factor_penalizes_dominant_source(self, store: SqlitePostStore) -> None:
        """The dominant source loses diversity points under four factors."""
        config = RankingConfig(weights=WeightsConfig.preset("four_factor"))
        service = ContentRankingService(
            store, InMemoryCache(), config=config, metrics=RankerMetrics()
        )

        distribution = service.get_source_distribution(now=FIXED_NOW)
        laravel = service.get_score_breakdown(store.get_post(1), now=FIXED_NOW)  # type: ignore[arg-type]
        rare = service.get_score_breakdown(store.get_post(9), now=FIXED_NOW)  # type: ignore[arg-type]

        assert distribution["laravel.com"].percentage == pytest.approx(50.0)
        assert laravel.source_diversity is not None
        assert rare.source_diversity is not None
        assert laravel.source_diversity.score == 4.0
        assert rare.source_diversity.score == 7.0
