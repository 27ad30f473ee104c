"""Unit tests for the content ranking service facades."""

from datetime import timedelta

import pytest

from feedrank.cache.backend import InMemoryCache
from feedrank.cache.errors import CacheUnavailableError
from feedrank.config.schemas import RankingConfig, ThresholdsConfig, WeightsConfig
from feedrank.ranker.metrics import RankerMetrics
from feedrank.ranker.service import ContentRankingService
from feedrank.store.errors import StoreUnavailableError
from feedrank.store.models import Post, PostOrder, PostStatus
from tests.helpers.fakes import FailingCache, FailingPostStore, FakeClock, FakePostStore
from tests.helpers.time import FIXED_NOW


def _make_post(
    post_id: int,
    source: str | None = "example.com",
    hours_old: float | None = 1.0,
    views: int = 0,
    likes: int = 0,
    status: PostStatus = PostStatus.PUBLISHED,
    ranking_score: float | None = None,
    scored_hours_ago: float | None = None,
) -> Post:
    """Create a test Post."""
    return Post(
        id=post_id,
        title=f"Post {post_id}",
        source_url=f"https://{source}/p/{post_id}" if source else None,
        status=status,
        published_at=FIXED_NOW - timedelta(hours=hours_old) if hours_old is not None else None,
        views_count=views,
        likes_count=likes,
        ranking_score=ranking_score,
        ranking_calculated_at=(
            FIXED_NOW - timedelta(hours=scored_hours_ago) if scored_hours_ago is not None else None
        ),
    )


def _make_service(
    store: object,
    cache: object | None = None,
    config: RankingConfig | None = None,
) -> ContentRankingService:
    """Create a service with isolated metrics."""
    return ContentRankingService(
        store,  # type: ignore[arg-type]
        cache or InMemoryCache(),  # type: ignore[arg-type]
        config=config,
        metrics=RankerMetrics(),
        run_id="test",
    )


def _hero_inventory() -> list[Post]:
    """Ten fresh candidates scoring roughly 4.8 to 9.7, plus one stale post."""
    return [
        _make_post(1, "laravel.com", views=100, likes=10),
        _make_post(2, "laracasts.com", views=50, likes=5),
        _make_post(3, "stitcher.io", views=20, likes=2),
        _make_post(4, "spatie.be", views=10, likes=1),
        _make_post(5, "tighten.co"),
        _make_post(6, "dev.to"),
        _make_post(7, "medium.com"),
        _make_post(8, "hackernoon.com"),
        _make_post(9, "blog.foo.com"),
        _make_post(10, "unknown-blog.com", views=5),
        _make_post(11, "laravel.com", hours_old=24 * 10, views=10_000, likes=900),
    ]


class TestHeroContent:
    """Tests for get_hero_content."""

    def test_only_high_scores_returned(self) -> None:
        """Only posts at or above the threshold, at most limit."""
        service = _make_service(FakePostStore(_hero_inventory()))

        hero = service.get_hero_content(3, now=FIXED_NOW)

        assert len(hero) <= 3
        assert [p.id for p in hero] == [1, 2, 3]
        for post in hero:
            assert service.calculate_content_score(post, now=FIXED_NOW) >= 7.0

    def test_window_excludes_old_posts(self) -> None:
        """Posts older than the hero window never appear."""
        service = _make_service(FakePostStore(_hero_inventory()))

        hero = service.get_hero_content(10, now=FIXED_NOW)

        assert 11 not in [p.id for p in hero]
        assert [p.id for p in hero] == [1, 2, 3, 4]

    def test_threshold_configurable(self) -> None:
        """A lower threshold admits more posts."""
        config = RankingConfig(thresholds=ThresholdsConfig(hero_min_score=5.5))
        service = _make_service(FakePostStore(_hero_inventory()), config=config)

        hero = service.get_hero_content(10, now=FIXED_NOW)

        assert [p.id for p in hero] == [1, 2, 3, 4, 5]

    def test_cached_per_limit(self) -> None:
        """Repeated calls within the TTL do not hit the store."""
        store = FakePostStore(_hero_inventory())
        cache = InMemoryCache()
        service = _make_service(store, cache)

        first = service.get_hero_content(3, now=FIXED_NOW)
        second = service.get_hero_content(3, now=FIXED_NOW)

        assert first == second
        assert len(store.queries) == 1
        assert cache.get("hero_content_3") == first

    def test_expires_after_ttl(self) -> None:
        """Hero results are recomputed after ten minutes."""
        store = FakePostStore(_hero_inventory())
        clock = FakeClock()
        service = _make_service(store, InMemoryCache(clock=clock))

        service.get_hero_content(3, now=FIXED_NOW)
        clock.advance(599)
        service.get_hero_content(3, now=FIXED_NOW)
        clock.advance(1)
        service.get_hero_content(3, now=FIXED_NOW)

        assert len(store.queries) == 2


class TestTrendingPosts:
    """Tests for get_trending_posts."""

    def _inventory(self) -> list[Post]:
        return [
            _make_post(1, "laravel.com", hours_old=2, views=50),
            _make_post(2, "a.com", hours_old=3, views=5),
            _make_post(3, "b.com", hours_old=5, likes=3),
            _make_post(4, "laravel.com", hours_old=30, views=500),
            _make_post(5, "laravel.com", hours_old=1, views=100, status=PostStatus.DRAFT),
            _make_post(6, "c.com", hours_old=None, views=1000),
        ]

    def test_window_and_traction_filter(self) -> None:
        """Recent posts with enough views or likes, best first."""
        service = _make_service(FakePostStore(self._inventory()))

        trending = service.get_trending_posts(10, now=FIXED_NOW)

        assert [p.id for p in trending] == [1, 3]

    def test_wider_window(self) -> None:
        """The window can be widened per call."""
        service = _make_service(FakePostStore(self._inventory()))

        trending = service.get_trending_posts(10, window_hours=48, now=FIXED_NOW)

        assert {p.id for p in trending} == {1, 3, 4}

    def test_truncates_to_limit(self) -> None:
        """At most limit posts are returned."""
        service = _make_service(FakePostStore(self._inventory()))

        assert len(service.get_trending_posts(1, now=FIXED_NOW)) == 1

    def test_cache_key_includes_window(self) -> None:
        """Each (limit, window) pair has its own entry."""
        store = FakePostStore(self._inventory())
        cache = InMemoryCache()
        service = _make_service(store, cache)

        service.get_trending_posts(10, now=FIXED_NOW)
        service.get_trending_posts(10, window_hours=48, now=FIXED_NOW)
        service.get_trending_posts(10, now=FIXED_NOW)

        assert cache.get("trending_posts_10_24") is not None
        assert cache.get("trending_posts_10_48") is not None
        assert len(store.queries) == 2


class TestAnonymousRanking:
    """Tests for get_ranked_posts_for_anonymous_user."""

    def _inventory(self) -> list[Post]:
        return [
            _make_post(1, "a.com", ranking_score=9.0, scored_hours_ago=1),
            _make_post(2, "a.com", ranking_score=8.5, scored_hours_ago=1),
            _make_post(3, "a.com", ranking_score=8.0, scored_hours_ago=1),
            _make_post(4, "b.com", ranking_score=7.0, scored_hours_ago=1),
            _make_post(5, "c.com"),
            _make_post(6, "d.com", ranking_score=9.9, status=PostStatus.ARCHIVED),
        ]

    def test_persisted_scores_with_diversity(self) -> None:
        """Persisted order, unscored last, third same-source post deferred."""
        service = _make_service(FakePostStore(self._inventory()))

        result = service.get_ranked_posts_for_anonymous_user(4, now=FIXED_NOW)

        assert [p.id for p in result] == [1, 2, 4, 5]

    def test_overfetches_candidates(self) -> None:
        """The store is asked for three times the limit by ranking score."""
        store = FakePostStore(self._inventory())
        service = _make_service(store)

        service.get_ranked_posts_for_anonymous_user(4, now=FIXED_NOW)

        query = store.queries[-1]
        assert query.limit == 12
        assert query.order_by == PostOrder.RANKING_SCORE

    def test_not_cached(self) -> None:
        """Every call reads the store."""
        store = FakePostStore(self._inventory())
        service = _make_service(store)

        service.get_ranked_posts_for_anonymous_user(4, now=FIXED_NOW)
        service.get_ranked_posts_for_anonymous_user(4, now=FIXED_NOW)

        assert len(store.queries) == 2

    def test_zero_limit(self) -> None:
        """A zero limit returns nothing without querying."""
        store = FakePostStore(self._inventory())
        service = _make_service(store)

        assert service.get_ranked_posts_for_anonymous_user(0, now=FIXED_NOW) == []
        assert store.queries == []


class TestRankPosts:
    """Tests for inline ranking."""

    def test_returns_every_post_diversified(self) -> None:
        """Inline ranking keeps all posts and breaks long source runs."""
        posts = [
            _make_post(1, "laravel.com", views=100, likes=10),
            _make_post(2, "laravel.com", views=90, likes=9),
            _make_post(3, "laravel.com", views=80, likes=8),
            _make_post(4, "unknown-blog.com"),
        ]
        service = _make_service(FakePostStore(posts))

        ranked = service.rank_posts(posts, now=FIXED_NOW)

        assert [p.id for p in ranked] == [1, 2, 4, 3]


class TestRecalculateScores:
    """Tests for the score recalculation job."""

    def _inventory(self) -> list[Post]:
        return [
            _make_post(1, "laravel.com", views=10),
            _make_post(2, "a.com", ranking_score=5.0, scored_hours_ago=1),
            _make_post(3, "b.com", ranking_score=5.0, scored_hours_ago=7),
            _make_post(4, "c.com", status=PostStatus.DRAFT),
        ]

    def test_only_missing_or_stale(self) -> None:
        """Fresh scores are left alone."""
        store = FakePostStore(self._inventory())
        service = _make_service(store)

        count = service.recalculate_scores(now=FIXED_NOW)

        assert count == 2
        assert [w[0] for w in store.writes] == [1, 3]

    def test_force_rescores_all_qualifying(self) -> None:
        """Force rewrites every published post."""
        store = FakePostStore(self._inventory())
        service = _make_service(store)

        assert service.recalculate_scores(now=FIXED_NOW, force=True) == 3

    def test_written_score_matches_inline_score(self) -> None:
        """The persisted score is reproducible from the post."""
        store = FakePostStore(self._inventory())
        service = _make_service(store)

        service.recalculate_scores(now=FIXED_NOW)

        post = store.posts[0]
        assert post.ranking_calculated_at == FIXED_NOW
        assert post.ranking_score == pytest.approx(
            service.calculate_content_score(post, now=FIXED_NOW)
        )


class TestConfiguration:
    """Tests for get_configuration."""

    def test_sections(self) -> None:
        """Introspection exposes weights, table and version."""
        service = _make_service(FakePostStore())

        config = service.get_configuration()

        assert config["weights"] == {"source_authority": 0.4, "recency": 0.3, "engagement": 0.3}
        assert config["version"] == "1.0.0"
        table = config["source_authority_table"]
        assert isinstance(table, dict)
        assert table["exact"]["laravel.com"] == 10
        assert {"cache", "thresholds", "diversity"} <= set(config)

    def test_four_factor_weights_listed(self) -> None:
        """A non-zero diversity weight appears in the weights section."""
        config = RankingConfig(weights=WeightsConfig.preset("four_factor"))
        service = _make_service(FakePostStore(), config=config)

        weights = service.get_configuration()["weights"]

        assert weights == {
            "source_authority": 0.35,
            "recency": 0.3,
            "engagement": 0.25,
            "source_diversity": 0.1,
        }


class TestBackendFailures:
    """Tests for store and cache outage propagation."""

    def test_store_failure_propagates_from_cached_facade(self) -> None:
        """A store outage is not turned into an empty result."""
        service = _make_service(FailingPostStore())

        with pytest.raises(StoreUnavailableError):
            service.get_trending_posts(10, now=FIXED_NOW)
        with pytest.raises(StoreUnavailableError):
            service.get_hero_content(3, now=FIXED_NOW)

    def test_store_failure_not_cached(self) -> None:
        """A failed computation leaves no cache entry behind."""
        cache = InMemoryCache()
        service = _make_service(FailingPostStore(), cache)

        for _ in range(2):
            with pytest.raises(StoreUnavailableError):
                service.get_hero_content(3, now=FIXED_NOW)

        assert cache.get("hero_content_3") is None

    def test_store_failure_anonymous_and_recalculate(self) -> None:
        """Uncached paths raise the store error too."""
        service = _make_service(FailingPostStore())

        with pytest.raises(StoreUnavailableError):
            service.get_ranked_posts_for_anonymous_user(10, now=FIXED_NOW)
        with pytest.raises(StoreUnavailableError):
            service.recalculate_scores(now=FIXED_NOW)

    def test_cache_failure_propagates(self) -> None:
        """A cache outage raises its own kind."""
        service = _make_service(FakePostStore(_hero_inventory()), FailingCache())

        with pytest.raises(CacheUnavailableError):
            service.get_hero_content(3, now=FIXED_NOW)
        with pytest.raises(CacheUnavailableError):
            service.get_trending_posts(10, now=FIXED_NOW)

    def test_cache_failure_reaches_diversity_scoring(self) -> None:
        """With a diversity weight, scoring depends on the cache."""
        config = RankingConfig(weights=WeightsConfig.preset("four_factor"))
        service = _make_service(FakePostStore(_hero_inventory()), FailingCache(), config)

        with pytest.raises(CacheUnavailableError):
            service.calculate_content_score(_make_post(1), now=FIXED_NOW)

    def test_uncached_paths_survive_cache_failure(self) -> None:
        """Three-factor scoring and the anonymous feed never touch the cache."""
        service = _make_service(FakePostStore(_hero_inventory()), FailingCache())

        assert service.calculate_content_score(_make_post(1), now=FIXED_NOW) > 0
        assert len(service.get_ranked_posts_for_anonymous_user(5, now=FIXED_NOW)) == 5
