"""Integration tests for the SQLite post store."""

import tempfile
from collections.abc import Generator
from datetime import timedelta
from pathlib import Path

import pytest

from feedrank.store.errors import PostNotFoundError, StoreUnavailableError
from feedrank.store.migrations import CURRENT_VERSION
from feedrank.store.models import Post, PostOrder, PostQuery, PostStatus
from feedrank.store.store import SqlitePostStore
from tests.helpers.time import FIXED_NOW


@pytest.fixture
def temp_db_path() -> Generator[Path]:
    """Create a temporary database path."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "posts.sqlite"


@pytest.fixture
def store(temp_db_path: Path) -> Generator[SqlitePostStore]:
    """Create a connected post store."""
    store = SqlitePostStore(temp_db_path, run_id="test-run-001")
    store.connect()
    yield store
    store.close()


def _make_post(
    post_id: int,
    hours_old: float | None = 1.0,
    status: PostStatus = PostStatus.PUBLISHED,
    ranking_score: float | None = None,
    source_url: str | None = "https://example.com/a",
) -> Post:
    """Create a test Post."""
    return Post(
        id=post_id,
        title=f"Post {post_id}",
        source_url=source_url,
        status=status,
        published_at=FIXED_NOW - timedelta(hours=hours_old) if hours_old is not None else None,
        views_count=post_id * 10,
        likes_count=post_id,
        ranking_score=ranking_score,
    )


class TestConnection:
    """Tests for store connection and setup."""

    def test_connect_creates_database(self, temp_db_path: Path) -> None:
        """Connecting creates the file and applies migrations."""
        with SqlitePostStore(temp_db_path) as store:
            assert temp_db_path.exists()
            assert store.is_connected
            assert store.get_schema_version() == CURRENT_VERSION

        assert not store.is_connected

    def test_not_connected_raises(self, temp_db_path: Path) -> None:
        """Using a closed store is a store outage."""
        store = SqlitePostStore(temp_db_path)

        with pytest.raises(StoreUnavailableError):
            store.query(PostQuery(now=FIXED_NOW))

    def test_unopenable_path_raises(self, temp_db_path: Path) -> None:
        """A path that cannot be a database raises StoreUnavailableError."""
        temp_db_path.mkdir(parents=True)
        store = SqlitePostStore(temp_db_path)

        with pytest.raises(StoreUnavailableError) as exc_info:
            store.connect()

        assert exc_info.value.operation == "connect"


class TestRoundTrip:
    """Tests for writing and reading posts."""

    def test_upsert_and_get(self, store: SqlitePostStore) -> None:
        """Stored posts come back with aware UTC timestamps."""
        post = _make_post(1)
        store.upsert_post(post)

        loaded = store.get_post(1)

        assert loaded == post
        assert loaded is not None
        assert loaded.published_at is not None
        assert loaded.published_at.tzinfo is not None

    def test_upsert_replaces(self, store: SqlitePostStore) -> None:
        """Upserting an existing id updates it."""
        store.upsert_post(_make_post(1))
        store.upsert_post(_make_post(1).model_copy(update={"title": "Renamed"}))

        loaded = store.get_post(1)

        assert loaded is not None
        assert loaded.title == "Renamed"

    def test_get_missing(self, store: SqlitePostStore) -> None:
        """Unknown ids return None."""
        assert store.get_post(99) is None


class TestQuery:
    """Tests for qualifying-post queries."""

    @pytest.fixture(autouse=True)
    def _seed(self, store: SqlitePostStore) -> None:
        store.upsert_post(_make_post(1, hours_old=1, ranking_score=5.0))
        store.upsert_post(_make_post(2, hours_old=30, ranking_score=9.0))
        store.upsert_post(_make_post(3, hours_old=2))
        store.upsert_post(_make_post(4, hours_old=3, ranking_score=5.0))
        store.upsert_post(_make_post(5, hours_old=1, status=PostStatus.DRAFT))
        store.upsert_post(_make_post(6, hours_old=-1))
        store.upsert_post(_make_post(7, hours_old=None))

    def test_only_qualifying(self, store: SqlitePostStore) -> None:
        """Drafts, future and undated posts are filtered out."""
        posts = store.query(PostQuery(now=FIXED_NOW))
        assert [p.id for p in posts] == [1, 3, 4, 2]

    def test_published_since(self, store: SqlitePostStore) -> None:
        """The lower publish bound is inclusive."""
        posts = store.query(
            PostQuery(now=FIXED_NOW, published_since=FIXED_NOW - timedelta(hours=2))
        )
        assert [p.id for p in posts] == [1, 3]

    def test_ranking_score_order(self, store: SqlitePostStore) -> None:
        """Score desc, unscored last, newer first on ties."""
        posts = store.query(PostQuery(now=FIXED_NOW, order_by=PostOrder.RANKING_SCORE))
        assert [p.id for p in posts] == [2, 1, 4, 3]

    def test_limit(self, store: SqlitePostStore) -> None:
        """Limit caps the result."""
        posts = store.query(PostQuery(now=FIXED_NOW, order_by=PostOrder.RANKING_SCORE, limit=2))
        assert [p.id for p in posts] == [2, 1]

    def test_stats(self, store: SqlitePostStore) -> None:
        """Stats count statuses and scored posts."""
        stats = store.get_stats()

        assert stats["published"] == 6
        assert stats["draft"] == 1
        assert stats["archived"] == 0
        assert stats["scored"] == 3


class TestWriteScore:
    """Tests for persisting ranking scores."""

    def test_write_score(self, store: SqlitePostStore) -> None:
        """Score and timestamp are stored."""
        store.upsert_post(_make_post(1))

        store.write_score(1, 8.25, FIXED_NOW)
        loaded = store.get_post(1)

        assert loaded is not None
        assert loaded.ranking_score == 8.25
        assert loaded.ranking_calculated_at == FIXED_NOW

    def test_write_score_missing_post(self, store: SqlitePostStore) -> None:
        """Writing a score for an unknown post raises."""
        with pytest.raises(PostNotFoundError) as exc_info:
            store.write_score(42, 1.0, FIXED_NOW)

        assert exc_info.value.post_id == 42
