"""SQLite post store implementation."""

import sqlite3
import time
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path

import structlog

from feedrank.store.errors import PostNotFoundError, StoreUnavailableError
from feedrank.store.migrations import CURRENT_VERSION, MigrationManager
from feedrank.store.models import Post, PostOrder, PostQuery, PostStatus, PostType


logger = structlog.get_logger()

_ORDER_SQL: dict[PostOrder, str] = {
    PostOrder.RANKING_SCORE: (
        "ranking_score IS NULL, ranking_score DESC, published_at DESC, id ASC"
    ),
    PostOrder.PUBLISHED_AT: "published_at DESC, id ASC",
}


def _to_db(value: datetime | None) -> str | None:
    """Serialize a timestamp as a UTC ISO string.

    Naive datetimes are assumed to already be UTC. Keeping every stored
    value in one offset makes lexical comparison in SQL match time order.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


def _from_db(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SqlitePostStore:
    """SQLite-backed post store.

    Reads qualifying posts for the ranking engine and accepts precomputed
    ranking scores back. Every sqlite3 failure surfaces as
    StoreUnavailableError.
    """

    def __init__(self, db_path: Path | str, run_id: str | None = None) -> None:
        """Initialize the post store.

        Args:
            db_path: Path to SQLite database file.
            run_id: Optional run ID for logging context.
        """
        self._db_path = Path(db_path) if isinstance(db_path, str) else db_path
        self._run_id = run_id or str(uuid.uuid4())
        self._conn: sqlite3.Connection | None = None
        self._log = logger.bind(
            component="store",
            run_id=self._run_id,
            db_path=str(self._db_path),
        )

    @property
    def db_path(self) -> Path:
        """Get the database path."""
        return self._db_path

    @property
    def is_connected(self) -> bool:
        """Check if connected to database."""
        return self._conn is not None

    def connect(self) -> None:
        """Open connection to database and apply migrations.

        Raises:
            StoreUnavailableError: If the database cannot be opened.
        """
        if self._conn is not None:
            return

        self._log.info("connecting_to_database")

        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self._db_path))
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")

            migration_mgr = MigrationManager(conn)
            old_version = migration_mgr.get_current_version()
            applied = migration_mgr.apply_migrations()
        except (sqlite3.Error, OSError) as e:
            self._log.error("database_connect_failed", error=str(e))
            raise StoreUnavailableError(str(e), operation="connect") from e

        self._conn = conn
        self._log.info(
            "database_connected",
            old_version=old_version,
            new_version=CURRENT_VERSION,
            migrations_applied=applied,
        )

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            self._log.info("database_closed")

    def __enter__(self) -> "SqlitePostStore":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Context manager exit."""
        self.close()

    def _ensure_connected(self) -> sqlite3.Connection:
        """Ensure database is connected.

        Returns:
            The database connection.

        Raises:
            StoreUnavailableError: If not connected.
        """
        if self._conn is None:
            raise StoreUnavailableError(
                "Database not connected. Call connect() first."
            )
        return self._conn

    @contextmanager
    def _transaction(self, operation: str) -> Generator[sqlite3.Connection]:
        """Context manager for write transactions with timing and logging.

        Args:
            operation: Name of the operation for logging.

        Yields:
            The open connection.

        Raises:
            StoreUnavailableError: If the transaction fails.
        """
        conn = self._ensure_connected()
        start_ns = time.perf_counter_ns()

        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            self._log.error("transaction_failed", op=operation, error=str(e))
            raise StoreUnavailableError(str(e), operation=operation) from e
        except Exception:
            conn.rollback()
            raise

        duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
        self._log.debug(
            "transaction_complete",
            op=operation,
            duration_ms=round(duration_ms, 2),
        )

    def _fetch(self, operation: str, sql: str, params: tuple[object, ...]) -> list[sqlite3.Row]:
        conn = self._ensure_connected()
        try:
            return conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            self._log.error("query_failed", op=operation, error=str(e))
            raise StoreUnavailableError(str(e), operation=operation) from e

    # ===== Writes =====

    def upsert_post(self, post: Post) -> None:
        """Insert or replace a post.

        Args:
            post: Post to store.
        """
        with self._transaction("upsert_post") as conn:
            conn.execute(
                """
                INSERT INTO posts (
                    id, title, source_url, status, type, published_at,
                    views_count, likes_count, ranking_score, ranking_calculated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title = excluded.title,
                    source_url = excluded.source_url,
                    status = excluded.status,
                    type = excluded.type,
                    published_at = excluded.published_at,
                    views_count = excluded.views_count,
                    likes_count = excluded.likes_count,
                    ranking_score = excluded.ranking_score,
                    ranking_calculated_at = excluded.ranking_calculated_at
                """,
                (
                    post.id,
                    post.title,
                    post.source_url,
                    post.status.value,
                    post.type.value,
                    _to_db(post.published_at),
                    post.views_count,
                    post.likes_count,
                    post.ranking_score,
                    _to_db(post.ranking_calculated_at),
                ),
            )

    def write_score(self, post_id: int, score: float, calculated_at: datetime) -> None:
        """Persist a precomputed ranking score.

        Args:
            post_id: Post to update.
            score: Ranking score.
            calculated_at: When the score was computed.

        Raises:
            PostNotFoundError: If the post does not exist.
        """
        with self._transaction("write_score") as conn:
            cursor = conn.execute(
                """
                UPDATE posts SET ranking_score = ?, ranking_calculated_at = ?
                WHERE id = ?
                """,
                (score, _to_db(calculated_at), post_id),
            )
            affected = cursor.rowcount

        if affected == 0:
            raise PostNotFoundError(post_id)

    # ===== Reads =====

    def get_post(self, post_id: int) -> Post | None:
        """Get a post by ID regardless of status.

        Args:
            post_id: The post ID to look up.

        Returns:
            The Post, or None if not found.
        """
        rows = self._fetch("get_post", "SELECT * FROM posts WHERE id = ?", (post_id,))
        return self._row_to_post(rows[0]) if rows else None

    def query(self, query: PostQuery) -> list[Post]:
        """Fetch qualifying posts.

        Args:
            query: Filter, ordering and limit.

        Returns:
            Posts with status=published and published_at <= now.
        """
        sql = [
            "SELECT * FROM posts",
            "WHERE status = ? AND published_at IS NOT NULL AND published_at <= ?",
        ]
        params: list[object] = [PostStatus.PUBLISHED.value, _to_db(query.now)]

        if query.published_since is not None:
            sql.append("AND published_at >= ?")
            params.append(_to_db(query.published_since))

        sql.append(f"ORDER BY {_ORDER_SQL[query.order_by]}")

        if query.limit is not None:
            sql.append("LIMIT ?")
            params.append(query.limit)

        rows = self._fetch("query", "\n".join(sql), tuple(params))
        return [self._row_to_post(row) for row in rows]

    def get_stats(self) -> dict[str, int]:
        """Get post counts by status plus scored count.

        Returns:
            Dictionary of counter name to value.
        """
        stats: dict[str, int] = {status.value: 0 for status in PostStatus}
        for row in self._fetch(
            "get_stats", "SELECT status, COUNT(*) AS n FROM posts GROUP BY status", ()
        ):
            stats[row["status"]] = row["n"]

        scored = self._fetch(
            "get_stats",
            "SELECT COUNT(*) AS n FROM posts WHERE ranking_score IS NOT NULL",
            (),
        )
        stats["scored"] = scored[0]["n"]
        return stats

    def get_schema_version(self) -> int:
        """Get current schema version.

        Returns:
            Current schema version number.
        """
        conn = self._ensure_connected()
        try:
            return MigrationManager(conn).get_current_version()
        except sqlite3.Error as e:
            raise StoreUnavailableError(str(e), operation="get_schema_version") from e

    def _row_to_post(self, row: sqlite3.Row) -> Post:
        """Convert a database row to a Post.

        Args:
            row: Database row.

        Returns:
            Post instance.
        """
        return Post(
            id=row["id"],
            title=row["title"],
            source_url=row["source_url"],
            status=PostStatus(row["status"]),
            type=PostType(row["type"]),
            published_at=_from_db(row["published_at"]),
            views_count=row["views_count"],
            likes_count=row["likes_count"],
            ranking_score=row["ranking_score"],
            ranking_calculated_at=_from_db(row["ranking_calculated_at"]),
        )
