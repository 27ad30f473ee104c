"""Metrics collection for the ranker module."""

from collections import deque
from dataclasses import dataclass, field
from threading import Lock
from typing import ClassVar

from feedrank.ranker.constants import SCORE_SAMPLE_LIMIT


@dataclass
class RankerMetrics:
    """Metrics for ranker operations.

    Safe to share between threads; every update holds the instance lock.

    Attributes:
        posts_scored: Number of score computations.
        score_values: Most recent computed scores for percentile calculation.
        deferred_total: Posts deferred by the diversity rule.
        backfilled_total: Deferred posts appended without a legal slot.
        deferred_by_source: Deferral count per domain.
        scores_written: Scores persisted by the recalculation job.
        scoring_duration_ms: Time spent in the last batch scoring.
        reorder_duration_ms: Time spent in the last diversity reordering.
    """

    posts_scored: int = 0
    score_values: deque[float] = field(
        default_factory=lambda: deque(maxlen=SCORE_SAMPLE_LIMIT)
    )
    deferred_total: int = 0
    backfilled_total: int = 0
    deferred_by_source: dict[str, int] = field(default_factory=dict)
    scores_written: int = 0
    scoring_duration_ms: float = 0.0
    reorder_duration_ms: float = 0.0
    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    _instance: ClassVar["RankerMetrics | None"] = None
    _instance_lock: ClassVar[Lock] = Lock()

    @classmethod
    def get_instance(cls) -> "RankerMetrics":
        """Get singleton metrics instance."""
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
            return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        with cls._instance_lock:
            cls._instance = None

    def record_score(self, score: float) -> None:
        """Record a computed score.

        Args:
            score: Score value.
        """
        with self._lock:
            self.posts_scored += 1
            self.score_values.append(score)

    def record_deferrals(self, by_source: dict[str, int], backfilled: int) -> None:
        """Record diversity deferrals from one reordering.

        Args:
            by_source: Deferral count per domain.
            backfilled: Posts appended without a legal slot.
        """
        with self._lock:
            for source, count in by_source.items():
                self.deferred_total += count
                self.deferred_by_source[source] = (
                    self.deferred_by_source.get(source, 0) + count
                )
            self.backfilled_total += backfilled

    def record_scores_written(self, count: int) -> None:
        """Record scores persisted by the recalculation job.

        Args:
            count: Number of scores written.
        """
        with self._lock:
            self.scores_written += count

    def record_scoring_duration(self, duration_ms: float) -> None:
        """Record batch scoring duration.

        Args:
            duration_ms: Duration in milliseconds.
        """
        with self._lock:
            self.scoring_duration_ms = duration_ms

    def record_reorder_duration(self, duration_ms: float) -> None:
        """Record diversity reordering duration.

        Args:
            duration_ms: Duration in milliseconds.
        """
        with self._lock:
            self.reorder_duration_ms = duration_ms

    def get_score_percentiles(self) -> dict[str, float]:
        """Calculate score percentiles (p50/p90/p99) over the recent scores.

        Returns:
            Dictionary with p50, p90, p99 values.
        """
        with self._lock:
            sorted_scores = sorted(self.score_values)

        if not sorted_scores:
            return {"p50": 0.0, "p90": 0.0, "p99": 0.0}

        n = len(sorted_scores)

        def percentile(p: float) -> float:
            idx = int(p * n / 100)
            return sorted_scores[min(idx, n - 1)]

        return {
            "p50": percentile(50),
            "p90": percentile(90),
            "p99": percentile(99),
        }

    def to_dict(self) -> dict[str, object]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        percentiles = self.get_score_percentiles()
        with self._lock:
            return {
                "posts_scored": self.posts_scored,
                "deferred_total": self.deferred_total,
                "backfilled_total": self.backfilled_total,
                "deferred_by_source": dict(self.deferred_by_source),
                "scores_written": self.scores_written,
                "scoring_duration_ms": self.scoring_duration_ms,
                "reorder_duration_ms": self.reorder_duration_ms,
                "score_percentiles": percentiles,
            }
