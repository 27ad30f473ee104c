"""Source diversity reordering for ranked output.

Greedy single pass with deferred retry: walk candidates in score order and
defer any post that would extend a run of one source past the allowed
length. Deferred posts get a second chance once the output has moved on.
This is a local heuristic, not an optimal interleaving. When inventory is
dominated by one source, the rule cannot always hold; deferred posts are
then appended rather than dropped.
"""

import time
from collections.abc import Sequence

import structlog

from feedrank.ranker.domain import normalize_domain
from feedrank.ranker.metrics import RankerMetrics
from feedrank.ranker.models import ReorderStats
from feedrank.store.models import Post


logger = structlog.get_logger()


class DiversityReorderer:
    """Reorders posts so no source fills more than N consecutive slots."""

    def __init__(
        self,
        max_consecutive: int = 2,
        backfill_deferred: bool = True,
        metrics: RankerMetrics | None = None,
        run_id: str = "ranker",
    ) -> None:
        """Initialize the reorderer.

        Args:
            max_consecutive: Longest allowed run of one source.
            backfill_deferred: Append posts that never found a legal slot
                when the output is still short of the limit.
            metrics: Optional metrics instance.
            run_id: Run identifier for logging.
        """
        self._max_consecutive = max(max_consecutive, 1)
        self._backfill = backfill_deferred
        self._metrics = metrics or RankerMetrics.get_instance()
        self._log = logger.bind(
            component="ranker",
            subcomponent="diversity",
            run_id=run_id,
        )
        self._stats = ReorderStats()

    @property
    def last_stats(self) -> ReorderStats:
        """Counters from the most recent reorder call."""
        return self._stats

    def _can_place(self, domain: str, tail: list[str]) -> bool:
        """Check whether a post from ``domain`` may follow the output tail.

        Args:
            domain: Candidate's normalized domain.
            tail: Normalized domains of the output so far.

        Returns:
            False if the last max_consecutive entries all share ``domain``.
        """
        n = self._max_consecutive
        if len(tail) < n:
            return True
        return any(d != domain for d in tail[-n:])

    def reorder(self, candidates: Sequence[Post], limit: int) -> list[Post]:
        """Apply the diversity constraint.

        Args:
            candidates: Posts sorted by score descending.
            limit: Maximum output length.

        Returns:
            Up to ``limit`` posts.
        """
        start = time.perf_counter()
        stats = ReorderStats(candidates_in=len(candidates))
        self._stats = stats

        if limit <= 0 or not candidates:
            return []

        output: list[Post] = []
        output_domains: list[str] = []
        # Per-source deferred posts, keyed in first-deferral order, with each
        # post's candidate index for a stable backfill.
        deferred: dict[str, list[tuple[int, Post]]] = {}

        for index, post in enumerate(candidates):
            if len(output) >= limit:
                break

            domain = normalize_domain(post.source_url)
            if self._can_place(domain, output_domains):
                output.append(post)
                output_domains.append(domain)
                stats.placed_first_pass += 1
            else:
                deferred.setdefault(domain, []).append((index, post))
                stats.deferred += 1
                stats.deferred_by_source[domain] = (
                    stats.deferred_by_source.get(domain, 0) + 1
                )

        leftover: list[tuple[int, Post]] = []

        for domain, posts in deferred.items():
            for index, post in posts:
                if len(output) < limit and self._can_place(domain, output_domains):
                    output.append(post)
                    output_domains.append(domain)
                    stats.placed_from_deferred += 1
                else:
                    leftover.append((index, post))

        if self._backfill and len(output) < limit and leftover:
            for _index, post in sorted(leftover, key=lambda entry: entry[0]):
                if len(output) >= limit:
                    break
                output.append(post)
                output_domains.append(normalize_domain(post.source_url))
                stats.backfilled += 1

        duration_ms = (time.perf_counter() - start) * 1000
        self._metrics.record_reorder_duration(duration_ms)
        self._metrics.record_deferrals(stats.deferred_by_source, stats.backfilled)

        self._log.info(
            "diversity_applied",
            candidates_in=stats.candidates_in,
            limit=limit,
            output_count=len(output),
            deferred=stats.deferred,
            placed_from_deferred=stats.placed_from_deferred,
            backfilled=stats.backfilled,
        )

        return output


def apply_source_diversity(
    candidates: Sequence[Post],
    limit: int,
    max_consecutive: int = 2,
    backfill_deferred: bool = True,
) -> list[Post]:
    """Pure function API for diversity reordering.

    Args:
        candidates: Posts sorted by score descending.
        limit: Maximum output length.
        max_consecutive: Longest allowed run of one source.
        backfill_deferred: Append unplaceable deferred posts when short.

    Returns:
        Up to ``limit`` posts.
    """
    reorderer = DiversityReorderer(
        max_consecutive=max_consecutive,
        backfill_deferred=backfill_deferred,
    )
    return reorderer.reorder(candidates, limit)
