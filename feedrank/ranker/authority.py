"""Domain authority lookup.

The table is data: an exact host map plus an ordered list of wildcard
patterns. Exact hits win; otherwise the first matching pattern wins, so
declaration order is part of the policy.
"""

import re
from functools import lru_cache
from dataclasses import dataclass

import structlog

from feedrank.config.schemas import AuthorityConfig
from feedrank.ranker.domain import normalize_domain


logger = structlog.get_logger()


@dataclass(frozen=True)
class CompiledPattern:
    """A wildcard authority entry with its compiled regex.

    Attributes:
        pattern: Original wildcard pattern.
        score: Authority score.
        regex: Anchored regex, or None when the pattern does not compile.
    """

    pattern: str
    score: float
    regex: re.Pattern[str] | None


def compile_domain_pattern(pattern: str) -> re.Pattern[str] | None:
    """Compile a wildcard host pattern into an anchored regex.

    Only ``*`` (any run of characters) and ``.`` (literal dot) are
    translated. Other characters pass through, so a pattern that is not a
    valid regex yields None and matches nothing.

    Args:
        pattern: Wildcard pattern such as ``*.dev``.

    Returns:
        Compiled regex or None.
    """
    translated = pattern.replace(".", r"\.").replace("*", ".*")
    try:
        return re.compile(rf"^{translated}$")
    except re.error:
        return None


class DomainAuthorityTable:
    """Maps source URLs to authority scores on a 1-10 scale."""

    def __init__(
        self,
        exact: dict[str, float],
        patterns: list[tuple[str, float]],
        default_score: float,
    ) -> None:
        """Initialize the table.

        Args:
            exact: Normalized host to score.
            patterns: Ordered (wildcard pattern, score) pairs.
            default_score: Score when nothing matches.
        """
        self._exact = dict(exact)
        self._default_score = float(default_score)
        self._patterns: list[CompiledPattern] = []

        for pattern, score in patterns:
            regex = compile_domain_pattern(pattern)
            if regex is None:
                logger.warning(
                    "authority_pattern_invalid",
                    component="ranker",
                    subcomponent="authority",
                    pattern=pattern,
                )
            self._patterns.append(
                CompiledPattern(pattern=pattern, score=float(score), regex=regex)
            )

    @classmethod
    def from_config(cls, config: AuthorityConfig) -> "DomainAuthorityTable":
        """Build a table from configuration.

        Args:
            config: Authority configuration.

        Returns:
            DomainAuthorityTable instance.
        """
        return cls(
            exact=config.exact,
            patterns=[(p.pattern, p.score) for p in config.patterns],
            default_score=config.default_score,
        )

    @property
    def default_score(self) -> float:
        """Score for unknown or unmatched domains."""
        return self._default_score

    def domain_score(self, domain: str) -> float:
        """Look up the score for a normalized domain.

        Args:
            domain: Normalized domain.

        Returns:
            Authority score.
        """
        if domain in self._exact:
            return float(self._exact[domain])

        for compiled in self._patterns:
            if compiled.regex is not None and compiled.regex.match(domain):
                return compiled.score

        return self._default_score

    def authority_score(self, source_url: str | None) -> float:
        """Score a source URL.

        Missing or malformed URLs get the default score, never zero.

        Args:
            source_url: Post source URL.

        Returns:
            Authority score.
        """
        if not source_url:
            return self._default_score
        return self.domain_score(normalize_domain(source_url))

    def to_dict(self) -> dict[str, object]:
        """Serialize the table for configuration introspection."""
        return {
            "exact": dict(self._exact),
            "patterns": [{"pattern": p.pattern, "score": p.score} for p in self._patterns],
            "default": self._default_score,
        }


@lru_cache(maxsize=1)
def default_authority_table() -> DomainAuthorityTable:
    """Get the built-in authority table, compiled once per process."""
    return DomainAuthorityTable.from_config(AuthorityConfig())


def authority_score(
    source_url: str | None, table: DomainAuthorityTable | None = None
) -> float:
    """Score a source URL against a table (default table when omitted).

    Args:
        source_url: Post source URL.
        table: Optional authority table.

    Returns:
        Authority score.
    """
    table = table or default_authority_table()
    return table.authority_score(source_url)
