"""Ranking configuration schema."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from feedrank.config.constants import (
    ALGORITHM_VERSION,
    DEFAULT_AUTHORITY_PATTERNS,
    DEFAULT_AUTHORITY_SCORE,
    DEFAULT_EXACT_AUTHORITY,
    DISTRIBUTION_TTL_SECONDS,
    HERO_TTL_SECONDS,
    THREE_FACTOR_WEIGHTS,
    TRENDING_TTL_SECONDS,
    WEIGHT_PRESETS,
)


AuthorityScore = Annotated[float, Field(ge=1.0, le=10.0)]


class StrictBaseModel(BaseModel):
    """Base model with strict, immutable defaults."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class WeightsConfig(StrictBaseModel):
    """Signal weights for the score aggregator.

    A zero source_diversity weight disables the diversity signal entirely,
    so the source distribution is never computed.

    Attributes:
        source_authority: Weight for domain authority.
        recency: Weight for recency decay.
        engagement: Weight for engagement velocity.
        source_diversity: Weight for source-distribution diversity.
    """

    source_authority: Annotated[float, Field(ge=0.0, le=1.0)] = THREE_FACTOR_WEIGHTS[
        "source_authority"
    ]
    recency: Annotated[float, Field(ge=0.0, le=1.0)] = THREE_FACTOR_WEIGHTS["recency"]
    engagement: Annotated[float, Field(ge=0.0, le=1.0)] = THREE_FACTOR_WEIGHTS[
        "engagement"
    ]
    source_diversity: Annotated[float, Field(ge=0.0, le=1.0)] = THREE_FACTOR_WEIGHTS[
        "source_diversity"
    ]

    @classmethod
    def preset(cls, name: str) -> "WeightsConfig":
        """Build weights from a named preset.

        Args:
            name: "three_factor" or "four_factor".

        Returns:
            WeightsConfig for the preset.

        Raises:
            ValueError: If the preset is unknown.
        """
        if name not in WEIGHT_PRESETS:
            msg = f"Unknown weight preset: {name}"
            raise ValueError(msg)
        return cls(**WEIGHT_PRESETS[name])

    @property
    def uses_diversity(self) -> bool:
        """Whether the diversity signal participates in scoring."""
        return self.source_diversity > 0.0

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary, omitting a disabled diversity weight."""
        data = self.model_dump()
        if not self.uses_diversity:
            data.pop("source_diversity")
        return data


class AuthorityPattern(StrictBaseModel):
    """Wildcard authority entry such as ``*.dev`` or ``blog.*``.

    Attributes:
        pattern: Host pattern; ``*`` matches any run of characters.
        score: Authority score for matching hosts.
    """

    pattern: Annotated[str, Field(min_length=1)]
    score: AuthorityScore


class AuthorityConfig(StrictBaseModel):
    """Domain authority table.

    Attributes:
        exact: Host to score, checked first.
        patterns: Ordered wildcard entries; first match wins.
        default_score: Score for hosts matching nothing.
    """

    exact: dict[str, AuthorityScore] = Field(
        default_factory=lambda: dict(DEFAULT_EXACT_AUTHORITY)
    )
    patterns: list[AuthorityPattern] = Field(
        default_factory=lambda: [
            AuthorityPattern(pattern=p, score=s) for p, s in DEFAULT_AUTHORITY_PATTERNS
        ]
    )
    default_score: AuthorityScore = DEFAULT_AUTHORITY_SCORE

    @field_validator("exact", mode="after")
    @classmethod
    def normalize_exact_hosts(cls, v: dict[str, float]) -> dict[str, float]:
        """Lower-case hosts and strip a leading www."""
        normalized: dict[str, float] = {}
        for host, score in v.items():
            key = host.strip().lower()
            key = key.removeprefix("www.")
            normalized[key] = score
        return normalized


class CacheConfig(StrictBaseModel):
    """Cache windows in seconds.

    Attributes:
        distribution_ttl: Lifetime of the source distribution.
        trending_ttl: Lifetime of trending results.
        hero_ttl: Lifetime of hero results.
    """

    distribution_ttl: Annotated[int, Field(ge=0)] = DISTRIBUTION_TTL_SECONDS
    trending_ttl: Annotated[int, Field(ge=0)] = TRENDING_TTL_SECONDS
    hero_ttl: Annotated[int, Field(ge=0)] = HERO_TTL_SECONDS


class ThresholdsConfig(StrictBaseModel):
    """Facade filter thresholds.

    Attributes:
        hero_min_score: Minimum recomputed score for hero content.
        hero_days: Hero lookback window in days.
        trending_min_views: Views needed to count as trending.
        trending_min_likes: Likes needed to count as trending.
        trending_hours: Default trending window in hours.
        stale_after_hours: Age after which a persisted score is recomputed.
    """

    hero_min_score: Annotated[float, Field(ge=0.0, le=10.0)] = 7.0
    hero_days: Annotated[int, Field(ge=1)] = 7
    trending_min_views: Annotated[int, Field(ge=0)] = 10
    trending_min_likes: Annotated[int, Field(ge=0)] = 2
    trending_hours: Annotated[int, Field(ge=1)] = 24
    stale_after_hours: Annotated[int, Field(ge=0)] = 6


class DiversityConfig(StrictBaseModel):
    """Diversity reorderer policy.

    Attributes:
        max_consecutive: Longest allowed run of one source.
        overfetch_factor: Candidate pool size as a multiple of the limit.
        backfill_deferred: Append still-deferred posts when the output is
            short after the retry pass, instead of dropping them.
    """

    max_consecutive: Annotated[int, Field(ge=1)] = 2
    overfetch_factor: Annotated[int, Field(ge=1)] = 3
    backfill_deferred: bool = True


class RankingConfig(StrictBaseModel):
    """Root configuration for ranking.yaml.

    Attributes:
        version: Schema version.
        weights: Signal weights.
        authority: Domain authority table.
        cache: Cache windows.
        thresholds: Facade thresholds.
        diversity: Diversity policy.
    """

    version: Annotated[str, Field(pattern=r"^\d+\.\d+$")] = "1.0"
    weights: WeightsConfig = Field(default_factory=WeightsConfig)
    authority: AuthorityConfig = Field(default_factory=AuthorityConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    thresholds: ThresholdsConfig = Field(default_factory=ThresholdsConfig)
    diversity: DiversityConfig = Field(default_factory=DiversityConfig)

    @model_validator(mode="after")
    def validate_weights_present(self) -> "RankingConfig":
        """Ensure at least one signal carries weight."""
        if sum(self.weights.model_dump().values()) <= 0.0:
            msg = "At least one signal weight must be positive"
            raise ValueError(msg)
        return self

    @property
    def algorithm_version(self) -> str:
        """Version string reported by get_configuration()."""
        return ALGORITHM_VERSION
