"""Environment settings powered by Pydantic BaseSettings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from feedrank.config.schemas import RankingConfig


class RankingSettings(BaseSettings):
    """Environment overrides for the ranking configuration.

    Unset values leave the file configuration untouched.
    """

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, env_file=".env", env_file_encoding="utf-8"
    )

    db_path: Path | None = Field(default=None, validation_alias="FEEDRANK_DB_PATH")
    config_path: Path | None = Field(
        default=None, validation_alias="FEEDRANK_CONFIG_PATH"
    )
    weight_source: float | None = Field(
        default=None, validation_alias="RANKING_WEIGHT_SOURCE"
    )
    weight_recency: float | None = Field(
        default=None, validation_alias="RANKING_WEIGHT_RECENCY"
    )
    weight_engagement: float | None = Field(
        default=None, validation_alias="RANKING_WEIGHT_ENGAGEMENT"
    )
    weight_diversity: float | None = Field(
        default=None, validation_alias="RANKING_WEIGHT_DIVERSITY"
    )
    hero_threshold: float | None = Field(
        default=None, validation_alias="RANKING_HERO_THRESHOLD"
    )
    trending_min_views: int | None = Field(
        default=None, validation_alias="RANKING_TRENDING_MIN_VIEWS"
    )
    trending_min_likes: int | None = Field(
        default=None, validation_alias="RANKING_TRENDING_MIN_LIKES"
    )
    trending_hours: int | None = Field(
        default=None, validation_alias="RANKING_TRENDING_HOURS"
    )
    trending_ttl: int | None = Field(
        default=None, validation_alias="RANKING_CACHE_TRENDING_TTL"
    )
    hero_ttl: int | None = Field(default=None, validation_alias="RANKING_CACHE_HERO_TTL")

    def apply_to(self, config: RankingConfig) -> RankingConfig:
        """Overlay set environment values on a configuration.

        The result is re-validated, so out-of-range overrides raise
        pydantic.ValidationError.

        Args:
            config: Configuration loaded from file or defaults.

        Returns:
            New configuration with overrides applied.
        """
        weights = _pick(
            source_authority=self.weight_source,
            recency=self.weight_recency,
            engagement=self.weight_engagement,
            source_diversity=self.weight_diversity,
        )
        thresholds = _pick(
            hero_min_score=self.hero_threshold,
            trending_min_views=self.trending_min_views,
            trending_min_likes=self.trending_min_likes,
            trending_hours=self.trending_hours,
        )
        cache = _pick(trending_ttl=self.trending_ttl, hero_ttl=self.hero_ttl)

        if not (weights or thresholds or cache):
            return config

        data = config.model_dump()
        data["weights"].update(weights)
        data["thresholds"].update(thresholds)
        data["cache"].update(cache)
        return RankingConfig.model_validate(data)


def _pick(**values: float | int | None) -> dict[str, float | int]:
    return {k: v for k, v in values.items() if v is not None}


def get_settings() -> RankingSettings:
    """Get a settings instance."""
    return RankingSettings()
