"""Ranking configuration schemas and loader."""

from feedrank.config.loader import ConfigValidationError, load_ranking_config
from feedrank.config.schemas import (
    AuthorityConfig,
    AuthorityPattern,
    CacheConfig,
    DiversityConfig,
    RankingConfig,
    ThresholdsConfig,
    WeightsConfig,
)


__all__ = [
    "AuthorityConfig",
    "AuthorityPattern",
    "CacheConfig",
    "ConfigValidationError",
    "DiversityConfig",
    "RankingConfig",
    "ThresholdsConfig",
    "WeightsConfig",
    "load_ranking_config",
]
