"""Ranking configuration loader with validation."""

import hashlib
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
import yaml
from pydantic import ValidationError

from feedrank.config.schemas import RankingConfig
from feedrank.errors import RankingError


if TYPE_CHECKING:
    from feedrank.settings import RankingSettings


logger = structlog.get_logger()


class ConfigValidationError(RankingError):
    """Raised when configuration validation fails."""

    def __init__(self, errors: list[dict[str, str]], file_path: str) -> None:
        """Initialize the error.

        Args:
            errors: List of validation error details.
            file_path: Path to the file that failed validation.
        """
        self.errors = errors
        self.file_path = file_path
        super().__init__(f"Validation failed for {file_path}: {len(errors)} errors")


def _format_errors(exc: ValidationError) -> list[dict[str, str]]:
    """Flatten pydantic errors into loc/msg/type records."""
    return [
        {
            "loc": ".".join(str(part) for part in err["loc"]),
            "msg": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]


def load_ranking_config(
    path: Path | None = None,
    settings: "RankingSettings | None" = None,
) -> RankingConfig:
    """Load ranking configuration from YAML and environment.

    Without a path the built-in defaults are used. Environment overrides
    from settings are applied last.

    Args:
        path: Optional path to ranking.yaml.
        settings: Optional environment settings.

    Returns:
        Validated RankingConfig.

    Raises:
        ConfigValidationError: If the file is unreadable, not YAML, or fails
            schema validation.
    """
    log = logger.bind(component="config")
    source = str(path) if path else "<defaults>"

    try:
        if path is None:
            config = RankingConfig()
        else:
            content_bytes = path.read_bytes()
            parsed = yaml.safe_load(content_bytes.decode("utf-8")) or {}
            config = RankingConfig.model_validate(parsed)
            log.info(
                "config_file_loaded",
                file_path=source,
                checksum=hashlib.sha256(content_bytes).hexdigest(),
            )

        if settings is not None:
            config = settings.apply_to(config)
    except ValidationError as e:
        errors = _format_errors(e)
        log.warning("config_validation_failed", file_path=source, errors=errors)
        raise ConfigValidationError(errors, source) from e
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        errors = [{"loc": "", "msg": str(e), "type": type(e).__name__}]
        log.warning("config_load_failed", file_path=source, error=str(e))
        raise ConfigValidationError(errors, source) from e

    log.info(
        "config_ready",
        weights=config.weights.to_dict(),
        exact_authorities=len(config.authority.exact),
        authority_patterns=len(config.authority.patterns),
    )
    return config
