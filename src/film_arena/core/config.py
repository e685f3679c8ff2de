"""Configuration schemas and loading for Film Arena."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from film_arena.core.errors import ValidationError
from film_arena.schemas import DEFAULT_LEADERBOARD_LIMIT, MAX_LEADERBOARD_LIMIT

DATABASE_URL_ENV = "FILM_ARENA_DATABASE_URL"
DEFAULT_DB_FILENAME = "arena.duckdb"


class RankingConfig(BaseModel):
    """Strength update configuration.

    Attributes:
        initial_strength: Baseline strength assigned to newly seeded films.
        k_factor: Maximum adjustment applied per vote.
    """

    initial_strength: float = Field(default=1500.0, ge=1.0)
    k_factor: float = Field(default=32.0, gt=0)


class LeaderboardConfig(BaseModel):
    """Leaderboard query limits and caching."""

    default_limit: int = Field(default=DEFAULT_LEADERBOARD_LIMIT, ge=1)
    max_limit: int = Field(default=MAX_LEADERBOARD_LIMIT, ge=1, le=MAX_LEADERBOARD_LIMIT)
    cache_ttl_seconds: float = Field(default=30.0, ge=0)

    @model_validator(mode="after")
    def validate_limits(self) -> LeaderboardConfig:
        if self.default_limit > self.max_limit:
            msg = "default_limit cannot exceed max_limit"
            raise ValueError(msg)
        return self


class ArenaConfig(BaseModel):
    """Complete arena configuration."""

    data_dir: str = "./data"
    database_url: str | None = None
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    leaderboard: LeaderboardConfig = Field(default_factory=LeaderboardConfig)
    server_url: str | None = None
    request_timeout: float = Field(default=30.0, gt=0)
    seed: int | None = None

    @field_validator("server_url")
    @classmethod
    def validate_server_url(cls, v: str | None) -> str | None:
        """Require an absolute http(s) URL when a server is configured."""
        if v is None:
            return v
        if not v.startswith(("http://", "https://")):
            msg = "server_url must start with http:// or https://"
            raise ValueError(msg)
        return v.rstrip("/")

    def get_database_url(self) -> str:
        """Get database URL from config, environment, or the default DuckDB file."""
        url = self.database_url or os.environ.get(DATABASE_URL_ENV)
        if url:
            return url
        return f"duckdb:///{Path(self.data_dir) / DEFAULT_DB_FILENAME}"


def load_config(path: str | Path) -> ArenaConfig:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to YAML configuration file.

    Returns:
        Validated ArenaConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValidationError: If the file is not a YAML mapping.
        pydantic.ValidationError: If config values are invalid.
    """
    config_path = Path(path)
    if not config_path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with config_path.open() as f:
        data = yaml.safe_load(f)

    if data is not None and not isinstance(data, dict):
        raise ValidationError(str(config_path), "The file must contain a mapping of settings.")

    return ArenaConfig.model_validate(data or {})
