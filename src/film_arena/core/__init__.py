"""Core configuration, catalog loading and errors for Film Arena."""

from film_arena.core.catalog import Catalog, CatalogFilm, load_catalog
from film_arena.core.config import (
    ArenaConfig,
    LeaderboardConfig,
    RankingConfig,
    load_config,
)
from film_arena.core.errors import (
    ArenaClientError,
    ArenaError,
    CatalogInconsistencyError,
    ConfigurationError,
    DuplicateVoteError,
    InvalidRequestError,
    InvalidWinnerError,
    MatchupNotFoundError,
    MissingFieldError,
    ValidationError,
    VoteRecordingError,
)

__all__ = [
    "ArenaConfig",
    "Catalog",
    "CatalogFilm",
    "LeaderboardConfig",
    "RankingConfig",
    "load_catalog",
    "load_config",
    "ArenaClientError",
    "ArenaError",
    "CatalogInconsistencyError",
    "ConfigurationError",
    "DuplicateVoteError",
    "InvalidRequestError",
    "InvalidWinnerError",
    "MatchupNotFoundError",
    "MissingFieldError",
    "ValidationError",
    "VoteRecordingError",
]
