"""Ranking module for Film Arena.

Provides the Elo strength engine used after every recorded vote.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from film_arena.ranking.elo import (
    DEFAULT_K_FACTOR,
    MIN_STRENGTH,
    EloEngine,
    StrengthUpdate,
    calculate_expected_win_chance,
    round2,
    update_strengths,
)

if TYPE_CHECKING:
    from film_arena.core.config import ArenaConfig


def create_engine_from_config(config: ArenaConfig) -> EloEngine:
    """Create the strength engine configured for this arena.

    Args:
        config: Arena configuration.

    Returns:
        Configured EloEngine.
    """
    return EloEngine(k_factor=config.ranking.k_factor)


__all__ = [
    "DEFAULT_K_FACTOR",
    "MIN_STRENGTH",
    "EloEngine",
    "StrengthUpdate",
    "calculate_expected_win_chance",
    "create_engine_from_config",
    "round2",
    "update_strengths",
]
