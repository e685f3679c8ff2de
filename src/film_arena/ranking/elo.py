"""Elo strength calculations for Film Arena."""

from __future__ import annotations

import math
from dataclasses import dataclass

DEFAULT_K_FACTOR = 32.0
MIN_STRENGTH = 1.0


@dataclass(frozen=True)
class StrengthUpdate:
    """New strengths for both participants of a single vote.

    Attributes:
        winner: Winner's strength after the vote.
        loser: Loser's strength after the vote.
        expected_winner: Pre-vote probability that the winner would win.
    """

    winner: float
    loser: float
    expected_winner: float

    @property
    def expected_loser(self) -> float:
        return 1.0 - self.expected_winner


def calculate_expected_win_chance(rating_a: float, rating_b: float) -> float:
    """Calculate expected win probability for player A against player B.

    Uses the standard Elo formula:
    E_A = 1 / (1 + 10^((R_B - R_A) / 400))

    Args:
        rating_a: Rating of player A.
        rating_b: Rating of player B.

    Returns:
        Probability that A wins (0.0 to 1.0).
    """
    return 1.0 / (1.0 + 10 ** ((rating_b - rating_a) / 400))


def round2(value: float) -> float:
    """Round to two decimals, halves away from zero (builtin round() goes to even)."""
    scaled = value * 100
    return math.copysign(math.floor(abs(scaled) + 0.5), scaled) / 100


def update_strengths(
    winner_strength: float,
    loser_strength: float,
    k_factor: float = DEFAULT_K_FACTOR,
) -> StrengthUpdate:
    """Compute new strengths after a vote.

    Args:
        winner_strength: Current strength of the chosen film.
        loser_strength: Current strength of the other film.
        k_factor: Maximum adjustment per vote.

    Returns:
        StrengthUpdate with both new strengths, each rounded to two decimals
        and floored at MIN_STRENGTH.
    """
    expected_winner = calculate_expected_win_chance(winner_strength, loser_strength)
    expected_loser = 1.0 - expected_winner

    new_winner = round2(winner_strength + k_factor * (1.0 - expected_winner))
    new_loser = round2(loser_strength + k_factor * (0.0 - expected_loser))

    return StrengthUpdate(
        winner=max(MIN_STRENGTH, new_winner),
        loser=max(MIN_STRENGTH, new_loser),
        expected_winner=expected_winner,
    )


class EloEngine:
    """Carries the configured K-factor for vote scoring.

    Attributes:
        k_factor: Maximum adjustment per vote.
    """

    def __init__(self, k_factor: float = DEFAULT_K_FACTOR) -> None:
        if k_factor <= 0:
            msg = "k_factor must be positive"
            raise ValueError(msg)
        self.k_factor = k_factor

    def rate(self, winner_strength: float, loser_strength: float) -> StrengthUpdate:
        """Score one vote between the winner and the loser."""
        return update_strengths(winner_strength, loser_strength, self.k_factor)
