"""Matchmaking: serve each user a matchup they have not voted on."""

from __future__ import annotations

import random

import structlog

from film_arena.core.errors import CatalogInconsistencyError
from film_arena.models import Film
from film_arena.schemas import FilmView, MatchupView
from film_arena.services.storage import ArenaStore

logger = structlog.get_logger()


def film_view(film: Film) -> FilmView:
    """Convert a film row into its public view."""
    return FilmView(
        id=film.id,
        tmdb_id=film.tmdb_id,
        title=film.title,
        year=film.year,
        poster_path=film.poster_path,
        strength=film.strength,
        comparison_count=film.comparison_count,
    )


class Matchmaker:
    """Selects a uniformly random unvoted matchup per request.

    Eligibility is re-read from the vote ledger on every call; any vote
    anywhere can shrink a user's eligible set, so nothing is cached.
    """

    def __init__(self, store: ArenaStore, seed: int | None = None) -> None:
        """Initialize matchmaker.

        Args:
            store: Arena store.
            seed: Random seed for reproducible selection.
        """
        self.store = store
        self._rng = random.Random(seed)  # noqa: S311

    async def next_matchup(self, user_id: str) -> MatchupView | None:
        """Pick a matchup the user has not voted on.

        Args:
            user_id: Voter identity.

        Returns:
            The matchup with both films' current data, or None when the
            user's pool is exhausted.

        Raises:
            CatalogInconsistencyError: If a film row of the picked matchup is missing.
        """
        picked = await self.store.matchups.pick_unvoted(user_id, self._rng.randrange)
        if picked is None:
            logger.info("pool_exhausted", user=user_id)
            return None

        matchup, film_a, film_b = picked
        if film_a is None or film_b is None:
            logger.error("film_data_inconsistency", matchup=matchup.id)
            msg = f"Film data inconsistency for matchup {matchup.id}"
            raise CatalogInconsistencyError(msg)

        logger.debug("matchup_served", user=user_id, matchup=matchup.id)
        return MatchupView(id=matchup.id, film_a=film_view(film_a), film_b=film_view(film_b))
