"""Database access for the matchup catalog."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from sqlalchemy import func
from sqlmodel import Session, col, select

from film_arena.models import Film, Matchup, Vote

from .repository import AsyncRepository

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement, Engine


def _not_voted_by(user_id: str) -> ColumnElement[bool]:
    """Filter matchups the user has no vote on."""
    voted = select(Vote.id).where(Vote.matchup_id == Matchup.id, Vote.user_id == user_id)
    return ~voted.exists()


class MatchupRepository(AsyncRepository):
    """Query matchups and their eligibility for a user."""

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)

    async def get_matchup(self, matchup_id: str) -> Matchup | None:
        """Get a matchup by id."""

        def _get(session: Session) -> Matchup | None:
            return session.get(Matchup, matchup_id)

        return await self._run_session(_get)

    async def pick_unvoted(
        self, user_id: str, choose: Callable[[int], int]
    ) -> tuple[Matchup, Film | None, Film | None] | None:
        """Pick one matchup the user has not voted on.

        Counts the eligible set and fetches the row at the position returned
        by ``choose(count)``, inside a single session so both reads see the
        same snapshot.

        Args:
            user_id: Voter identity.
            choose: Maps the eligible count to a 0-based position.

        Returns:
            (matchup, film_a, film_b), or None when nothing is eligible.
            Either film is None if its row is missing.
        """

        def _pick(session: Session) -> tuple[Matchup, Film | None, Film | None] | None:
            eligible = _not_voted_by(user_id)
            count_stmt = select(func.count()).select_from(Matchup).where(eligible)
            total = int(session.exec(count_stmt).one())
            if total == 0:
                return None

            position = choose(total)
            statement = (
                select(Matchup)
                .where(eligible)
                .order_by(col(Matchup.id))
                .offset(position)
                .limit(1)
            )
            matchup = session.exec(statement).first()
            if matchup is None:
                return None

            film_a = session.get(Film, matchup.film_a_id)
            film_b = session.get(Film, matchup.film_b_id)
            return matchup, film_a, film_b

        return await self._run_session(_pick)
