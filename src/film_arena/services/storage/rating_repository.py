"""Database access for film strengths (the rating store)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlmodel import Session, col, select

from film_arena.models import Film

from .repository import AsyncRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine


class RatingRepository(AsyncRepository):
    """Query film strengths and comparison counts."""

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)

    async def get_leaderboard(self, limit: int, min_comparisons: int = 0) -> list[Film]:
        """Get films with enough comparisons, strongest first.

        Ties on strength go to the film with more comparisons, then to the
        lower id, so repeated queries return a stable order.
        """

        def _get(session: Session) -> list[Film]:
            statement = (
                select(Film)
                .where(Film.comparison_count >= min_comparisons)
                .order_by(
                    col(Film.strength).desc(),
                    col(Film.comparison_count).desc(),
                    col(Film.id).asc(),
                )
                .limit(limit)
            )
            return list(session.exec(statement).all())

        return await self._run_session(_get)
