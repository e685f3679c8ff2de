"""Database persistence for votes and the strength updates they trigger."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from film_arena.core.errors import CatalogInconsistencyError, DuplicateVoteError
from film_arena.models import Film, Vote
from film_arena.models.vote import UNIQUE_VOTE_CONSTRAINT
from film_arena.schemas import UpdatedScores, VoteOutcome, VoteRecord

from .repository import AsyncRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from film_arena.ranking import EloEngine


def is_duplicate_vote(error: IntegrityError) -> bool:
    """Tell a (matchup_id, user_id) collision apart from other integrity failures.

    DuckDB and SQLite name the violated columns rather than the constraint.
    The only other unique key on votes is the primary key.
    """
    text = str(error.orig).lower()
    if UNIQUE_VOTE_CONSTRAINT in text:
        return True
    if "user_id" in text and ("unique" in text or "duplicate key" in text):
        return True
    return "unique" in text and "primary key constraint" not in text


class VoteRepository(AsyncRepository):
    """Append votes to the ledger and apply their strength updates."""

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)

    async def record_vote(
        self,
        matchup_id: str,
        film_a_id: str,
        film_b_id: str,
        user_id: str,
        winner_id: str,
        engine: EloEngine,
    ) -> VoteOutcome:
        """Insert a vote and update both films in one transaction.

        The unique (matchup_id, user_id) constraint decides duplicates; there
        is no read-before-insert check.

        Raises:
            DuplicateVoteError: The user already voted on this matchup.
            IntegrityError: Any other constraint failure.
            CatalogInconsistencyError: A film row is missing. Nothing is written.
        """
        loser_id = film_b_id if winner_id == film_a_id else film_a_id

        def _record(session: Session) -> VoteOutcome:
            vote = Vote(matchup_id=matchup_id, user_id=user_id, winner_id=winner_id)
            session.add(vote)
            session.flush()

            statement = select(Film).where(col(Film.id).in_([winner_id, loser_id]))
            films = {f.id: f for f in session.exec(statement).all()}
            winner = films.get(winner_id)
            loser = films.get(loser_id)
            if winner is None or loser is None:
                msg = f"Film data inconsistency for matchup {matchup_id}"
                raise CatalogInconsistencyError(msg)

            update = engine.rate(winner.strength, loser.strength)
            now = datetime.now(UTC)
            for film, strength in ((winner, update.winner), (loser, update.loser)):
                film.strength = strength
                film.comparison_count += 1
                film.updated_at = now
                session.add(film)
            session.flush()

            strengths = {winner_id: update.winner, loser_id: update.loser}
            return VoteOutcome(
                vote=VoteRecord(
                    id=vote.id,
                    matchup_id=vote.matchup_id,
                    user_id=vote.user_id,
                    winner_id=vote.winner_id,
                    voted_at=vote.voted_at,
                ),
                updated_scores=UpdatedScores(
                    film_a_id=film_a_id,
                    film_a_strength=strengths[film_a_id],
                    film_b_id=film_b_id,
                    film_b_strength=strengths[film_b_id],
                ),
            )

        try:
            return await self._run_transaction(_record)
        except IntegrityError as e:
            if not is_duplicate_vote(e):
                raise
            raise DuplicateVoteError(matchup_id, user_id) from e
