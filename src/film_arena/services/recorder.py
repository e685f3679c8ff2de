"""Vote recording: validate, persist and score a single vote."""

from __future__ import annotations

import structlog
from sqlalchemy.exc import SQLAlchemyError

from film_arena.core.errors import (
    ArenaError,
    InvalidWinnerError,
    MatchupNotFoundError,
    VoteRecordingError,
)
from film_arena.ranking import EloEngine
from film_arena.schemas import VoteOutcome
from film_arena.services.storage import ArenaStore

logger = structlog.get_logger()


class VoteRecorder:
    """Records votes and applies their strength updates.

    A vote is counted only if the vote insert and both film updates commit
    together. Duplicate detection is left to the database's unique
    constraint so that concurrent identical submissions cannot both succeed.
    """

    def __init__(self, store: ArenaStore, engine: EloEngine) -> None:
        """Initialize vote recorder.

        Args:
            store: Arena store.
            engine: Strength engine applied to each recorded vote.
        """
        self.store = store
        self.engine = engine

    async def record(self, matchup_id: str, user_id: str, winner_id: str) -> VoteOutcome:
        """Record one vote.

        Args:
            matchup_id: Matchup being voted on.
            user_id: Voter identity.
            winner_id: Chosen film; must be one of the matchup's films.

        Returns:
            The recorded vote with both films' new strengths.

        Raises:
            MatchupNotFoundError: Unknown matchup.
            InvalidWinnerError: winner_id is not part of the matchup.
            DuplicateVoteError: The user already voted on this matchup.
            VoteRecordingError: Any other persistence failure.
        """
        matchup = await self.store.matchups.get_matchup(matchup_id)
        if matchup is None:
            raise MatchupNotFoundError(matchup_id)
        if not matchup.has_film(winner_id):
            raise InvalidWinnerError(matchup_id, winner_id)

        try:
            outcome = await self.store.votes.record_vote(
                matchup_id=matchup.id,
                film_a_id=matchup.film_a_id,
                film_b_id=matchup.film_b_id,
                user_id=user_id,
                winner_id=winner_id,
                engine=self.engine,
            )
        except ArenaError as e:
            logger.info("vote_rejected", matchup=matchup_id, user=user_id, kind=e.kind)
            raise
        except SQLAlchemyError as e:
            logger.exception("vote_persist_failed", matchup=matchup_id, user=user_id)
            msg = "Failed to submit vote"
            raise VoteRecordingError(msg) from e

        scores = outcome.updated_scores
        logger.info(
            "vote_recorded",
            matchup=matchup_id,
            user=user_id,
            winner=winner_id,
            film_a_strength=scores.film_a_strength,
            film_b_strength=scores.film_b_strength,
        )
        return outcome
