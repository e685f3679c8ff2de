"""Arena service: the validated boundary in front of matchmaking, voting and ranking."""

from __future__ import annotations

from typing import Any

import pydantic
import structlog

from film_arena.core.config import ArenaConfig
from film_arena.core.errors import InvalidRequestError
from film_arena.ranking import create_engine_from_config
from film_arena.schemas import (
    Leaderboard,
    LeaderboardQuery,
    MatchupView,
    VoteOutcome,
    VoteRequest,
)
from film_arena.services.leaderboard import LeaderboardRanker
from film_arena.services.matchmaker import Matchmaker
from film_arena.services.recorder import VoteRecorder
from film_arena.services.storage import ArenaStore

logger = structlog.get_logger()


def _describe(error: pydantic.ValidationError) -> str:
    """Flatten pydantic errors into one line."""
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item["loc"]) or "payload"
        parts.append(f"{loc}: {item['msg']}")
    return "; ".join(parts)


class ArenaService:
    """Request-level API for the arena.

    Every call is stateless and may run concurrently with others. Payloads
    are validated against the request schemas before they reach the
    recorder or the ranker.
    """

    def __init__(
        self,
        config: ArenaConfig,
        store: ArenaStore,
        matchmaker: Matchmaker | None = None,
        recorder: VoteRecorder | None = None,
        ranker: LeaderboardRanker | None = None,
    ) -> None:
        """Initialize arena service.

        Args:
            config: Arena configuration.
            store: Arena store.
            matchmaker: Optional matchmaker override.
            recorder: Optional vote recorder override.
            ranker: Optional leaderboard ranker override.
        """
        self.config = config
        self.store = store
        self.matchmaker = matchmaker or Matchmaker(store, seed=config.seed)
        self.recorder = recorder or VoteRecorder(store, create_engine_from_config(config))
        self.ranker = ranker or LeaderboardRanker(store, config.leaderboard)

    async def fetch_next_comparison(self, user_id: str) -> MatchupView | None:
        """Get a matchup the user has not voted on, or None when exhausted."""
        if not user_id or not user_id.strip():
            msg = "user_id is required"
            raise InvalidRequestError(msg)
        return await self.matchmaker.next_matchup(user_id)

    async def submit_judgment(self, payload: VoteRequest | dict[str, Any]) -> VoteOutcome:
        """Validate and record a vote.

        Args:
            payload: VoteRequest or a mapping with matchup_id, user_id, winner_id.

        Returns:
            The recorded vote with updated strengths.

        Raises:
            InvalidRequestError: Malformed payload.
            MatchupNotFoundError, InvalidWinnerError, DuplicateVoteError,
            VoteRecordingError: See VoteRecorder.record.
        """
        request = self._parse(VoteRequest, payload)
        return await self.recorder.record(request.matchup_id, request.user_id, request.winner_id)

    async def get_leaderboard(
        self, payload: LeaderboardQuery | dict[str, Any] | None = None
    ) -> Leaderboard:
        """Validate a leaderboard query and return the ranked films."""
        query = self._parse(LeaderboardQuery, payload or {})
        return await self.ranker.get(query.limit, query.min_comparisons)

    @staticmethod
    def _parse(schema: type[pydantic.BaseModel], payload: Any) -> Any:
        if isinstance(payload, schema):
            return payload
        try:
            return schema.model_validate(payload)
        except pydantic.ValidationError as e:
            logger.info("invalid_request", schema=schema.__name__, errors=e.error_count())
            raise InvalidRequestError(_describe(e)) from e
