"""Arena clients used by voting sessions: in-process and HTTP transports."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import httpx
import pydantic
import structlog

from film_arena.core.errors import (
    ArenaClientError,
    DuplicateVoteError,
    InvalidRequestError,
    InvalidWinnerError,
    MatchupNotFoundError,
    VoteRecordingError,
)
from film_arena.schemas import (
    Leaderboard,
    LeaderboardQuery,
    MatchupView,
    VoteOutcome,
)
from film_arena.services.arena import ArenaService

if TYPE_CHECKING:
    from film_arena.core.config import ArenaConfig
    from film_arena.services.storage import ArenaStore

logger = structlog.get_logger()


class ArenaClient(ABC):
    """Abstract base class for async arena clients bound to one user."""

    @abstractmethod
    async def fetch_matchup(self) -> MatchupView | None:
        """Fetch a matchup the user has not voted on.

        Returns:
            MatchupView, or None when the user's pool is exhausted.
        """

    @abstractmethod
    async def submit_vote(self, matchup_id: str, winner_id: str) -> VoteOutcome:
        """Submit a vote.

        Args:
            matchup_id: Matchup being voted on.
            winner_id: Chosen film id.

        Returns:
            VoteOutcome with the recorded vote and updated strengths.
        """

    @abstractmethod
    async def fetch_leaderboard(
        self, limit: int | None = None, min_comparisons: int = 0
    ) -> Leaderboard:
        """Fetch the ranked films."""

    async def close(self) -> None:  # noqa: B027
        """Close any resources. Override if needed."""


class LocalArenaClient(ArenaClient):
    """Client that calls an in-process ArenaService directly."""

    def __init__(self, service: ArenaService, user_id: str) -> None:
        """Initialize local client.

        Args:
            service: Arena service to call.
            user_id: Identity supplied by the caller's identity provider.
        """
        self.service = service
        self.user_id = user_id

    async def fetch_matchup(self) -> MatchupView | None:
        return await self.service.fetch_next_comparison(self.user_id)

    async def submit_vote(self, matchup_id: str, winner_id: str) -> VoteOutcome:
        request = {"matchup_id": matchup_id, "user_id": self.user_id, "winner_id": winner_id}
        return await self.service.submit_judgment(request)

    async def fetch_leaderboard(
        self, limit: int | None = None, min_comparisons: int = 0
    ) -> Leaderboard:
        return await self.service.get_leaderboard(
            {"limit": limit, "min_comparisons": min_comparisons}
        )


def _error_message(response: httpx.Response, fallback: str) -> str:
    """Extract the server's error message, if any."""
    try:
        data = response.json()
    except ValueError:
        data = {}
    message = data.get("error") if isinstance(data, dict) else None
    return message or f"{fallback} ({response.status_code})"


class HttpArenaClient(ArenaClient):
    """Async HTTP client for a remote arena speaking the /api/h2h JSON routes.

    Vote submissions are never retried; a failed submission surfaces as an
    error and is dropped.
    """

    MATCHUP_PATH = "/api/h2h/matchup"
    VOTE_PATH = "/api/h2h/matchups/{matchup_id}/vote"
    LEADERBOARD_PATH = "/api/h2h/leaderboard"

    def __init__(
        self,
        base_url: str,
        user_id: str = "",
        auth_token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize HTTP client.

        Args:
            base_url: Server root, e.g. "https://arena.example.com".
            user_id: Identity the server associates with auth_token.
            auth_token: Bearer token forwarded to the server.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.user_id = user_id
        headers = {"Accept": "application/json"}
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"
        self.client = httpx.AsyncClient(
            base_url=base_url, headers=headers, timeout=timeout, transport=transport
        )

    async def _request(
        self, method: str, path: str, error_cls: type[Exception], **kwargs: Any
    ) -> httpx.Response:
        """Send a request, turning transport failures into error_cls."""
        try:
            return await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("arena_request_failed", method=method, path=path, error=str(e))
            msg = f"Request to {path} failed: {e}"
            raise error_cls(msg) from e

    @staticmethod
    def _parse(schema: type[pydantic.BaseModel], data: Any, what: str) -> Any:
        try:
            return schema.model_validate(data)
        except pydantic.ValidationError as e:
            msg = f"Malformed {what} response: {e.error_count()} errors"
            raise ArenaClientError(msg) from e

    async def fetch_matchup(self) -> MatchupView | None:
        response = await self._request("GET", self.MATCHUP_PATH, ArenaClientError)
        if response.status_code == httpx.codes.NO_CONTENT:
            return None
        if not response.is_success:
            raise ArenaClientError(_error_message(response, "Failed to fetch matchup"))
        data = response.json()
        return self._parse(MatchupView, data.get("matchup"), "matchup")

    async def submit_vote(self, matchup_id: str, winner_id: str) -> VoteOutcome:
        path = self.VOTE_PATH.format(matchup_id=matchup_id)
        response = await self._request(
            "POST", path, VoteRecordingError, json={"winnerId": winner_id}
        )
        status = response.status_code
        if status == httpx.codes.CONFLICT:
            raise DuplicateVoteError(matchup_id, self.user_id)
        if status == httpx.codes.NOT_FOUND:
            raise MatchupNotFoundError(matchup_id)
        if status == httpx.codes.BAD_REQUEST:
            raise InvalidWinnerError(matchup_id, winner_id)
        if not response.is_success:
            raise VoteRecordingError(_error_message(response, "Failed to submit vote"))
        return self._parse(VoteOutcome, response.json(), "vote")

    async def fetch_leaderboard(
        self, limit: int | None = None, min_comparisons: int = 0
    ) -> Leaderboard:
        try:
            query = LeaderboardQuery(limit=limit, min_comparisons=min_comparisons)
        except pydantic.ValidationError as e:
            raise InvalidRequestError(str(e)) from e

        params = {"minVotes": query.min_comparisons}
        if query.limit is not None:
            params["limit"] = query.limit
        response = await self._request(
            "GET", self.LEADERBOARD_PATH, ArenaClientError, params=params
        )
        if not response.is_success:
            raise ArenaClientError(_error_message(response, "Failed to fetch leaderboard"))
        return self._parse(Leaderboard, response.json(), "leaderboard")

    async def close(self) -> None:
        """Close HTTP client."""
        await self.client.aclose()


def create_client(
    config: ArenaConfig,
    user_id: str,
    store: ArenaStore | None = None,
    auth_token: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ArenaClient:
    """Create the appropriate arena client for the configuration.

    Args:
        config: Arena configuration. A server_url selects the HTTP client.
        user_id: Voter identity.
        store: Arena store for the in-process client.
        auth_token: Bearer token for the HTTP client.
        transport: Optional httpx transport for the HTTP client.

    Returns:
        ArenaClient instance.
    """
    if config.server_url:
        logger.info("using_http_client", server=config.server_url)
        return HttpArenaClient(
            config.server_url,
            user_id=user_id,
            auth_token=auth_token,
            timeout=config.request_timeout,
            transport=transport,
        )

    if store is None:
        msg = "A store is required when no server_url is configured"
        raise ValueError(msg)

    logger.info("using_local_client", user=user_id)
    return LocalArenaClient(ArenaService(config, store), user_id)
