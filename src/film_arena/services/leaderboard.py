"""Leaderboard ranking over the rating store."""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from film_arena.core.config import LeaderboardConfig
from film_arena.core.errors import InvalidRequestError
from film_arena.schemas import Leaderboard, LeaderboardEntry
from film_arena.services.storage import ArenaStore

logger = structlog.get_logger()


class LeaderboardRanker:
    """Builds ranked views of film strengths with a short-lived cache.

    Order is strength descending, then comparison count descending, then
    film id ascending. Ranks are contiguous and 1-based.
    """

    def __init__(
        self,
        store: ArenaStore,
        config: LeaderboardConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize leaderboard ranker.

        Args:
            store: Arena store.
            config: Limits and cache TTL. Defaults to LeaderboardConfig().
            clock: Monotonic clock used for cache expiry.
        """
        self.store = store
        self.config = config or LeaderboardConfig()
        self._clock = clock
        self._cache: dict[tuple[int, int], tuple[float, Leaderboard]] = {}

    def _validate(self, limit: int, min_comparisons: int) -> None:
        if not 1 <= limit <= self.config.max_limit:
            msg = f"limit must be between 1 and {self.config.max_limit}, got {limit}"
            raise InvalidRequestError(msg)
        if min_comparisons < 0:
            msg = f"min_comparisons must be >= 0, got {min_comparisons}"
            raise InvalidRequestError(msg)

    async def get(self, limit: int | None = None, min_comparisons: int = 0) -> Leaderboard:
        """Get the ranked films.

        Args:
            limit: Maximum entries (1..max_limit). Defaults to default_limit.
            min_comparisons: Only films with at least this many comparisons.

        Returns:
            Leaderboard with ranked entries, generation time and filter used.

        Raises:
            InvalidRequestError: If limit or min_comparisons is out of range.
        """
        if limit is None:
            limit = self.config.default_limit
        self._validate(limit, min_comparisons)

        key = (limit, min_comparisons)
        now = self._clock()
        cached = self._cache.get(key)
        if cached is not None and now - cached[0] < self.config.cache_ttl_seconds:
            logger.debug("leaderboard_cache_hit", limit=limit, min_comparisons=min_comparisons)
            return cached[1]

        films = await self.store.films.get_leaderboard(limit, min_comparisons)
        entries = [
            LeaderboardEntry(
                rank=rank,
                id=film.id,
                tmdb_id=film.tmdb_id,
                title=film.title,
                year=film.year,
                poster_path=film.poster_path,
                strength=film.strength,
                comparison_count=film.comparison_count,
            )
            for rank, film in enumerate(films, 1)
        ]
        board = Leaderboard(
            films=entries,
            generated_at=datetime.now(UTC),
            min_comparisons=min_comparisons,
        )
        self._evict_expired(now)
        self._cache[key] = (now, board)
        logger.info("leaderboard_built", count=len(entries), min_comparisons=min_comparisons)
        return board

    def _evict_expired(self, now: float) -> None:
        ttl = self.config.cache_ttl_seconds
        expired = [key for key, (built, _) in self._cache.items() if now - built >= ttl]
        for key in expired:
            del self._cache[key]

    def invalidate(self) -> None:
        """Drop all cached leaderboards."""
        self._cache.clear()
