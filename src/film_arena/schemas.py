"""Request and response schemas shared by the arena service and its clients.

Python attribute names follow the domain (``strength``, ``comparison_count``);
aliases follow the JSON wire format served at ``/api/h2h/*`` so the same
models parse HTTP payloads.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

MAX_LEADERBOARD_LIMIT = 100
DEFAULT_LEADERBOARD_LIMIT = 50

NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class WireModel(BaseModel):
    """Base for models that travel over the wire under camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class FilmView(WireModel):
    """Film metadata plus current strength, as shown in a matchup."""

    id: str
    tmdb_id: int | None = Field(default=None, alias="tmdbId")
    title: str
    year: int | None = None
    poster_path: str | None = Field(default=None, alias="posterPath")
    strength: float = Field(alias="eloRating")
    comparison_count: int = Field(default=0, alias="voteCount")


class MatchupView(WireModel):
    """A matchup offered to a user."""

    id: str
    film_a: FilmView = Field(alias="filmA")
    film_b: FilmView = Field(alias="filmB")

    def film_ids(self) -> tuple[str, str]:
        return self.film_a.id, self.film_b.id


class VoteRequest(BaseModel):
    """Incoming vote payload."""

    model_config = ConfigDict(extra="forbid")

    matchup_id: NonBlankStr
    user_id: NonBlankStr
    winner_id: NonBlankStr


class VoteRecord(WireModel):
    """A recorded vote."""

    id: str
    matchup_id: str = Field(alias="matchupId")
    user_id: str | None = Field(default=None, alias="userId")
    winner_id: str = Field(alias="winnerId")
    voted_at: datetime = Field(alias="votedAt")


class UpdatedScores(WireModel):
    """Both films' strengths after a vote, keyed by matchup side."""

    film_a_id: str = Field(alias="filmAId")
    film_a_strength: float = Field(alias="filmAElo")
    film_b_id: str = Field(alias="filmBId")
    film_b_strength: float = Field(alias="filmBElo")


class VoteOutcome(WireModel):
    """Result of a successfully recorded vote."""

    vote: VoteRecord
    updated_scores: UpdatedScores = Field(alias="updatedRatings")


class LeaderboardQuery(BaseModel):
    """Incoming leaderboard query."""

    model_config = ConfigDict(extra="forbid")

    # None falls back to the configured default_limit
    limit: int | None = Field(default=None, ge=1, le=MAX_LEADERBOARD_LIMIT)
    min_comparisons: int = Field(default=0, ge=0)


class LeaderboardEntry(WireModel):
    """One ranked film."""

    rank: int = Field(ge=1)
    id: str
    tmdb_id: int | None = Field(default=None, alias="tmdbId")
    title: str
    year: int | None = None
    poster_path: str | None = Field(default=None, alias="posterPath")
    strength: float = Field(alias="eloRating")
    comparison_count: int = Field(alias="voteCount")


class Leaderboard(WireModel):
    """Ranked films plus generation metadata."""

    films: list[LeaderboardEntry]
    generated_at: datetime = Field(alias="generatedAt")
    min_comparisons: int = Field(alias="minVotes")
