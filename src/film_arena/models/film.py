import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, Double
from sqlmodel import Field, SQLModel

DEFAULT_STRENGTH = 1500.0


class Film(SQLModel, table=True):
    """A film that can appear in matchups, with its current strength."""

    __tablename__ = "films"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    tmdb_id: int | None = None
    title: str
    year: int | None = None
    poster_path: str | None = None
    strength: float = Field(
        default=DEFAULT_STRENGTH,
        sa_column=Column(Double, nullable=False, default=DEFAULT_STRENGTH),
    )
    comparison_count: int = Field(default=0, ge=0)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
