import uuid
from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class Matchup(SQLModel, table=True):
    """A pre-seeded pair of films offered for a vote."""

    __tablename__ = "matchups"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    film_a_id: str = Field(index=True)
    film_b_id: str = Field(index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def has_film(self, film_id: str) -> bool:
        return film_id in (self.film_a_id, self.film_b_id)
