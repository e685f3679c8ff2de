import uuid
from datetime import UTC, datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

UNIQUE_VOTE_CONSTRAINT = "uq_votes_matchup_user"


class Vote(SQLModel, table=True):
    """A user's recorded choice on one matchup. Never updated or deleted."""

    __tablename__ = "votes"
    # One vote per user per matchup, enforced by the database.
    __table_args__ = (UniqueConstraint("matchup_id", "user_id", name=UNIQUE_VOTE_CONSTRAINT),)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    matchup_id: str = Field(index=True)
    user_id: str = Field(index=True)
    winner_id: str
    voted_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
