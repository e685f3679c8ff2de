from .matchup_repository import MatchupRepository
from .rating_repository import RatingRepository
from .store import ArenaStore
from .vote_repository import VoteRepository

__all__ = ["ArenaStore", "MatchupRepository", "RatingRepository", "VoteRepository"]
