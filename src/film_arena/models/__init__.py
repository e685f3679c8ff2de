from .film import DEFAULT_STRENGTH, Film
from .matchup import Matchup
from .vote import Vote

__all__ = ["DEFAULT_STRENGTH", "Film", "Matchup", "Vote"]
