"""Film Arena.

Rank films by community head-to-head votes: users pick the better of two
films, each vote adjusts both films' Elo strengths, and a leaderboard ranks
the catalog.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
