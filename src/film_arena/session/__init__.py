"""Client-side voting session: pure state machine plus async controller."""

from film_arena.session.controller import SessionController
from film_arena.session.state import (
    Action,
    Advance,
    BackToPlaying,
    ClearError,
    Failed,
    Loading,
    MatchupLoaded,
    PendingVote,
    Phase,
    SessionState,
    SessionStats,
    ShowLeaderboard,
    VoteDropped,
    VotePrepared,
    initial_state,
    transition,
)

__all__ = [
    "Action",
    "Advance",
    "BackToPlaying",
    "ClearError",
    "Failed",
    "Loading",
    "MatchupLoaded",
    "PendingVote",
    "Phase",
    "SessionController",
    "SessionState",
    "SessionStats",
    "ShowLeaderboard",
    "VoteDropped",
    "VotePrepared",
    "initial_state",
    "transition",
]
