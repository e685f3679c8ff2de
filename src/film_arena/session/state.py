"""Voting session state and its pure transition function.

The session moves through four phases::

    LOADING -> PLAYING <-> LEADERBOARD
               PLAYING -> EMPTY <-> LEADERBOARD
               EMPTY -> PLAYING        (look-ahead refill)

Actions that do not fit the current phase leave the state unchanged.
``transition`` never performs I/O; ``SessionController`` owns the network
calls and feeds their results back in as actions.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Literal

from film_arena.schemas import MatchupView


class Phase(str, Enum):
    """Session phase."""

    LOADING = "loading"
    PLAYING = "playing"
    EMPTY = "empty"
    LEADERBOARD = "leaderboard"


@dataclass(frozen=True)
class SessionStats:
    """Counters for the current session only. Never persisted."""

    votes: int = 0
    skips: int = 0


@dataclass(frozen=True)
class PendingVote:
    """A vote chosen by the user but not yet submitted.

    Stored the moment the user decides, before the exit transition plays,
    and handed to the submitter once the card has left.
    """

    matchup_id: str
    winner_id: str


@dataclass(frozen=True)
class SessionState:
    """Complete client-side session state.

    Attributes:
        phase: Current phase.
        current: Matchup on screen.
        next: Single-slot look-ahead buffer.
        stats: Session counters.
        pending_vote: Vote intent awaiting the exit transition.
        error: User-visible, non-fatal error message.
        resume_phase: Phase to return to when leaving the leaderboard.
    """

    phase: Phase = Phase.LOADING
    current: MatchupView | None = None
    next: MatchupView | None = None
    stats: SessionStats = field(default_factory=SessionStats)
    pending_vote: PendingVote | None = None
    error: str | None = None
    resume_phase: Phase | None = None


# ==================== Actions ====================


@dataclass(frozen=True)
class Loading:
    """Initial fetch started."""


@dataclass(frozen=True)
class MatchupLoaded:
    """A fetch returned; matchup is None when the pool is exhausted."""

    matchup: MatchupView | None
    is_next: bool = False


@dataclass(frozen=True)
class VotePrepared:
    """User picked a winner for the current matchup."""

    matchup_id: str
    winner_id: str


@dataclass(frozen=True)
class VoteDropped:
    """The pending vote could not be committed and is discarded unsent."""


@dataclass(frozen=True)
class Advance:
    """Exit transition finished; promote the look-ahead matchup."""

    kind: Literal["vote", "skip"]


@dataclass(frozen=True)
class ShowLeaderboard:
    """Switch to the leaderboard view."""


@dataclass(frozen=True)
class BackToPlaying:
    """Leave the leaderboard view."""


@dataclass(frozen=True)
class Failed:
    """A background call failed; show a non-fatal message."""

    message: str


@dataclass(frozen=True)
class ClearError:
    """Dismiss the current error message."""


Action = (
    Loading
    | MatchupLoaded
    | VotePrepared
    | VoteDropped
    | Advance
    | ShowLeaderboard
    | BackToPlaying
    | Failed
    | ClearError
)


def initial_state() -> SessionState:
    return SessionState()


def _on_loaded(state: SessionState, action: MatchupLoaded) -> SessionState:
    if action.is_next:
        if action.matchup is None:
            return state
        if state.phase is Phase.EMPTY and state.current is None:
            # Refill after exhaustion: the new matchup goes straight on screen
            return replace(state, phase=Phase.PLAYING, current=action.matchup, next=None)
        if state.phase is Phase.LEADERBOARD and state.current is None:
            return replace(state, current=action.matchup, next=None, resume_phase=Phase.PLAYING)
        return replace(state, next=action.matchup)

    resume = Phase.EMPTY if action.matchup is None else Phase.PLAYING
    if state.phase is Phase.LEADERBOARD:
        # Stay on the leaderboard; the loaded matchup waits underneath
        return replace(state, current=action.matchup, next=None, resume_phase=resume)
    return replace(state, phase=resume, current=action.matchup, next=None)


def _on_advance(state: SessionState, action: Advance) -> SessionState:
    stats = state.stats
    if action.kind == "vote":
        stats = replace(stats, votes=stats.votes + 1)
    else:
        stats = replace(stats, skips=stats.skips + 1)

    if state.next is None:
        return replace(
            state, phase=Phase.EMPTY, current=None, next=None, stats=stats, pending_vote=None
        )
    return replace(
        state,
        phase=Phase.PLAYING,
        current=state.next,
        next=None,
        stats=stats,
        pending_vote=None,
    )


def transition(state: SessionState, action: Action) -> SessionState:
    """Apply one action to the session state.

    Args:
        state: Current state.
        action: Action to apply.

    Returns:
        The new state. The input state is never mutated.
    """
    match action:
        case Loading():
            return replace(state, phase=Phase.LOADING, error=None)
        case MatchupLoaded():
            return _on_loaded(state, action)
        case VotePrepared(matchup_id=matchup_id, winner_id=winner_id):
            if state.phase is not Phase.PLAYING or state.current is None:
                return state
            if state.current.id != matchup_id:
                return state
            return replace(state, pending_vote=PendingVote(matchup_id, winner_id))
        case VoteDropped():
            return replace(state, pending_vote=None)
        case Advance():
            if state.phase is not Phase.PLAYING or state.current is None:
                return state
            return _on_advance(state, action)
        case ShowLeaderboard():
            # A vote mid-exit must advance first
            if state.phase not in (Phase.PLAYING, Phase.EMPTY) or state.pending_vote:
                return state
            return replace(state, phase=Phase.LEADERBOARD, resume_phase=state.phase)
        case BackToPlaying():
            if state.phase is not Phase.LEADERBOARD:
                return state
            phase = state.resume_phase
            if phase is None:
                phase = Phase.PLAYING if state.current is not None else Phase.EMPTY
            return replace(state, phase=phase, resume_phase=None)
        case Failed(message=message):
            return replace(state, error=message)
        case ClearError():
            return replace(state, error=None)
    return state
