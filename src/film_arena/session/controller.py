"""Async side of a voting session: network calls, look-ahead and commit handoff."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any

import structlog

from film_arena.client import ArenaClient
from film_arena.core.errors import DuplicateVoteError
from film_arena.schemas import Leaderboard, VoteOutcome
from film_arena.session.state import (
    Action,
    Advance,
    BackToPlaying,
    ClearError,
    Failed,
    Loading,
    MatchupLoaded,
    Phase,
    SessionState,
    ShowLeaderboard,
    VoteDropped,
    VotePrepared,
    initial_state,
    transition,
)

logger = structlog.get_logger()

VOTE_FAILED_MESSAGE = "Vote failed to save"
LOAD_FAILED_MESSAGE = "Failed to load matchup"
LEADERBOARD_FAILED_MESSAGE = "Failed to fetch leaderboard"


class SessionController:
    """Drives one user's voting session over an ArenaClient.

    Commit protocol:

    1. ``prepare_vote`` stores the chosen winner on the state as
       ``pending_vote`` immediately, before any exit transition plays.
    2. ``complete_exit`` runs once the transition is over: it promotes the
       look-ahead matchup and bumps the vote counter synchronously, then
       submits the pending vote and refills the look-ahead slot in the
       background.
    3. A failed submission sets a non-fatal error. The advanced state is
       kept and the vote is not retried.

    Attributes:
        client: Arena client bound to the session's user.
        state: Current session state.
        input_locked: True while a vote's exit transition is in flight.
        leaderboard: Last leaderboard fetched through this session.
        last_outcome: Last successfully recorded vote.
    """

    def __init__(self, client: ArenaClient, max_refill_attempts: int = 3) -> None:
        """Initialize session controller.

        Args:
            client: Arena client.
            max_refill_attempts: Fetches allowed per refill when the server
                hands back the matchup already on screen.
        """
        self.client = client
        self.max_refill_attempts = max_refill_attempts
        self.state: SessionState = initial_state()
        self.input_locked = False
        self.leaderboard: Leaderboard | None = None
        self.last_outcome: VoteOutcome | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    def dispatch(self, action: Action) -> SessionState:
        """Apply an action and return the new state."""
        previous = self.state.phase
        self.state = transition(self.state, action)
        if self.state.phase is not previous:
            logger.debug("session_phase", old=previous.value, new=self.state.phase.value)
        return self.state

    # ==================== Loading ====================

    async def start(self) -> SessionState:
        """Load the first matchup, then prefetch the look-ahead slot."""
        self.dispatch(Loading())
        try:
            first = await self.client.fetch_matchup()
        except Exception:
            logger.warning("initial_load_failed", exc_info=True)
            return self.dispatch(Failed(LOAD_FAILED_MESSAGE))

        self.dispatch(MatchupLoaded(first))
        if first is not None:
            await self._refill()
        return self.state

    async def refresh(self) -> SessionState:
        """Look for newly eligible matchups after the pool ran dry."""
        if self.state.phase is Phase.EMPTY or (
            self.state.phase is Phase.LEADERBOARD and self.state.current is None
        ):
            await self._refill()
        return self.state

    async def _refill(self) -> None:
        """Fill the look-ahead slot. Failures leave it empty."""
        for _ in range(self.max_refill_attempts):
            try:
                matchup = await self.client.fetch_matchup()
            except Exception:
                logger.warning("refill_failed", exc_info=True)
                return
            if matchup is None:
                logger.debug("refill_pool_exhausted")
                return

            current = self.state.current
            if current is not None and current.id == matchup.id:
                continue

            self.dispatch(MatchupLoaded(matchup, is_next=True))
            if self.state.next is not None or self.state.current is None:
                return

    # ==================== Voting ====================

    def prepare_vote(self, winner_id: str) -> bool:
        """Record the user's choice for the current matchup.

        Returns:
            False when input is locked, nothing is on screen, or winner_id
            is not one of the current films.
        """
        current = self.state.current
        if self.input_locked or self.state.phase is not Phase.PLAYING or current is None:
            return False
        if winner_id not in current.film_ids():
            return False

        self.input_locked = True
        self.dispatch(VotePrepared(current.id, winner_id))
        return True

    def complete_exit(self) -> SessionState:
        """Advance after the exit transition and submit the pending vote.

        The vote is only submitted when the advance took effect. Otherwise
        the pending vote is dropped unsent.

        Must be called from inside the running event loop.
        """
        pending = self.state.pending_vote
        if pending is None:
            self.input_locked = False
            return self.state

        votes_before = self.state.stats.votes
        self.dispatch(Advance("vote"))
        self.input_locked = False
        if self.state.stats.votes == votes_before:
            logger.warning("vote_dropped", matchup=pending.matchup_id, phase=self.state.phase.value)
            return self.dispatch(VoteDropped())

        logger.debug(
            "session_advance",
            kind="vote",
            phase=self.state.phase.value,
            votes=self.state.stats.votes,
        )
        self._spawn(self._submit_then_refill(pending.matchup_id, pending.winner_id))
        return self.state

    def vote(self, winner_id: str) -> bool:
        """Prepare and commit in one step, for views without exit transitions."""
        if not self.prepare_vote(winner_id):
            return False
        self.complete_exit()
        return True

    async def _submit_then_refill(self, matchup_id: str, winner_id: str) -> None:
        try:
            self.last_outcome = await self.client.submit_vote(matchup_id, winner_id)
        except DuplicateVoteError:
            logger.info("vote_already_recorded", matchup=matchup_id)
        except Exception:
            logger.warning("vote_submit_failed", matchup=matchup_id, exc_info=True)
            self.dispatch(Failed(VOTE_FAILED_MESSAGE))

        await self._refill()

    def skip(self) -> bool:
        """Advance without voting. Skips are not recorded anywhere."""
        if self.input_locked or self.state.phase is not Phase.PLAYING:
            return False
        if self.state.current is None:
            return False

        self.dispatch(Advance("skip"))
        logger.debug("session_advance", kind="skip", skips=self.state.stats.skips)
        self._spawn(self._refill())
        return True

    # ==================== Leaderboard ====================

    def show_leaderboard(self) -> SessionState:
        """Open the leaderboard. Refused while a vote's exit transition plays."""
        if self.input_locked:
            return self.state
        return self.dispatch(ShowLeaderboard())

    def back_to_playing(self) -> SessionState:
        return self.dispatch(BackToPlaying())

    async def load_leaderboard(
        self, limit: int | None = None, min_comparisons: int = 0
    ) -> Leaderboard | None:
        """Fetch the leaderboard; failures set a non-fatal error and return None."""
        try:
            self.leaderboard = await self.client.fetch_leaderboard(limit, min_comparisons)
        except Exception:
            logger.warning("leaderboard_fetch_failed", exc_info=True)
            self.dispatch(Failed(LEADERBOARD_FAILED_MESSAGE))
            return None
        return self.leaderboard

    def clear_error(self) -> SessionState:
        return self.dispatch(ClearError())

    # ==================== Background work ====================

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def wait_idle(self) -> None:
        """Wait for all background submissions and refills to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel background work and close the client."""
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self.client.close()
