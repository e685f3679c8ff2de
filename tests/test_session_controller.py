"""Tests for the async session controller and its commit protocol."""

from dataclasses import replace
from datetime import UTC, datetime

import pytest

from film_arena.client import ArenaClient, LocalArenaClient
from film_arena.core.errors import ArenaClientError, DuplicateVoteError, VoteRecordingError
from film_arena.schemas import (
    FilmView,
    Leaderboard,
    MatchupView,
    UpdatedScores,
    VoteOutcome,
    VoteRecord,
)
from film_arena.services.arena import ArenaService
from film_arena.session import Phase, SessionController
from film_arena.session.controller import (
    LEADERBOARD_FAILED_MESSAGE,
    LOAD_FAILED_MESSAGE,
    VOTE_FAILED_MESSAGE,
)


def make_matchup(matchup_id: str) -> MatchupView:
    return MatchupView(
        id=matchup_id,
        film_a=FilmView(id=f"{matchup_id}-fa", title="Left", strength=1500.0),
        film_b=FilmView(id=f"{matchup_id}-fb", title="Right", strength=1500.0),
    )


M1, M2, M3, M4 = (make_matchup(f"m{i}") for i in range(1, 5))


class ScriptedClient(ArenaClient):
    """Serves matchups from a queue and records submissions."""

    def __init__(self, matchups, submit_error=None, fetch_error=None):
        self.queue = list(matchups)
        self.submit_error = submit_error
        self.fetch_error = fetch_error
        self.submitted = []
        self.fetches = 0
        self.closed = False

    async def fetch_matchup(self):
        self.fetches += 1
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.queue.pop(0) if self.queue else None

    async def submit_vote(self, matchup_id, winner_id):
        self.submitted.append((matchup_id, winner_id))
        if self.submit_error is not None:
            raise self.submit_error
        return VoteOutcome(
            vote=VoteRecord(
                id="v1",
                matchup_id=matchup_id,
                user_id="alice",
                winner_id=winner_id,
                voted_at=datetime.now(UTC),
            ),
            updated_scores=UpdatedScores(
                film_a_id=f"{matchup_id}-fa",
                film_a_strength=1516.0,
                film_b_id=f"{matchup_id}-fb",
                film_b_strength=1484.0,
            ),
        )

    async def fetch_leaderboard(self, limit=50, min_comparisons=0):
        if self.fetch_error is not None:
            raise self.fetch_error
        return Leaderboard(
            films=[], generated_at=datetime.now(UTC), min_comparisons=min_comparisons
        )

    async def close(self):
        self.closed = True


class TestStart:
    """Tests for the initial load."""

    async def test_loads_current_and_prefetches_next(self):
        session = SessionController(ScriptedClient([M1, M2, M3]))
        state = await session.start()

        assert state.phase is Phase.PLAYING
        assert state.current == M1
        assert state.next == M2

    async def test_empty_pool(self):
        session = SessionController(ScriptedClient([]))
        state = await session.start()
        assert state.phase is Phase.EMPTY

    async def test_load_failure_stays_loading(self):
        client = ScriptedClient([M1], fetch_error=ArenaClientError("down"))
        state = await SessionController(client).start()

        assert state.phase is Phase.LOADING
        assert state.error == LOAD_FAILED_MESSAGE

    async def test_look_ahead_skips_matchup_on_screen(self):
        session = SessionController(ScriptedClient([M1, M1, M2]))
        state = await session.start()
        assert (state.current, state.next) == (M1, M2)

    async def test_look_ahead_gives_up_on_repeats(self):
        client = ScriptedClient([M1, M1, M1, M1, M2])
        state = await SessionController(client, max_refill_attempts=3).start()
        assert state.next is None
        assert client.fetches == 4


class TestCommitProtocol:
    """Tests for prepare_vote / complete_exit."""

    async def test_pending_vote_stored_synchronously(self):
        session = SessionController(ScriptedClient([M1, M2]))
        await session.start()

        assert session.prepare_vote(M1.film_a.id) is True
        assert session.state.pending_vote.matchup_id == "m1"
        assert session.state.pending_vote.winner_id == M1.film_a.id
        assert session.input_locked is True
        assert session.state.current == M1

    async def test_input_lock_blocks_overlapping_actions(self):
        session = SessionController(ScriptedClient([M1, M2]))
        await session.start()
        session.prepare_vote(M1.film_a.id)

        assert session.prepare_vote(M1.film_b.id) is False
        assert session.skip() is False
        assert session.state.pending_vote.winner_id == M1.film_a.id

    async def test_rejects_winner_outside_matchup(self):
        session = SessionController(ScriptedClient([M1, M2]))
        await session.start()
        assert session.prepare_vote(M2.film_a.id) is False
        assert session.input_locked is False

    async def test_advance_happens_before_submission(self):
        client = ScriptedClient([M1, M2, M3])
        session = SessionController(client)
        await session.start()

        session.prepare_vote(M1.film_b.id)
        state = session.complete_exit()

        # Nothing awaited yet: the counter and promotion are already visible
        assert state.stats.votes == 1
        assert state.current == M2
        assert state.pending_vote is None
        assert session.input_locked is False
        assert client.submitted == []

        await session.wait_idle()
        assert client.submitted == [("m1", M1.film_b.id)]
        assert session.state.next == M3
        assert session.last_outcome.vote.matchup_id == "m1"

    async def test_counter_increments_when_submission_fails(self):
        client = ScriptedClient([M1, M2, M3], submit_error=VoteRecordingError("nope"))
        session = SessionController(client)
        await session.start()

        assert session.vote(M1.film_a.id) is True
        assert session.state.stats.votes == 1

        await session.wait_idle()
        assert session.state.error == VOTE_FAILED_MESSAGE
        assert session.state.stats.votes == 1
        assert session.state.current == M2
        assert session.state.next == M3
        assert len(client.submitted) == 1

    async def test_duplicate_vote_is_not_an_error(self):
        client = ScriptedClient([M1, M2], submit_error=DuplicateVoteError("m1", "alice"))
        session = SessionController(client)
        await session.start()

        session.vote(M1.film_a.id)
        await session.wait_idle()
        assert session.state.error is None
        assert session.state.stats.votes == 1

    async def test_empty_after_promotion_without_look_ahead(self):
        session = SessionController(ScriptedClient([M1]))
        await session.start()
        assert session.state.next is None

        session.vote(M1.film_a.id)
        assert session.state.phase is Phase.EMPTY
        assert session.state.current is None
        await session.wait_idle()

    async def test_complete_exit_without_pending_vote(self):
        client = ScriptedClient([M1, M2])
        session = SessionController(client)
        await session.start()

        state = session.complete_exit()
        assert state.current == M1
        assert state.stats.votes == 0
        await session.wait_idle()
        assert client.submitted == []


class TestSkip:
    """Tests for skipping."""

    async def test_skip_never_submits(self):
        client = ScriptedClient([M1, M2, M3])
        session = SessionController(client)
        await session.start()

        assert session.skip() is True
        await session.wait_idle()

        assert client.submitted == []
        assert session.state.stats.skips == 1
        assert session.state.stats.votes == 0
        assert session.state.current == M2
        assert session.state.next == M3

    async def test_skip_ignored_when_empty(self):
        session = SessionController(ScriptedClient([]))
        await session.start()
        assert session.skip() is False


class TestRefill:
    """Tests for look-ahead refills."""

    async def test_refill_failure_is_non_fatal(self):
        client = ScriptedClient([M1, M2])
        session = SessionController(client)
        await session.start()

        client.fetch_error = ArenaClientError("down")
        session.skip()
        await session.wait_idle()

        assert session.state.phase is Phase.PLAYING
        assert session.state.current == M2
        assert session.state.next is None
        assert session.state.error is None

    async def test_refresh_restores_playing_after_empty(self):
        client = ScriptedClient([M1])
        session = SessionController(client)
        await session.start()
        session.skip()
        await session.wait_idle()
        assert session.state.phase is Phase.EMPTY

        client.queue.extend([M3, M4])
        state = await session.refresh()
        assert state.phase is Phase.PLAYING
        assert state.current == M3
        assert state.next == M4

    async def test_refresh_while_playing_does_nothing(self):
        client = ScriptedClient([M1, M2, M3])
        session = SessionController(client)
        await session.start()
        fetches = client.fetches

        await session.refresh()
        assert client.fetches == fetches


class TestLeaderboard:
    """Tests for the leaderboard toggle."""

    async def test_toggle_resumes_where_voting_left_off(self):
        session = SessionController(ScriptedClient([M1, M2, M3]))
        await session.start()

        assert session.show_leaderboard().phase is Phase.LEADERBOARD
        board = await session.load_leaderboard(limit=10)
        assert board is not None
        assert session.leaderboard is board

        state = session.back_to_playing()
        assert state.phase is Phase.PLAYING
        assert (state.current, state.next) == (M1, M2)

    async def test_votes_ignored_on_leaderboard(self):
        session = SessionController(ScriptedClient([M1, M2]))
        await session.start()
        session.show_leaderboard()

        assert session.prepare_vote(M1.film_a.id) is False
        assert session.skip() is False

    async def test_leaderboard_refused_during_exit_transition(self):
        client = ScriptedClient([M1, M2, M3])
        session = SessionController(client)
        await session.start()
        session.prepare_vote(M1.film_a.id)

        assert session.show_leaderboard().phase is Phase.PLAYING

        session.complete_exit()
        await session.wait_idle()
        state = session.back_to_playing()

        assert client.submitted == [("m1", M1.film_a.id)]
        assert state.stats.votes == 1
        assert state.current == M2
        assert state.pending_vote is None

    async def test_vote_not_submitted_when_advance_is_blocked(self):
        client = ScriptedClient([M1, M2, M3])
        session = SessionController(client)
        await session.start()
        session.prepare_vote(M1.film_a.id)
        session.state = replace(session.state, phase=Phase.LEADERBOARD)

        state = session.complete_exit()
        await session.wait_idle()

        assert client.submitted == []
        assert state.stats.votes == 0
        assert state.pending_vote is None
        assert session.input_locked is False

    async def test_leaderboard_failure(self):
        client = ScriptedClient([M1, M2])
        session = SessionController(client)
        await session.start()

        client.fetch_error = ArenaClientError("down")
        assert await session.load_leaderboard() is None
        assert session.state.error == LEADERBOARD_FAILED_MESSAGE

        assert session.clear_error().error is None


class TestClose:
    async def test_close_closes_client(self):
        client = ScriptedClient([M1, M2])
        session = SessionController(client)
        await session.start()
        session.skip()

        await session.close()
        assert client.closed is True


class TestLocalSession:
    """End-to-end session over a real store."""

    @pytest.fixture
    def service(self, config, store):
        return ArenaService(config, store)

    async def test_votes_until_pool_exhausted(self, service, rows, seeded):
        session = SessionController(LocalArenaClient(service, "alice"))
        await session.start()

        while session.state.phase is Phase.PLAYING:
            session.vote(session.state.current.film_a.id)
            await session.wait_idle()

        assert session.state.phase is Phase.EMPTY
        assert session.state.stats.votes == 3
        assert session.state.error is None
        assert len(rows.votes(user_id="alice")) == 3

        board = await session.load_leaderboard(min_comparisons=1)
        assert len(board.films) == 3
        assert [e.rank for e in board.films] == [1, 2, 3]
