"""Tests for the validated arena service boundary."""

import pytest

from film_arena.core.config import LeaderboardConfig
from film_arena.core.errors import DuplicateVoteError, InvalidRequestError
from film_arena.schemas import LeaderboardQuery, VoteRequest
from film_arena.services.arena import ArenaService


@pytest.fixture
def service(config, store):
    return ArenaService(config, store)


class TestFetchNextComparison:
    """Tests for fetch_next_comparison."""

    async def test_returns_matchup(self, service, seeded):
        matchup = await service.fetch_next_comparison("alice")
        assert matchup.id in seeded.matchups

    @pytest.mark.parametrize("user_id", ["", "   "])
    async def test_blank_user_rejected(self, service, user_id):
        with pytest.raises(InvalidRequestError, match="user_id is required"):
            await service.fetch_next_comparison(user_id)


class TestSubmitJudgment:
    """Tests for submit_judgment payload handling."""

    async def test_accepts_mapping(self, service, seeded):
        payload = {
            "matchup_id": seeded.matchups[0],
            "user_id": "alice",
            "winner_id": seeded.films[0],
        }
        outcome = await service.submit_judgment(payload)
        assert outcome.updated_scores.film_a_strength == 1516.0

    async def test_accepts_model(self, service, seeded):
        request = VoteRequest(
            matchup_id=seeded.matchups[0], user_id="alice", winner_id=seeded.films[1]
        )
        outcome = await service.submit_judgment(request)
        assert outcome.updated_scores.film_b_strength == 1516.0

    async def test_missing_field(self, service, seeded):
        with pytest.raises(InvalidRequestError, match="winner_id"):
            await service.submit_judgment({"matchup_id": seeded.matchups[0], "user_id": "alice"})

    async def test_extra_field(self, service, seeded):
        payload = {
            "matchup_id": seeded.matchups[0],
            "user_id": "alice",
            "winner_id": seeded.films[0],
            "weight": 10,
        }
        with pytest.raises(InvalidRequestError, match="weight"):
            await service.submit_judgment(payload)

    async def test_blank_user(self, service, seeded):
        payload = {"matchup_id": seeded.matchups[0], "user_id": " ", "winner_id": seeded.films[0]}
        with pytest.raises(InvalidRequestError, match="user_id"):
            await service.submit_judgment(payload)

    async def test_duplicate_passes_through(self, service, seeded):
        payload = {
            "matchup_id": seeded.matchups[0],
            "user_id": "alice",
            "winner_id": seeded.films[0],
        }
        await service.submit_judgment(payload)
        with pytest.raises(DuplicateVoteError):
            await service.submit_judgment(payload)


class TestGetLeaderboard:
    """Tests for get_leaderboard query handling."""

    async def test_defaults(self, service, seeded):
        board = await service.get_leaderboard()
        assert len(board.films) == 3
        assert board.min_comparisons == 0

    async def test_configured_default_limit(self, config, store, seeded):
        config = config.model_copy(update={"leaderboard": LeaderboardConfig(default_limit=2)})
        service = ArenaService(config, store)

        board = await service.get_leaderboard({"min_comparisons": 0})
        assert len(board.films) == 2

    async def test_query_model(self, service, seeded):
        await service.submit_judgment(
            {"matchup_id": seeded.matchups[0], "user_id": "alice", "winner_id": seeded.films[0]}
        )
        board = await service.get_leaderboard(LeaderboardQuery(limit=5, min_comparisons=1))
        assert [e.id for e in board.films] == [seeded.films[0], seeded.films[1]]

    @pytest.mark.parametrize(
        "payload",
        [{"limit": 0}, {"limit": 101}, {"min_comparisons": -1}, {"limit": "lots"}],
    )
    async def test_invalid_query(self, service, payload):
        with pytest.raises(InvalidRequestError):
            await service.get_leaderboard(payload)
