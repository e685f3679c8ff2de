"""Shared fixtures: a temporary DuckDB-backed arena with a tiny catalog."""

from types import SimpleNamespace

import pytest
from sqlmodel import Session, col, select

from film_arena.core.config import ArenaConfig
from film_arena.models import Film, Vote
from film_arena.services.storage import ArenaStore


class StoreRows:
    """Direct table reads for assertions. Not part of the store's API."""

    def __init__(self, store: ArenaStore) -> None:
        self.engine = store.engine

    def film(self, film_id: str) -> Film | None:
        with Session(self.engine) as session:
            return session.get(Film, film_id)

    def films_by_id(self, *film_ids: str) -> dict[str, Film]:
        with Session(self.engine) as session:
            statement = select(Film).where(col(Film.id).in_(film_ids))
            return {f.id: f for f in session.exec(statement).all()}

    def votes(self, matchup_id: str | None = None, user_id: str | None = None) -> list[Vote]:
        statement = select(Vote)
        if matchup_id is not None:
            statement = statement.where(Vote.matchup_id == matchup_id)
        if user_id is not None:
            statement = statement.where(Vote.user_id == user_id)
        with Session(self.engine) as session:
            return list(session.exec(statement).all())


@pytest.fixture
def config(tmp_path) -> ArenaConfig:
    return ArenaConfig(
        data_dir=str(tmp_path),
        database_url=f"duckdb:///{tmp_path / 'arena.duckdb'}",
        seed=7,
    )


@pytest.fixture
def store(config):
    store = ArenaStore(config)
    yield store
    store.close_sync()


@pytest.fixture
def rows(store) -> StoreRows:
    return StoreRows(store)


@pytest.fixture
async def seeded(store) -> SimpleNamespace:
    """Three films and every pair between them."""
    films = [
        Film(title="Alien", year=1979),
        Film(title="Brazil", year=1985),
        Film(title="Clue", year=1985),
    ]
    film_ids = await store.add_films(films)
    a, b, c = film_ids
    matchup_ids = await store.add_matchups([(a, b), (a, c), (b, c)])
    return SimpleNamespace(films=film_ids, matchups=matchup_ids, pairs=[(a, b), (a, c), (b, c)])
