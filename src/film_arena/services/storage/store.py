"""Arena storage layer: engine lifecycle, catalog seeding and repositories."""

from __future__ import annotations

import asyncio
import gc
from collections.abc import Sequence
from pathlib import Path

import structlog
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import NullPool
from sqlmodel import Session, SQLModel, create_engine

from film_arena.core.catalog import Catalog
from film_arena.core.config import ArenaConfig
from film_arena.core.errors import InvalidRequestError
from film_arena.models import Film, Matchup

from .matchup_repository import MatchupRepository
from .rating_repository import RatingRepository
from .vote_repository import VoteRepository

logger = structlog.get_logger()

_FILE_BACKENDS = ("duckdb", "sqlite")


class ArenaStore:
    """Unified persistence layer for films, matchups and votes.

    Handles:
    - Engine creation and schema setup (DuckDB by default, any SQLAlchemy URL)
    - Catalog seeding for films and matchups
    - Access to the rating, matchup and vote repositories
    """

    def __init__(self, config: ArenaConfig) -> None:
        """Initialize arena store.

        Args:
            config: Arena configuration.
        """
        self.config = config
        self.database_url = config.get_database_url()
        self._engine = None
        self._init_directories()
        self._init_db()
        self.films = RatingRepository(self._engine)
        self.matchups = MatchupRepository(self._engine)
        self.votes = VoteRepository(self._engine)

    @property
    def engine(self) -> Engine:
        """The SQLAlchemy engine shared by all repositories."""
        return self._engine

    def _init_directories(self) -> None:
        """Create the parent directory of file-backed databases."""
        url = make_url(self.database_url)
        if url.get_backend_name() in _FILE_BACKENDS and url.database not in (None, "", ":memory:"):
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        logger.info("store_init", backend=url.get_backend_name(), database=url.database)

    def _init_db(self) -> None:
        """Create the engine and tables."""
        # NullPool gives every unit of work its own connection
        self._engine = create_engine(self.database_url, poolclass=NullPool)
        SQLModel.metadata.create_all(self._engine)

    # ==================== Seeding ====================

    async def add_films(self, films: Sequence[Film]) -> list[str]:
        """Insert films and return their ids in input order."""

        def _save() -> list[str]:
            ids = []
            with Session(self._engine) as session, session.begin():
                for film in films:
                    session.add(film)
                    ids.append(film.id)
            logger.debug("saved_films", count=len(ids))
            return ids

        return await asyncio.to_thread(_save)

    async def add_matchups(self, pairs: Sequence[tuple[str, str]]) -> list[str]:
        """Insert matchups between existing film ids and return their ids.

        Raises:
            InvalidRequestError: If a pair repeats the same film.
        """
        for film_a_id, film_b_id in pairs:
            if film_a_id == film_b_id:
                msg = f"Matchup needs two distinct films, got {film_a_id!r} twice"
                raise InvalidRequestError(msg)

        def _save() -> list[str]:
            with Session(self._engine) as session, session.begin():
                matchups = [Matchup(film_a_id=a, film_b_id=b) for a, b in pairs]
                session.add_all(matchups)
                ids = [m.id for m in matchups]
            logger.debug("saved_matchups", count=len(ids))
            return ids

        return await asyncio.to_thread(_save)

    async def seed_catalog(self, catalog: Catalog) -> tuple[int, int]:
        """Create films and matchups from a validated catalog.

        Returns:
            Tuple of (films_created, matchups_created).
        """
        films = [
            Film(
                title=entry.title,
                year=entry.year,
                poster_path=entry.poster_path,
                tmdb_id=entry.tmdb_id,
                strength=self.config.ranking.initial_strength,
            )
            for entry in catalog.films
        ]
        film_ids = await self.add_films(films)
        ids_by_key = dict(zip([f.key for f in catalog.films], film_ids, strict=True))
        pairs = [(ids_by_key[a], ids_by_key[b]) for a, b in catalog.matchup_keys()]
        matchup_ids = await self.add_matchups(pairs)
        logger.info("catalog_seeded", films=len(film_ids), matchups=len(matchup_ids))
        return len(film_ids), len(matchup_ids)

    # ==================== Lifecycle ====================

    async def close(self) -> None:
        """Dispose of the database engine."""
        self.close_sync()

    def close_sync(self) -> None:
        """Synchronously dispose of the database engine."""
        if self._engine:
            self._engine.dispose()
            self._engine = None

        gc.collect()
