"""YAML catalog schema for seeding films and matchups."""

from __future__ import annotations

from itertools import combinations
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from film_arena.core.errors import MissingFieldError


class CatalogFilm(BaseModel):
    """A film entry in a seed catalog.

    Attributes:
        key: Catalog-local handle used by the matchups list.
        title: Display title.
        year: Release year, if known.
        poster_path: Opaque image reference.
        tmdb_id: External metadata id, if known.
    """

    key: str
    title: str
    year: int | None = None
    poster_path: str | None = None
    tmdb_id: int | None = None

    @field_validator("key", "title")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            msg = "key and title cannot be empty"
            raise ValueError(msg)
        return v.strip()


class Catalog(BaseModel):
    """Films plus the matchups to create between them."""

    films: list[CatalogFilm] = Field(..., min_length=2)
    matchups: list[tuple[str, str]] = Field(default_factory=list)
    all_pairs: bool = False

    @model_validator(mode="after")
    def validate_matchups(self) -> Catalog:
        keys = [f.key for f in self.films]
        if len(set(keys)) != len(keys):
            msg = "Film keys must be unique"
            raise ValueError(msg)
        known = set(keys)
        for key_a, key_b in self.matchups:
            if key_a not in known or key_b not in known:
                msg = f"Matchup references unknown film: {key_a!r} vs {key_b!r}"
                raise ValueError(msg)
            if key_a == key_b:
                msg = f"Matchup pairs a film with itself: {key_a!r}"
                raise ValueError(msg)
        if not self.matchups and not self.all_pairs:
            msg = "Define 'matchups' or set 'all_pairs: true'"
            raise ValueError(msg)
        return self

    def matchup_keys(self) -> list[tuple[str, str]]:
        """Explicit matchups, followed by every unordered pair when all_pairs is set."""
        pairs = list(self.matchups)
        if self.all_pairs:
            pairs.extend(combinations([f.key for f in self.films], 2))
        return pairs


def load_catalog(path: str | Path) -> Catalog:
    """Load and validate a seed catalog from YAML.

    Raises:
        FileNotFoundError: If the catalog file doesn't exist.
        MissingFieldError: If the file has no films list.
        pydantic.ValidationError: If the catalog is invalid.
    """
    catalog_path = Path(path)
    if not catalog_path.exists():
        msg = f"Catalog file not found: {catalog_path}"
        raise FileNotFoundError(msg)

    with catalog_path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict) or "films" not in data:
        raise MissingFieldError("films", str(catalog_path))

    return Catalog.model_validate(data)
