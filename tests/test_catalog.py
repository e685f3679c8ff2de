"""Tests for seed catalog parsing."""

import pydantic
import pytest
import yaml

from film_arena.core.catalog import Catalog, CatalogFilm, load_catalog
from film_arena.core.errors import MissingFieldError


def _films(*keys: str) -> list[dict]:
    return [{"key": key, "title": key.title()} for key in keys]


class TestCatalog:
    """Tests for Catalog validation."""

    def test_explicit_matchups(self):
        catalog = Catalog(films=_films("alien", "brazil"), matchups=[("alien", "brazil")])
        assert catalog.matchup_keys() == [("alien", "brazil")]

    def test_all_pairs(self):
        catalog = Catalog(films=_films("a", "b", "c", "d"), all_pairs=True)
        pairs = catalog.matchup_keys()
        assert len(pairs) == 6
        assert ("a", "d") in pairs
        assert all(x != y for x, y in pairs)

    def test_all_pairs_appended_after_explicit(self):
        catalog = Catalog(films=_films("a", "b"), matchups=[("b", "a")], all_pairs=True)
        assert catalog.matchup_keys() == [("b", "a"), ("a", "b")]

    def test_unknown_key_rejected(self):
        with pytest.raises(pydantic.ValidationError, match="unknown film"):
            Catalog(films=_films("a", "b"), matchups=[("a", "zzz")])

    def test_self_pair_rejected(self):
        with pytest.raises(pydantic.ValidationError, match="with itself"):
            Catalog(films=_films("a", "b"), matchups=[("a", "a")])

    def test_duplicate_keys_rejected(self):
        with pytest.raises(pydantic.ValidationError, match="unique"):
            Catalog(films=_films("a", "a"), all_pairs=True)

    def test_needs_matchups_or_all_pairs(self):
        with pytest.raises(pydantic.ValidationError, match="all_pairs"):
            Catalog(films=_films("a", "b"))

    def test_needs_two_films(self):
        with pytest.raises(pydantic.ValidationError):
            Catalog(films=_films("a"), all_pairs=True)

    def test_blank_title_rejected(self):
        with pytest.raises(pydantic.ValidationError, match="cannot be empty"):
            CatalogFilm(key="a", title="   ")


class TestLoadCatalog:
    """Tests for catalog file loading."""

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        data = {
            "films": [
                {"key": "alien", "title": "Alien", "year": 1979, "tmdb_id": 348},
                {"key": "brazil", "title": "Brazil", "poster_path": "/brazil.jpg"},
            ],
            "matchups": [["alien", "brazil"]],
        }
        path.write_text(yaml.dump(data))

        catalog = load_catalog(path)
        assert catalog.films[0].tmdb_id == 348
        assert catalog.films[1].poster_path == "/brazil.jpg"
        assert catalog.matchup_keys() == [("alien", "brazil")]

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_catalog(tmp_path / "nope.yaml")

    def test_empty_file_missing_films(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text("")
        with pytest.raises(MissingFieldError, match="'films'"):
            load_catalog(path)
