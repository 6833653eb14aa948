"""Tests for the city directory and YAML seeding."""

from cityweather.services.directory import bootstrap_cities, load_city_seed
from tests.conftest import make_payload

SEED_YAML = """\
cities:
  - name: London
    country: United Kingdom
    latitude: 51.5
    longitude: -0.1
  - name: Nowhere
"""


class TestCityDirectory:
    def test_upsert_creates_then_updates_by_name(self, directory):
        created = directory.upsert_city(make_payload("London", 51.5, -0.1))
        updated = directory.upsert_city(make_payload("London", 51.51, -0.12, "United Kingdom"))

        assert updated.id == created.id
        assert updated.latitude == 51.51
        assert updated.country == "United Kingdom"
        assert len(directory.list_entities()) == 1

    def test_get_city_missing_returns_none(self, directory):
        assert directory.get_city(404) is None

    def test_has_coordinates(self, directory):
        full = directory.upsert_city(make_payload("Full", 1.0, 2.0))
        partial = directory.upsert_city(make_payload("Partial", latitude=1.0))

        assert full.has_coordinates
        assert not partial.has_coordinates


class TestSeeding:
    def test_load_city_seed(self, tmp_path):
        path = tmp_path / "cities.yml"
        path.write_text(SEED_YAML, encoding="utf-8")

        seeds = load_city_seed(path)

        assert [seed.name for seed in seeds] == ["London", "Nowhere"]
        assert seeds[1].latitude is None

    def test_missing_seed_file_yields_nothing(self, tmp_path):
        assert load_city_seed(tmp_path / "absent.yml") == []

    def test_bootstrap_seeds_empty_table_once(self, directory, tmp_path):
        path = tmp_path / "cities.yml"
        path.write_text(SEED_YAML, encoding="utf-8")

        assert bootstrap_cities(directory, path) == 2
        assert bootstrap_cities(directory, path) == 0
        assert len(directory.list_entities()) == 2

    def test_invalid_seed_is_logged_not_raised(self, directory, tmp_path):
        path = tmp_path / "cities.yml"
        path.write_text("cities:\n  - name: Bad\n    latitude: 200\n", encoding="utf-8")

        assert bootstrap_cities(directory, path) == 0
        assert directory.list_entities() == []
