"""Shared fixtures for the city weather test suite.

Every test gets its own SQLite file under tmp_path. Weather sources are stubbed
so refresh passes never touch the network.
"""

from __future__ import annotations

import threading
from typing import Callable

import pytest

from cityweather.db.session import build_engine, init_db
from cityweather.models import CityPayload
from cityweather.services.directory import CityDirectory
from cityweather.services.reading_store import ReadingStore
from cityweather.services.weather_client import FetchResult, UpstreamError, WeatherObservation


# ── Factory helpers ───────────────────────────────────────────────────────────


def make_observation(
    temperature_c: float = 15.0,
    description: str = "Cloudy",
    humidity_pct: int = 70,
) -> WeatherObservation:
    return WeatherObservation(
        temperature_c=temperature_c, description=description, humidity_pct=humidity_pct
    )


def make_payload(
    name: str,
    latitude: float | None = None,
    longitude: float | None = None,
    country: str | None = None,
) -> CityPayload:
    return CityPayload(name=name, latitude=latitude, longitude=longitude, country=country)


class StubSource:
    """Weather source returning canned results keyed by coordinates."""

    def __init__(
        self,
        results: dict[tuple[float, float], FetchResult] | None = None,
        default: FetchResult | None = None,
        on_fetch: Callable[[float, float], None] | None = None,
    ) -> None:
        self.results = results or {}
        self.default = default or UpstreamError("no stub registered")
        self.on_fetch = on_fetch
        self.calls: list[tuple[float, float]] = []
        self._lock = threading.Lock()

    def fetch(self, latitude: float, longitude: float) -> FetchResult:
        with self._lock:
            self.calls.append((latitude, longitude))
        if self.on_fetch:
            self.on_fetch(latitude, longitude)
        return self.results.get((latitude, longitude), self.default)


# ── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture
def engine(tmp_path):
    # File-backed so concurrent sessions get their own connections.
    db_engine = build_engine(f"sqlite:///{tmp_path / 'weather.db'}")
    init_db(db_engine)
    yield db_engine
    db_engine.dispose()


@pytest.fixture
def store(engine) -> ReadingStore:
    return ReadingStore(engine)


@pytest.fixture
def directory(engine) -> CityDirectory:
    return CityDirectory(engine)


@pytest.fixture
def sample_cities(directory):
    """London and Paris with coordinates, Nowhere without."""
    london = directory.upsert_city(make_payload("London", 51.5, -0.1, "United Kingdom"))
    paris = directory.upsert_city(make_payload("Paris", 48.85, 2.35, "France"))
    nowhere = directory.upsert_city(make_payload("Nowhere"))
    return london, paris, nowhere
