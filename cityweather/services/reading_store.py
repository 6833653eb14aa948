"""Persistence for the latest weather reading of each city."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from cityweather.db.types import as_utc, utcnow
from cityweather.models import City, WeatherReading
from cityweather.services.weather_client import WeatherObservation

logger = logging.getLogger(__name__)


class ReadingNotFound(LookupError):
    """No reading has been stored for the city yet."""

    def __init__(self, city_id: int) -> None:
        super().__init__(f"no weather reading for city {city_id}")
        self.city_id = city_id


class _KeyedLocks:
    """Lazily created lock per key."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}

    def lock_for(self, key: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock


class ReadingStore:
    """One row per city in ``weatherreading``, upserted in place.

    Writes for the same city are serialized by a per-city lock so the
    select-then-write in ``upsert`` never interleaves. Writes for different
    cities and all reads run without coordination.
    """

    def __init__(self, engine: Engine, clock: Callable[[], datetime] = utcnow) -> None:
        self.engine = engine
        self._clock = clock
        self._locks = _KeyedLocks()

    def upsert(self, city_id: int, observation: WeatherObservation) -> WeatherReading:
        with self._locks.lock_for(city_id):
            with Session(self.engine) as session:
                reading = session.exec(
                    select(WeatherReading).where(WeatherReading.city_id == city_id)
                ).first()
                now = as_utc(self._clock())
                if reading is None:
                    reading = WeatherReading(
                        city_id=city_id,
                        temperature_c=observation.temperature_c,
                        description=observation.description,
                        humidity_pct=observation.humidity_pct,
                        updated_at=now,
                    )
                    logger.debug("Inserting first reading for city %s", city_id)
                else:
                    reading.temperature_c = observation.temperature_c
                    reading.description = observation.description
                    reading.humidity_pct = observation.humidity_pct
                    # Timestamps never move backwards for a city, even if the clock does.
                    reading.updated_at = max(now, as_utc(reading.updated_at))
                session.add(reading)
                session.commit()
                session.refresh(reading)
                return reading

    def get(self, city_id: int) -> WeatherReading:
        with Session(self.engine) as session:
            reading = session.exec(
                select(WeatherReading).where(WeatherReading.city_id == city_id)
            ).first()
        if reading is None:
            raise ReadingNotFound(city_id)
        return reading

    def get_with_city(self, city_id: int) -> tuple[City, WeatherReading]:
        stmt = (
            select(City, WeatherReading)
            .join(WeatherReading, WeatherReading.city_id == City.id)
            .where(City.id == city_id)
        )
        with Session(self.engine) as session:
            row = session.exec(stmt).first()
        if row is None:
            raise ReadingNotFound(city_id)
        city, reading = row
        return city, reading

    def list(self) -> list[tuple[City, WeatherReading]]:
        stmt = (
            select(City, WeatherReading)
            .join(WeatherReading, WeatherReading.city_id == City.id)
            .order_by(City.name)
        )
        with Session(self.engine) as session:
            return [(city, reading) for city, reading in session.exec(stmt).all()]

    def search(self, substring: str) -> list[tuple[City, WeatherReading]]:
        """Case-insensitive substring match on the city name.

        The query is matched as given; only the empty string matches every city.
        Folding happens in Python because SQLite's lower() only handles ASCII.
        """
        if not substring:
            return self.list()
        needle = substring.casefold()
        return [(city, reading) for city, reading in self.list() if needle in city.name.casefold()]


__all__ = ["ReadingNotFound", "ReadingStore"]
