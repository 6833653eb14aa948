"""Read-side access to stored readings for presentation layers."""

from __future__ import annotations

from cityweather.models import City, WeatherReading
from cityweather.services.reading_store import ReadingNotFound, ReadingStore


class WeatherQueryService:
    """Never fetches; an empty list means there is nothing stored yet."""

    def __init__(self, store: ReadingStore) -> None:
        self.store = store

    def all_readings(self) -> list[tuple[City, WeatherReading]]:
        return self.store.list()

    def filter(self, substring: str) -> list[tuple[City, WeatherReading]]:
        return self.store.search(substring)

    def reading_for(self, city_id: int) -> tuple[City, WeatherReading] | None:
        try:
            return self.store.get_with_city(city_id)
        except ReadingNotFound:
            return None


__all__ = ["WeatherQueryService"]
