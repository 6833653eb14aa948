"""Service-layer utilities."""

from .directory import CityDirectory, EntityDirectory, bootstrap_cities, load_city_seed
from .queries import WeatherQueryService
from .reading_store import ReadingNotFound, ReadingStore
from .refresh import ConcurrentPassSkipped, RefreshPassStats, RefreshScheduler, RefreshState
from .weather_client import (
    FetchFailure,
    InvalidCoordinates,
    NetworkFailure,
    OpenWeatherClient,
    RateLimited,
    UpstreamError,
    WeatherObservation,
)

__all__ = [
    "CityDirectory",
    "ConcurrentPassSkipped",
    "EntityDirectory",
    "FetchFailure",
    "InvalidCoordinates",
    "NetworkFailure",
    "OpenWeatherClient",
    "RateLimited",
    "ReadingNotFound",
    "ReadingStore",
    "RefreshPassStats",
    "RefreshScheduler",
    "RefreshState",
    "UpstreamError",
    "WeatherObservation",
    "WeatherQueryService",
    "bootstrap_cities",
    "load_city_seed",
]
