"""Database models."""

from .city import City, CityPayload
from .weather import CityWeatherRead, WeatherReading

__all__ = [
    "City",
    "CityPayload",
    "CityWeatherRead",
    "WeatherReading",
]
