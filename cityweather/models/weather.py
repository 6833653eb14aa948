"""Weather reading models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from cityweather.db.types import UTCDateTime, utcnow

from .city import City


class WeatherReading(SQLModel, table=True):
    """Latest weather snapshot for one city, overwritten on every refresh."""

    id: Optional[int] = Field(default=None, primary_key=True)
    city_id: int = Field(foreign_key="city.id", nullable=False, index=True, unique=True)
    temperature_c: float
    description: str = Field(max_length=255)
    humidity_pct: int = Field(ge=0, le=100)
    updated_at: datetime = Field(
        default_factory=utcnow, sa_type=UTCDateTime, nullable=False, index=True
    )


class CityWeatherRead(SQLModel):
    """City joined with its latest reading, as served to presentation layers."""

    city_id: int
    name: str
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    temperature_c: float
    temperature_f: float
    description: str
    humidity_pct: int
    updated_at: datetime

    @classmethod
    def from_pair(cls, city: City, reading: WeatherReading) -> "CityWeatherRead":
        return cls(
            city_id=reading.city_id,
            name=city.name,
            country=city.country,
            latitude=city.latitude,
            longitude=city.longitude,
            temperature_c=reading.temperature_c,
            temperature_f=round(reading.temperature_c * 9.0 / 5.0 + 32.0, 2),
            description=reading.description,
            humidity_pct=reading.humidity_pct,
            updated_at=reading.updated_at,
        )


__all__ = ["WeatherReading", "CityWeatherRead"]
