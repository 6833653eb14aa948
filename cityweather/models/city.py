"""City models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from cityweather.db.types import UTCDateTime, utcnow


class City(SQLModel, table=True):
    """Addressable location polled for weather."""

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True, max_length=128)
    country: Optional[str] = Field(
        default=None, max_length=128, index=True, description="Country grouping label"
    )
    latitude: Optional[float] = Field(default=None, description="Decimal degrees (-90..90)")
    longitude: Optional[float] = Field(default=None, description="Decimal degrees (-180..180)")
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, nullable=False)

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class CityPayload(SQLModel):
    """Create/update payload; cities are matched by name."""

    name: str = Field(min_length=1, max_length=128)
    country: Optional[str] = Field(default=None, max_length=128)
    latitude: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(default=None, ge=-180.0, le=180.0)


__all__ = ["City", "CityPayload"]
