"""City directory endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from cityweather.api.deps import get_directory
from cityweather.models import City, CityPayload
from cityweather.services.directory import CityDirectory

router = APIRouter(prefix="/cities", tags=["cities"])


@router.get("", response_model=List[City])
def list_cities(directory: CityDirectory = Depends(get_directory)) -> list[City]:
    return directory.list_entities()


@router.post("", response_model=City)
def upsert_city(payload: CityPayload, directory: CityDirectory = Depends(get_directory)) -> City:
    """Create or update a city by name."""
    return directory.upsert_city(payload)


@router.get("/{city_id}", response_model=City)
def get_city(city_id: int, directory: CityDirectory = Depends(get_directory)) -> City:
    city = directory.get_city(city_id)
    if not city:
        raise HTTPException(status_code=404, detail="City not found")
    return city


__all__ = ["router"]
