"""Weather reading endpoints: table view, widget lookup, search and manual refresh."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, Query

from cityweather.api.deps import get_queries, get_scheduler
from cityweather.models import CityWeatherRead
from cityweather.services.queries import WeatherQueryService
from cityweather.services.refresh import RefreshScheduler

NO_DATA_MESSAGE = "No weather data available."

router = APIRouter(prefix="/weather", tags=["weather"])


@router.get("", response_model=List[CityWeatherRead])
def list_weather(queries: WeatherQueryService = Depends(get_queries)) -> list[CityWeatherRead]:
    return [CityWeatherRead.from_pair(city, reading) for city, reading in queries.all_readings()]


@router.get("/search", response_model=List[CityWeatherRead])
def search_weather(
    q: str = Query("", max_length=128, description="Case-insensitive city name fragment"),
    queries: WeatherQueryService = Depends(get_queries),
) -> list[CityWeatherRead]:
    return [CityWeatherRead.from_pair(city, reading) for city, reading in queries.filter(q)]


@router.post("/refresh")
def trigger_refresh(scheduler: RefreshScheduler = Depends(get_scheduler)) -> dict[str, Any]:
    """Run a refresh pass now; dropped if one is already running."""

    result = scheduler.run_refresh_pass()
    return asdict(result)


@router.get("/{city_id}", response_model=CityWeatherRead)
def get_city_weather(
    city_id: int, queries: WeatherQueryService = Depends(get_queries)
) -> CityWeatherRead:
    pair = queries.reading_for(city_id)
    if pair is None:
        raise HTTPException(status_code=404, detail=NO_DATA_MESSAGE)
    city, reading = pair
    return CityWeatherRead.from_pair(city, reading)


__all__ = ["router", "NO_DATA_MESSAGE"]
