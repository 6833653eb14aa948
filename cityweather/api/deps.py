"""API dependencies."""

from __future__ import annotations

from fastapi import Request

from cityweather.services.directory import CityDirectory
from cityweather.services.queries import WeatherQueryService
from cityweather.services.refresh import RefreshScheduler


def get_queries(request: Request) -> WeatherQueryService:
    return request.app.state.queries


def get_directory(request: Request) -> CityDirectory:
    return request.app.state.directory


def get_scheduler(request: Request) -> RefreshScheduler:
    return request.app.state.scheduler
