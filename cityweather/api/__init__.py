"""API router definitions."""

from fastapi import APIRouter

from .cities import router as cities_router
from .routes import health_router
from .weather import router as weather_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(weather_router)
api_router.include_router(cities_router)

__all__ = ["api_router"]
