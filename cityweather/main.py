"""FastAPI application factory."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from sqlalchemy.engine import Engine

from cityweather.api import api_router
from cityweather.core.config import settings
from cityweather.core.logging_config import setup_logging
from cityweather.db.session import engine, init_db
from cityweather.services.directory import CityDirectory, bootstrap_cities
from cityweather.services.queries import WeatherQueryService
from cityweather.services.reading_store import ReadingStore
from cityweather.services.refresh import RefreshScheduler, WeatherSource
from cityweather.services.weather_client import OpenWeatherClient

logger = logging.getLogger(__name__)


def create_app(
    bind: Engine | None = None,
    source: WeatherSource | None = None,
    scheduler_enabled: bool | None = None,
) -> FastAPI:
    setup_logging()

    db_engine = bind or engine
    owns_client = source is None
    weather_source = source or OpenWeatherClient()
    store = ReadingStore(db_engine)
    directory = CityDirectory(db_engine)
    scheduler = RefreshScheduler(directory=directory, source=weather_source, store=store)
    run_scheduler = settings.scheduler_enabled if scheduler_enabled is None else scheduler_enabled

    app = FastAPI(title=settings.app_name, version=settings.app_version)
    app.state.store = store
    app.state.directory = directory
    app.state.queries = WeatherQueryService(store)
    app.state.scheduler = scheduler
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        """Provide a friendly landing response for the bare hostname."""

        return {
            "message": (
                f"{settings.app_name} is online. Try GET "
                f"{settings.api_prefix}/weather for the latest readings."
            )
        }

    @app.on_event("startup")
    def _startup() -> None:
        init_db(db_engine)
        bootstrap_cities(directory)
        if run_scheduler:
            scheduler.start()

    @app.on_event("shutdown")
    def _shutdown() -> None:
        scheduler.stop()
        if owns_client and isinstance(weather_source, OpenWeatherClient):
            weather_source.close()

    logger.info("Initialized %s API", settings.app_name)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("cityweather.main:app", host="0.0.0.0", port=8000, reload=False)
