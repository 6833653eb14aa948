"""Standalone refresh worker: runs passes on a timer without the HTTP API."""

from __future__ import annotations

import argparse
import logging

from prometheus_client import start_http_server

from cityweather.core.config import settings
from cityweather.core.logging_config import setup_logging
from cityweather.db.session import engine, init_db
from cityweather.services.directory import CityDirectory, bootstrap_cities
from cityweather.services.reading_store import ReadingStore
from cityweather.services.refresh import ConcurrentPassSkipped, RefreshScheduler
from cityweather.services.weather_client import OpenWeatherClient

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the city weather refresh worker loop.")
    parser.add_argument(
        "--interval",
        type=int,
        help="Refresh interval in seconds (defaults to settings)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Maximum concurrent fetches per pass (defaults to settings)",
    )
    parser.add_argument(
        "--oneshot",
        action="store_true",
        help="Run a single refresh pass instead of the continuous loop.",
    )
    parser.add_argument(
        "--seed",
        help="YAML file used to seed cities when the table is empty.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    setup_logging(service_name="city-weather-worker")
    args = parse_args(argv)

    init_db(engine)
    directory = CityDirectory(engine)
    bootstrap_cities(directory, args.seed)

    with OpenWeatherClient() as client:
        scheduler = RefreshScheduler(
            directory=directory,
            source=client,
            store=ReadingStore(engine),
            interval_seconds=args.interval,
            max_workers=args.workers,
            run_on_start=True,
        )

        if args.oneshot:
            result = scheduler.run_refresh_pass()
            if isinstance(result, ConcurrentPassSkipped):
                return 1
            logger.info(
                "One-shot pass complete (stored=%s, failed=%s)", result.stored, result.failed
            )
            return 0

        if settings.metrics_enabled:
            start_http_server(settings.metrics_port, addr=settings.metrics_host)
            logger.info(
                "Prometheus metrics exporter listening on %s:%s",
                settings.metrics_host,
                settings.metrics_port,
            )
        scheduler.run_forever()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
