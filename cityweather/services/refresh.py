"""Periodic refresh of every city's weather reading."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Protocol

from prometheus_client import Counter, Histogram

from cityweather.core.config import settings
from cityweather.db.types import utcnow
from cityweather.models import City
from cityweather.services.directory import EntityDirectory
from cityweather.services.reading_store import ReadingStore
from cityweather.services.weather_client import FetchFailure, FetchResult, RateLimited

logger = logging.getLogger(__name__)

PASS_SECONDS = Histogram(
    "cityweather_refresh_pass_seconds",
    "End-to-end runtime for each refresh pass.",
)
PASSES_COMPLETED = Counter(
    "cityweather_refresh_passes_completed_total",
    "Refresh passes that ran to completion.",
)
PASSES_SKIPPED = Counter(
    "cityweather_refresh_passes_skipped_total",
    "Refresh triggers dropped because a pass was already running.",
)
PASSES_FAILED = Counter(
    "cityweather_refresh_passes_failed_total",
    "Refresh passes aborted by an unexpected error.",
)
READINGS_STORED = Counter(
    "cityweather_readings_stored_total",
    "Weather readings written to the store.",
)
FETCH_FAILURES = Counter(
    "cityweather_fetch_failures_total",
    "Per-city fetches that did not produce a reading.",
)
RATE_LIMIT_HITS = Counter(
    "cityweather_rate_limit_hits_total",
    "Rate limit responses returned by the weather API.",
)

_STORED = "stored"
_FAILED = "failed"
_RATE_LIMITED = "rate_limited"
_DEFERRED = "deferred"


class WeatherSource(Protocol):
    def fetch(self, latitude: float, longitude: float) -> FetchResult:
        ...


class RefreshState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class RefreshPassStats:
    started_at: datetime
    finished_at: datetime | None = None
    total: int = 0
    skipped_missing_coordinates: int = 0
    stored: int = 0
    failed: int = 0
    rate_limited: int = 0
    deferred: int = 0
    status: str = "completed"


@dataclass(frozen=True)
class ConcurrentPassSkipped:
    """Returned when a trigger arrives while a pass is already running."""

    requested_at: datetime
    running_since: datetime | None = None
    status: str = field(default="skipped")


class RefreshScheduler:
    """Drive refresh passes from a timer thread and from manual triggers.

    ``run_refresh_pass`` is the only entry point. At most one pass runs at a
    time; a trigger that arrives while a pass is running is dropped and gets a
    ``ConcurrentPassSkipped`` back instead of being queued.
    """

    def __init__(
        self,
        directory: EntityDirectory,
        source: WeatherSource,
        store: ReadingStore,
        interval_seconds: int | None = None,
        max_workers: int | None = None,
        run_on_start: bool | None = None,
        rate_limit_pause_seconds: float | None = None,
    ) -> None:
        self.directory = directory
        self.source = source
        self.store = store
        self.interval_seconds = interval_seconds or settings.refresh_interval_seconds
        self.max_workers = max(1, max_workers or settings.refresh_max_workers)
        self.run_on_start = settings.refresh_on_startup if run_on_start is None else run_on_start
        self.rate_limit_pause_seconds = (
            settings.rate_limit_pause_seconds
            if rate_limit_pause_seconds is None
            else rate_limit_pause_seconds
        )
        self._pass_lock = threading.Lock()
        self._state = RefreshState.IDLE
        self._running_since: datetime | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.last_pass: RefreshPassStats | None = None

    @property
    def state(self) -> RefreshState:
        return self._state

    def run_refresh_pass(self) -> RefreshPassStats | ConcurrentPassSkipped:
        """Refresh every city with coordinates, or skip if a pass is running."""

        if not self._pass_lock.acquire(blocking=False):
            logger.info("Refresh pass already running since %s; trigger dropped", self._running_since)
            PASSES_SKIPPED.inc()
            return ConcurrentPassSkipped(
                requested_at=utcnow(), running_since=self._running_since
            )

        wall_start = time.perf_counter()
        stats = RefreshPassStats(started_at=utcnow())
        self._state = RefreshState.RUNNING
        self._running_since = stats.started_at
        try:
            self._run_pass(stats)
        except Exception:
            PASSES_FAILED.inc()
            raise
        finally:
            stats.finished_at = utcnow()
            self._running_since = None
            self._state = RefreshState.IDLE
            self._pass_lock.release()

        PASS_SECONDS.observe(time.perf_counter() - wall_start)
        PASSES_COMPLETED.inc()
        self.last_pass = stats
        logger.info(
            "Refresh pass completed (cities=%s, stored=%s, failed=%s, rate_limited=%s, "
            "deferred=%s, skipped_missing_coordinates=%s)",
            stats.total,
            stats.stored,
            stats.failed,
            stats.rate_limited,
            stats.deferred,
            stats.skipped_missing_coordinates,
        )
        return stats

    def start(self) -> None:
        """Start the background timer thread."""

        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="weather-refresh-timer", daemon=True)
        self._thread.start()
        logger.info("Started refresh timer (interval=%ss, workers=%s)", self.interval_seconds, self.max_workers)

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop the timer; cities not yet fetched in a running pass are dropped."""

        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            self._thread = None

    def run_forever(self) -> None:
        logger.info("Starting refresh worker (interval=%ss)", self.interval_seconds)
        try:
            self._loop()
        except KeyboardInterrupt:
            logger.info("Shutting down refresh worker")
            self._stop_event.set()

    def _loop(self) -> None:
        if self.run_on_start:
            self._trigger()
        while not self._stop_event.wait(self.interval_seconds):
            self._trigger()

    def _trigger(self) -> None:
        try:
            self.run_refresh_pass()
        except Exception:  # pragma: no cover - defensive logging
            logger.exception("Refresh pass failed")

    def _run_pass(self, stats: RefreshPassStats) -> None:
        cities = list(self.directory.list_entities())
        stats.total = len(cities)
        eligible: list[City] = []
        for city in cities:
            if city.id is None or not city.has_coordinates:
                stats.skipped_missing_coordinates += 1
                logger.debug("Skipping city %s without coordinates", city.name)
                continue
            eligible.append(city)
        if not eligible:
            return

        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="weather-refresh"
        ) as pool:
            futures = [pool.submit(self._refresh_city, city) for city in eligible]
            for future in as_completed(futures):
                outcome = future.result()
                if outcome == _STORED:
                    stats.stored += 1
                elif outcome == _RATE_LIMITED:
                    stats.rate_limited += 1
                elif outcome == _DEFERRED:
                    stats.deferred += 1
                else:
                    stats.failed += 1

    def _refresh_city(self, city: City) -> str:
        if self._stop_event.is_set():
            return _DEFERRED
        try:
            result = self.source.fetch(city.latitude, city.longitude)
            if isinstance(result, RateLimited):
                RATE_LIMIT_HITS.inc()
                logger.warning(
                    "Rate limited while refreshing %s (retry_after=%s)", city.name, result.retry_after
                )
                self._back_off(result)
                return _RATE_LIMITED
            if isinstance(result, FetchFailure):
                FETCH_FAILURES.inc()
                logger.warning(
                    "Failed to fetch weather for %s (%s): %s",
                    city.name,
                    type(result).__name__,
                    result.message,
                )
                return _FAILED
            self.store.upsert(city.id, result)
        except Exception:
            FETCH_FAILURES.inc()
            logger.exception("Unexpected error refreshing weather for %s", city.name)
            return _FAILED
        READINGS_STORED.inc()
        return _STORED

    def _back_off(self, result: RateLimited) -> None:
        # Pauses the calling worker only; other cities keep being fetched.
        pause = self.rate_limit_pause_seconds
        if pause <= 0:
            return
        if result.retry_after is not None:
            pause = min(float(result.retry_after), pause)
        self._stop_event.wait(pause)


__all__ = [
    "ConcurrentPassSkipped",
    "RefreshPassStats",
    "RefreshScheduler",
    "RefreshState",
    "WeatherSource",
]
