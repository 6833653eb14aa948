"""OpenWeatherMap current-weather client."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Union

import httpx

from cityweather.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeatherObservation:
    """Normalized reading returned by the upstream API."""

    temperature_c: float
    description: str
    humidity_pct: int


@dataclass(frozen=True)
class FetchFailure:
    message: str
    status_code: int | None = None


@dataclass(frozen=True)
class NetworkFailure(FetchFailure):
    """Transport error or timeout."""


@dataclass(frozen=True)
class UpstreamError(FetchFailure):
    """Non-success status or malformed payload."""


@dataclass(frozen=True)
class RateLimited(FetchFailure):
    """Upstream reported quota exhaustion."""

    retry_after: float | None = None


@dataclass(frozen=True)
class InvalidCoordinates(FetchFailure):
    """Coordinates that cannot be sent upstream; no request was made."""


FetchResult = Union[WeatherObservation, FetchFailure]


class OpenWeatherClient:
    """Fetch current conditions for a coordinate pair.

    Failures are returned as ``FetchFailure`` values instead of being raised so
    callers can log and move on. The underlying ``httpx.Client`` is thread-safe,
    which lets one instance serve every worker of a refresh pass.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        units: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.api_key = settings.openweather_api_key if api_key is None else api_key
        self.base_url = base_url or settings.openweather_url
        self.units = (units or settings.openweather_units).lower()
        self._client = client or httpx.Client(timeout=timeout or settings.weather_api_timeout)
        if not self.api_key:
            logger.warning("OpenWeatherMap API key is not configured; requests will be rejected")

    def fetch(self, latitude: float, longitude: float) -> FetchResult:
        invalid = _check_coordinates(latitude, longitude)
        if invalid is not None:
            logger.warning("Refusing to fetch weather for %s, %s: %s", latitude, longitude, invalid.message)
            return invalid
        params = {
            "lat": latitude,
            "lon": longitude,
            "units": self.units,
            "appid": self.api_key,
        }
        try:
            response = self._client.get(self.base_url, params=params)
        except httpx.TimeoutException as exc:
            logger.warning("OpenWeatherMap request timed out (%s, %s): %s", latitude, longitude, exc)
            return NetworkFailure(f"timeout: {exc}")
        except httpx.TransportError as exc:
            logger.warning("OpenWeatherMap request failed (%s, %s): %s", latitude, longitude, exc)
            return NetworkFailure(f"transport error: {exc}")

        if response.status_code == 429:
            retry_after = _coerce_float(response.headers.get("Retry-After"))
            logger.warning("OpenWeatherMap rate limit hit (retry_after=%s)", retry_after)
            return RateLimited("rate limited", status_code=429, retry_after=retry_after)
        if response.status_code >= 400:
            logger.warning(
                "OpenWeatherMap returned %s: %s", response.status_code, response.text[:500]
            )
            return UpstreamError(f"HTTP {response.status_code}", status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError:
            logger.warning("OpenWeatherMap returned invalid JSON: %s", response.text[:500])
            return UpstreamError("invalid json", status_code=response.status_code)

        return self._parse_payload(payload, response.status_code)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "OpenWeatherClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _parse_payload(self, payload: Any, status_code: int) -> FetchResult:
        if not isinstance(payload, dict):
            return UpstreamError("unexpected payload type", status_code=status_code)

        # OpenWeatherMap echoes the logical status in "cod", sometimes as a string.
        cod = _coerce_float(payload.get("cod"))
        if cod == 429:
            return RateLimited(str(payload.get("message") or "rate limited"), status_code=429)
        if cod is not None and cod != 200:
            return UpstreamError(
                str(payload.get("message") or f"cod {payload.get('cod')}"), status_code=int(cod)
            )

        main = payload.get("main") or {}
        conditions = payload.get("weather") or []
        temperature = _coerce_float(main.get("temp"))
        humidity = _coerce_float(main.get("humidity"))
        description = None
        if isinstance(conditions, list) and conditions and isinstance(conditions[0], dict):
            description = conditions[0].get("description")

        if temperature is None or humidity is None or not description:
            return UpstreamError("missing fields in payload", status_code=status_code)
        if not 0 <= humidity <= 100:
            return UpstreamError(f"humidity out of range: {humidity}", status_code=status_code)

        return WeatherObservation(
            temperature_c=round(self._convert_temperature(temperature), 2),
            description=str(description),
            humidity_pct=int(round(humidity)),
        )

    def _convert_temperature(self, value: float) -> float:
        if self.units == "imperial":
            return (value - 32.0) * 5.0 / 9.0
        if self.units == "standard":
            return value - 273.15
        return value


def _check_coordinates(latitude: Any, longitude: Any) -> InvalidCoordinates | None:
    lat = _coerce_float(latitude)
    lon = _coerce_float(longitude)
    if lat is None or lon is None:
        return InvalidCoordinates(f"non-numeric coordinates: {latitude!r}, {longitude!r}")
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return InvalidCoordinates(f"non-finite coordinates: {latitude}, {longitude}")
    if not -90.0 <= lat <= 90.0 or not -180.0 <= lon <= 180.0:
        return InvalidCoordinates(f"coordinates out of range: {latitude}, {longitude}")
    return None


def _coerce_float(value: Any) -> float | None:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


__all__ = [
    "FetchFailure",
    "FetchResult",
    "InvalidCoordinates",
    "NetworkFailure",
    "OpenWeatherClient",
    "RateLimited",
    "UpstreamError",
    "WeatherObservation",
]
