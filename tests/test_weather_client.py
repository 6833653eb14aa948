"""Tests for the OpenWeatherMap client: payload parsing and failure mapping."""

import httpx
import pytest

from cityweather.services.weather_client import (
    InvalidCoordinates,
    NetworkFailure,
    OpenWeatherClient,
    RateLimited,
    UpstreamError,
    WeatherObservation,
)

BASE_URL = "https://weather.test/data/2.5/weather"

LONDON_PAYLOAD = {
    "cod": 200,
    "name": "London",
    "main": {"temp": 15.2, "humidity": 70},
    "weather": [{"main": "Clouds", "description": "broken clouds"}],
}


def _client(handler, units: str = "metric") -> OpenWeatherClient:
    transport = httpx.MockTransport(handler)
    return OpenWeatherClient(
        api_key="test-key",
        base_url=BASE_URL,
        units=units,
        client=httpx.Client(transport=transport),
    )


class TestSuccessfulFetch:
    def test_parses_current_conditions(self):
        client = _client(lambda request: httpx.Response(200, json=LONDON_PAYLOAD))

        result = client.fetch(51.5, -0.1)

        assert result == WeatherObservation(
            temperature_c=15.2, description="broken clouds", humidity_pct=70
        )

    def test_sends_coordinates_units_and_key(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(dict(request.url.params))
            return httpx.Response(200, json=LONDON_PAYLOAD)

        _client(handler).fetch(51.5, -0.1)

        assert seen == {"lat": "51.5", "lon": "-0.1", "units": "metric", "appid": "test-key"}

    def test_string_cod_is_accepted(self):
        payload = dict(LONDON_PAYLOAD, cod="200")
        client = _client(lambda request: httpx.Response(200, json=payload))

        assert isinstance(client.fetch(51.5, -0.1), WeatherObservation)

    def test_imperial_units_are_normalized_to_celsius(self):
        payload = dict(LONDON_PAYLOAD, main={"temp": 212.0, "humidity": 50})
        client = _client(lambda request: httpx.Response(200, json=payload), units="imperial")

        assert client.fetch(0.0, 0.0).temperature_c == pytest.approx(100.0)

    def test_standard_units_are_normalized_to_celsius(self):
        payload = dict(LONDON_PAYLOAD, main={"temp": 273.15, "humidity": 50})
        client = _client(lambda request: httpx.Response(200, json=payload), units="standard")

        assert client.fetch(0.0, 0.0).temperature_c == pytest.approx(0.0)


class TestFailures:
    def test_timeout_is_network_failure(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        assert isinstance(_client(handler).fetch(51.5, -0.1), NetworkFailure)

    def test_connection_error_is_network_failure(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        assert isinstance(_client(handler).fetch(51.5, -0.1), NetworkFailure)

    def test_http_429_is_rate_limited(self):
        client = _client(
            lambda request: httpx.Response(429, headers={"Retry-After": "30"}, json={"cod": 429})
        )

        result = client.fetch(51.5, -0.1)

        assert isinstance(result, RateLimited)
        assert result.retry_after == 30.0
        assert result.status_code == 429

    def test_payload_cod_429_is_rate_limited(self):
        client = _client(lambda request: httpx.Response(200, json={"cod": "429", "message": "quota"}))

        assert isinstance(client.fetch(51.5, -0.1), RateLimited)

    def test_server_error_is_upstream_error(self):
        client = _client(lambda request: httpx.Response(503, text="unavailable"))

        result = client.fetch(51.5, -0.1)

        assert isinstance(result, UpstreamError)
        assert result.status_code == 503

    def test_unauthorized_is_upstream_error(self):
        client = _client(lambda request: httpx.Response(401, json={"cod": 401}))

        assert isinstance(client.fetch(51.5, -0.1), UpstreamError)

    def test_invalid_json_is_upstream_error(self):
        client = _client(lambda request: httpx.Response(200, text="<html>oops</html>"))

        assert isinstance(client.fetch(51.5, -0.1), UpstreamError)

    def test_missing_fields_is_upstream_error(self):
        client = _client(lambda request: httpx.Response(200, json={"cod": 200, "main": {}}))

        assert isinstance(client.fetch(51.5, -0.1), UpstreamError)

    def test_non_success_cod_is_upstream_error(self):
        client = _client(
            lambda request: httpx.Response(200, json={"cod": "404", "message": "city not found"})
        )

        result = client.fetch(51.5, -0.1)

        assert isinstance(result, UpstreamError)
        assert result.message == "city not found"

    def test_humidity_out_of_range_is_upstream_error(self):
        payload = dict(LONDON_PAYLOAD, main={"temp": 10.0, "humidity": 140})
        client = _client(lambda request: httpx.Response(200, json=payload))

        assert isinstance(client.fetch(51.5, -0.1), UpstreamError)


class TestCoordinateSanity:
    @pytest.mark.parametrize(
        "lat, lon",
        [(91.0, 0.0), (0.0, -181.0), (float("nan"), 0.0), (0.0, float("inf")), (None, 0.0), ("north", 0.0)],
    )
    def test_invalid_coordinates_are_returned_as_failure(self, lat, lon):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=LONDON_PAYLOAD)

        result = _client(handler).fetch(lat, lon)

        assert isinstance(result, InvalidCoordinates)
        assert result.status_code is None
        assert requests == []

    def test_boundary_coordinates_are_accepted(self):
        client = _client(lambda request: httpx.Response(200, json=LONDON_PAYLOAD))

        assert isinstance(client.fetch(-90.0, 180.0), WeatherObservation)
