from __future__ import annotations

import httpx
import pytest

from services.fetcher import FetchError, OpenWeatherFetcher, parse_reading

PAYLOAD = {
    "weather": [{"main": "Clouds", "description": "broken clouds"}],
    "main": {"temp": 29.4, "feels_like": 33.1},
    "dt": 1717243200,
}


def _fetcher(handler) -> OpenWeatherFetcher:
    return OpenWeatherFetcher(
        api_key="secret",
        base_url="https://weather.test/data/2.5",
        timeout=1.0,
        transport=httpx.MockTransport(handler),
    )


def test_fetch_parses_current_weather() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=PAYLOAD)

    fetcher = _fetcher(handler)
    reading = fetcher.fetch("Hyderabad")
    fetcher.close()

    assert reading.value == 29.4
    assert reading.category == "Clouds"
    assert reading.source_timestamp == 1717243200
    assert seen[0].url.path == "/data/2.5/weather"
    assert seen[0].url.params["q"] == "Hyderabad"
    assert seen[0].url.params["APPID"] == "secret"
    assert seen[0].url.params["units"] == "metric"


def test_http_error_status_raises_fetch_error() -> None:
    fetcher = _fetcher(lambda request: httpx.Response(404, json={"message": "city not found"}))

    with pytest.raises(FetchError, match="404"):
        fetcher.fetch("Atlantis")


def test_timeout_raises_fetch_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(FetchError, match="Timed out"):
        _fetcher(handler).fetch("Delhi")


def test_transport_error_raises_fetch_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FetchError, match="Transport error"):
        _fetcher(handler).fetch("Delhi")


def test_non_json_body_raises_fetch_error() -> None:
    fetcher = _fetcher(lambda request: httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(FetchError, match="not JSON"):
        fetcher.fetch("Delhi")


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"main": {"temp": 20.0}, "weather": [], "dt": 1},
        {"main": {"temp": "warm"}, "weather": [{"main": "Clear"}], "dt": 1},
        {"main": {"temp": 20.0}, "weather": [{"main": "Clear"}]},
        [],
    ],
)
def test_malformed_payload_raises_fetch_error(payload) -> None:
    with pytest.raises(FetchError, match="Unexpected weather payload"):
        parse_reading("Delhi", payload)


@pytest.mark.parametrize("temperature", [float("nan"), float("inf"), float("-inf"), "NaN"])
def test_non_finite_temperature_raises_fetch_error(temperature) -> None:
    payload = {"main": {"temp": temperature}, "weather": [{"main": "Clear"}], "dt": 1}

    with pytest.raises(FetchError, match="Non-finite temperature"):
        parse_reading("Delhi", payload)


def test_nan_literal_in_response_body_raises_fetch_error() -> None:
    body = '{"main": {"temp": NaN}, "weather": [{"main": "Clear"}], "dt": 1717243200}'
    fetcher = _fetcher(lambda request: httpx.Response(200, text=body))

    with pytest.raises(FetchError, match="Non-finite temperature"):
        fetcher.fetch("Delhi")


def test_infinite_source_timestamp_raises_fetch_error() -> None:
    body = '{"main": {"temp": 21.0}, "weather": [{"main": "Clear"}], "dt": Infinity}'
    fetcher = _fetcher(lambda request: httpx.Response(200, text=body))

    with pytest.raises(FetchError, match="Unexpected weather payload"):
        fetcher.fetch("Delhi")
