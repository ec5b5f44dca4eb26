"""Client for the external current-weather source."""

from __future__ import annotations

import math
from typing import Any, Dict, Optional, Protocol

import httpx

from models.records import Reading


class FetchError(RuntimeError):
    """A reading could not be obtained for an entity."""


class Fetcher(Protocol):
    def fetch(self, entity_id: str) -> Reading: ...


class OpenWeatherFetcher:
    """Fetch one current reading per city from the OpenWeatherMap API.

    Every failure (transport, timeout, HTTP status, payload shape) is raised as
    :class:`FetchError` so the sampler can skip the city for this cycle.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openweathermap.org/data/2.5",
        units: str = "metric",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._units = units
        self._client = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def fetch(self, entity_id: str) -> Reading:
        try:
            response = self._client.get(
                "/weather",
                params={"q": entity_id, "APPID": self._api_key, "units": self._units},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as exc:
            raise FetchError(f"Timed out fetching weather for {entity_id!r}.") from exc
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                f"Weather source returned {exc.response.status_code} for {entity_id!r}."
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"Transport error fetching {entity_id!r}: {exc}") from exc
        except ValueError as exc:
            raise FetchError(f"Weather payload for {entity_id!r} is not JSON.") from exc

        return parse_reading(entity_id, payload)


def parse_reading(entity_id: str, payload: Dict[str, Any]) -> Reading:
    try:
        temperature = float(payload["main"]["temp"])
        category = str(payload["weather"][0]["main"])
        source_timestamp = int(payload["dt"])
    except (KeyError, IndexError, TypeError, ValueError, OverflowError) as exc:
        raise FetchError(f"Unexpected weather payload for {entity_id!r}.") from exc
    # json.loads accepts NaN and Infinity literals.
    if not math.isfinite(temperature):
        raise FetchError(f"Non-finite temperature for {entity_id!r}: {temperature!r}.")
    return Reading(value=temperature, category=category, source_timestamp=source_timestamp)
