from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the weather sampler service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.request_timeout)

    def close(self) -> None:
        self._client.close()

    def fetch_weather(self) -> List[Dict[str, Any]]:
        """Return the raw /weather payload, letting httpx errors propagate."""
        response = self._client.get("/weather")
        response.raise_for_status()
        return response.json()

    def list_weather(self) -> List[Dict[str, Any]]:
        try:
            payload = self.fetch_weather()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        if not isinstance(payload, list):
            raise typer.BadParameter("Unexpected response payload when listing weather.")
        return payload

    def get_summary(self, city: str, day: Optional[str] = None) -> Dict[str, Any]:
        params = {"day": day} if day else None
        try:
            response = self._client.get(f"/summaries/{city}", params=params)
            if response.status_code == 404:
                raise typer.BadParameter(f"No daily summary found for {city}.")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
