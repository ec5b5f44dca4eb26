"""Connection and polling settings for the operator CLI.

The CLI talks to a running sampler over HTTP. ``watch`` re-polls ``/weather``
every ``watch_interval`` seconds, the same cadence the ``/ui`` page uses, so
when neither ``--interval`` nor ``CLI_WATCH_INTERVAL`` is set the server's
``UI_POLL_SECONDS`` is honoured before the built-in default. ``request_timeout``
bounds each individual HTTP request, never the whole watch loop.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_WATCH_INTERVAL = 30.0
DEFAULT_REQUEST_TIMEOUT = 10.0

_BASE_URL_ENV = "API_BASE_URL"
_WATCH_INTERVAL_ENVS = ("CLI_WATCH_INTERVAL", "UI_POLL_SECONDS")
_REQUEST_TIMEOUT_ENV = "CLI_REQUEST_TIMEOUT"


@dataclass(frozen=True)
class CLIConfig:
    """Resolved CLI settings.

    ``base_url`` has no trailing slash. ``watch_interval`` is the pause between
    two ``watch`` polls; a failed poll waits the same interval before retrying.
    ``request_timeout`` is handed to httpx for every request.
    """

    base_url: str = DEFAULT_BASE_URL
    watch_interval: float = DEFAULT_WATCH_INTERVAL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT


def _positive_seconds(raw: Optional[str]) -> Optional[float]:
    if raw is None or not raw.strip():
        return None
    try:
        seconds = float(raw)
    except ValueError:
        return None
    if not math.isfinite(seconds) or seconds <= 0:
        return None
    return seconds


def _normalize_base_url(raw: str) -> str:
    url = raw.strip().rstrip("/")
    if "://" not in url:
        url = f"http://{url}"
    return url


def _watch_interval_from_env() -> float:
    for name in _WATCH_INTERVAL_ENVS:
        seconds = _positive_seconds(os.getenv(name))
        if seconds is not None:
            return seconds
    return DEFAULT_WATCH_INTERVAL


def load_config(
    base_url: Optional[str] = None,
    watch_interval: Optional[float] = None,
    request_timeout: Optional[float] = None,
) -> CLIConfig:
    """Merge explicit options over the environment over the defaults.

    Environment values that are empty, non-numeric, non-positive or infinite
    are ignored.
    """
    url = _normalize_base_url(base_url or os.getenv(_BASE_URL_ENV) or DEFAULT_BASE_URL)
    if watch_interval is None:
        watch_interval = _watch_interval_from_env()
    if request_timeout is None:
        request_timeout = _positive_seconds(os.getenv(_REQUEST_TIMEOUT_ENV)) or DEFAULT_REQUEST_TIMEOUT
    return CLIConfig(
        base_url=url,
        watch_interval=watch_interval,
        request_timeout=request_timeout,
    )
