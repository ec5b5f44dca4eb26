from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple


_CITIES_ENV = "WEATHER_CITIES"
_API_KEY_ENV = "OPENWEATHER_API_KEY"
_API_BASE_URL_ENV = "OPENWEATHER_BASE_URL"
_UNITS_ENV = "OPENWEATHER_UNITS"
_ENTITY_STORE_ENV = "ENTITY_STORE_PATH"
_SUMMARY_STORE_ENV = "SUMMARY_STORE_PATH"
_SAMPLE_LOG_ENV = "SAMPLE_LOG_ROOT"
_POLL_INTERVAL_ENV = "POLL_INTERVAL_SECONDS"
_FETCH_TIMEOUT_ENV = "FETCH_TIMEOUT_SECONDS"
_ALERT_THRESHOLD_ENV = "ALERT_THRESHOLD"
_WORKER_COUNT_ENV = "SAMPLER_WORKERS"
_SAMPLER_ENABLED_ENV = "SAMPLER_ENABLED"
_UI_POLL_ENV = "UI_POLL_SECONDS"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_CITIES = ("Mumbai", "Delhi", "Bangalore", "Hyderabad", "Chennai", "Kolkata")


@dataclass(frozen=True)
class Settings:
    entities: Tuple[str, ...]
    api_key: str
    api_base_url: str
    units: str
    entity_store_path: Optional[str]
    summary_store_path: Optional[str]
    sample_log_root: Optional[str]
    poll_interval_seconds: float
    fetch_timeout_seconds: float
    alert_threshold: float
    sampler_workers: int
    sampler_enabled: bool
    ui_poll_seconds: float
    log_level: str

    def __repr__(self) -> str:  # pragma: no cover
        return (
            "Settings("
            f"entities={self.entities!r}, "
            f"api_base_url={self.api_base_url!r}, "
            f"poll_interval_seconds={self.poll_interval_seconds!r}, "
            f"alert_threshold={self.alert_threshold!r}, "
            "api_key='***'"
            ")"
        )


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_entities(default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.getenv(_CITIES_ENV)
    if value is None:
        return default
    entities: list[str] = []
    for part in value.split(","):
        name = part.strip()
        if name and name not in entities:
            entities.append(name)
    return tuple(entities) or default


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value.strip())
    except ValueError:
        return default


def _read_worker_count(default: int) -> int:
    value = os.getenv(_WORKER_COUNT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in {"1", "true", "yes", "on"}:
        return True
    if candidate in {"0", "false", "no", "off"}:
        return False
    return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        entities=_read_entities(DEFAULT_CITIES),
        api_key=_read_str_env(_API_KEY_ENV, ""),
        api_base_url=_read_str_env(
            _API_BASE_URL_ENV, "https://api.openweathermap.org/data/2.5"
        ).rstrip("/"),
        units=_read_str_env(_UNITS_ENV, "metric"),
        entity_store_path=_read_optional_env(_ENTITY_STORE_ENV, "./tmp/observations.json"),
        summary_store_path=_read_optional_env(_SUMMARY_STORE_ENV, "./tmp/daily_summaries.json"),
        sample_log_root=_read_optional_env(_SAMPLE_LOG_ENV, "./tmp/samples"),
        poll_interval_seconds=_read_positive_float(_POLL_INTERVAL_ENV, 30.0),
        fetch_timeout_seconds=_read_positive_float(_FETCH_TIMEOUT_ENV, 10.0),
        alert_threshold=_read_float(_ALERT_THRESHOLD_ENV, 28.0),
        sampler_workers=_read_worker_count(1),
        sampler_enabled=_read_bool(_SAMPLER_ENABLED_ENV, True),
        ui_poll_seconds=_read_positive_float(_UI_POLL_ENV, 30.0),
        log_level=_read_log_level("INFO"),
    )
