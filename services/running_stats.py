"""Running lifetime statistics for the latest observation of an entity."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from models.records import SENTINEL_MAX, SENTINEL_MIN, Observation, Reading


@dataclass(frozen=True)
class RunningStats:
    min_value: float
    max_value: float
    avg_value: float


def prior_extrema(prior: Optional[Observation]) -> tuple[float, float]:
    """Stored extrema, or the +inf/-inf sentinels for a never-sampled entity."""
    if prior is None:
        return SENTINEL_MIN, SENTINEL_MAX
    return prior.min_value, prior.max_value


def update_running_stats(prior: Optional[Observation], value: float) -> RunningStats:
    prior_min, prior_max = prior_extrema(prior)
    new_min = min(prior_min, value)
    new_max = max(prior_max, value)
    # Midpoint of the extrema, kept as-is; the daily summary carries the true mean.
    return RunningStats(min_value=new_min, max_value=new_max, avg_value=(new_min + new_max) / 2)


def is_alert(value: float, threshold: float) -> bool:
    return value > threshold


def build_observation(
    entity_id: str,
    reading: Reading,
    prior: Optional[Observation],
    captured_at: datetime,
    last_updated: datetime,
    alert_threshold: float,
) -> Observation:
    stats = update_running_stats(prior, reading.value)
    return Observation(
        entity_id=entity_id,
        captured_at=captured_at,
        value=reading.value,
        category=reading.category,
        source_timestamp=reading.source_timestamp,
        last_updated=last_updated,
        min_value=stats.min_value,
        max_value=stats.max_value,
        avg_value=stats.avg_value,
        alert=is_alert(reading.value, alert_threshold),
    )
