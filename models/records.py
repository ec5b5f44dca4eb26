"""Domain models shared across services."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Tuple

from pydantic import BaseModel, Field

SENTINEL_MIN = math.inf
SENTINEL_MAX = -math.inf

DAY = timedelta(hours=24)


@dataclass(slots=True)
class Reading:
    """A single instantaneous reading returned by a fetcher."""

    value: float
    category: str
    source_timestamp: int


class Observation(BaseModel):
    """Latest sample for an entity plus its running lifetime statistics.

    ``avg_value`` is the midpoint of the running minimum and maximum, not an
    arithmetic mean of the samples seen so far. ``DailySummary.avg_value`` is a
    true mean; the two are intentionally kept apart.
    """

    entity_id: str
    captured_at: datetime
    value: float
    category: str
    source_timestamp: int | None = None
    last_updated: datetime
    min_value: float
    max_value: float
    avg_value: float
    alert: bool = False


class RawSample(BaseModel):
    """One entry of the append-only raw sample log."""

    entity_id: str
    captured_at: datetime
    value: float
    category: str


class DailySummary(BaseModel):
    """Aggregate of every raw sample captured for an entity on one UTC day."""

    entity_id: str
    day: datetime = Field(..., description="UTC midnight opening the [day, day + 24h) window.")
    avg_value: float
    max_value: float
    min_value: float
    dominant_category: str
    sample_count: int = Field(..., ge=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def day_bounds(reference: datetime) -> Tuple[datetime, datetime]:
    """Return the half-open UTC calendar day ``[start, end)`` containing ``reference``."""
    moment = ensure_utc(reference)
    start = datetime(moment.year, moment.month, moment.day, tzinfo=timezone.utc)
    return start, start + DAY
