"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

from models.records import DailySummary, Observation


class WeatherReport(BaseModel):
    """Latest observation of a city as served to the dashboard."""

    city: str
    dominant_condition: str = Field(..., description="Condition label at capture time.")
    temperature: float
    avg_temperature: float = Field(
        ..., description="Midpoint of the running minimum and maximum, not a mean."
    )
    min_temperature: float
    max_temperature: float
    alert: bool
    last_updated: datetime

    @classmethod
    def from_observation(cls, observation: Observation) -> "WeatherReport":
        return cls(
            city=observation.entity_id,
            dominant_condition=observation.category,
            temperature=observation.value,
            avg_temperature=observation.avg_value,
            min_temperature=observation.min_value,
            max_temperature=observation.max_value,
            alert=observation.alert,
            last_updated=observation.last_updated,
        )


class DailySummaryReport(BaseModel):
    """Aggregate of one city's samples for one UTC day."""

    city: str
    day: date
    avg_temperature: float = Field(..., description="Arithmetic mean of the day's samples.")
    max_temperature: float
    min_temperature: float
    dominant_condition: str
    sample_count: int

    @classmethod
    def from_summary(cls, summary: DailySummary) -> "DailySummaryReport":
        return cls(
            city=summary.entity_id,
            day=summary.day.date(),
            avg_temperature=summary.avg_value,
            max_temperature=summary.max_value,
            min_temperature=summary.min_value,
            dominant_condition=summary.dominant_category,
            sample_count=summary.sample_count,
        )
