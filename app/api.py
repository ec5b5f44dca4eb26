"""HTTP route definitions for the service."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.schemas import DailySummaryReport, WeatherReport
from datastore.json_table import StoreError
from datastore.stores import (
    DailySummaryStore,
    EntityStore,
    build_default_entity_store,
    build_default_summary_store,
)
from models.records import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()


def get_entity_store() -> EntityStore:
    return build_default_entity_store()


def get_summary_store() -> DailySummaryStore:
    return build_default_summary_store()


def _unavailable(exc: StoreError) -> HTTPException:
    logger.error("Store read failed", extra={"reason": str(exc)})
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Weather data is temporarily unavailable.",
    )


@router.get(
    "/weather",
    response_model=list[WeatherReport],
    summary="Latest observation for every sampled city.",
)
async def list_weather(
    store: EntityStore = Depends(get_entity_store),
) -> list[WeatherReport]:
    try:
        observations = store.list_all()
    except StoreError as exc:
        raise _unavailable(exc) from exc
    return [WeatherReport.from_observation(item) for item in observations]


@router.get(
    "/weather/{city}",
    response_model=WeatherReport,
    summary="Latest observation for one city.",
)
async def get_weather(
    city: str,
    store: EntityStore = Depends(get_entity_store),
) -> WeatherReport:
    try:
        observation = store.get(city)
    except StoreError as exc:
        raise _unavailable(exc) from exc
    if observation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No observation recorded for {city!r}.",
        )
    return WeatherReport.from_observation(observation)


@router.get(
    "/summaries/{city}",
    response_model=DailySummaryReport,
    summary="Daily summary for a city (defaults to the current UTC day).",
)
async def get_daily_summary(
    city: str,
    day: Optional[date] = Query(None, description="UTC calendar day, YYYY-MM-DD."),
    store: DailySummaryStore = Depends(get_summary_store),
) -> DailySummaryReport:
    target = day or utc_now().date()
    reference = datetime(target.year, target.month, target.day, tzinfo=timezone.utc)
    try:
        summary = store.get(city, reference)
    except StoreError as exc:
        raise _unavailable(exc) from exc
    if summary is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No daily summary for {city!r} on {target.isoformat()}.",
        )
    return DailySummaryReport.from_summary(summary)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /weather for the latest observations."}
