"""Entity and daily summary stores backed by JSON tables."""

from __future__ import annotations

from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Optional

from datastore.json_table import JsonTable
from models.records import DailySummary, Observation, ensure_utc
from settings import get_settings


def summary_key(entity_id: str, day: datetime) -> str:
    return f"{entity_id}|{ensure_utc(day).date().isoformat()}"


class EntityStore:
    """Latest observation per entity, one live row per entity id."""

    def __init__(self, table: JsonTable[Observation]) -> None:
        self.table = table

    def get(self, entity_id: str) -> Optional[Observation]:
        """Return the stored observation, or ``None`` if the entity was never sampled."""
        return self.table.get_item(entity_id)

    def upsert(self, observation: Observation) -> None:
        self.table.put_item(observation)

    def list_all(self) -> list[Observation]:
        return self.table.scan()


class DailySummaryStore:
    """One aggregate per (entity, UTC day); writes fully replace the row."""

    def __init__(self, table: JsonTable[DailySummary]) -> None:
        self.table = table

    def upsert(self, summary: DailySummary) -> None:
        self.table.put_item(summary)

    def get(self, entity_id: str, day: datetime) -> Optional[DailySummary]:
        return self.table.get_item(summary_key(entity_id, day))

    def list_for_entity(self, entity_id: str) -> list[DailySummary]:
        return [item for item in self.table.scan() if item.entity_id == entity_id]


def _optional_path(value: Optional[str]) -> Optional[Path]:
    return Path(value) if value else None


@lru_cache
def build_default_entity_store(path: Optional[str] = None) -> EntityStore:
    settings = get_settings()
    store_path = settings.entity_store_path if path is None else path
    table = JsonTable(
        name="observations",
        model=Observation,
        key=lambda item: item.entity_id,
        persistence_path=_optional_path(store_path),
    )
    return EntityStore(table)


@lru_cache
def build_default_summary_store(path: Optional[str] = None) -> DailySummaryStore:
    settings = get_settings()
    store_path = settings.summary_store_path if path is None else path
    table = JsonTable(
        name="daily_summaries",
        model=DailySummary,
        key=lambda item: summary_key(item.entity_id, item.day),
        persistence_path=_optional_path(store_path),
    )
    return DailySummaryStore(table)
