from __future__ import annotations
import json
import os
from datetime import date, datetime, timedelta
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Iterator, Optional, Tuple

from pydantic import ValidationError

from datastore.json_table import StoreError
from models.records import RawSample, ensure_utc
from settings import get_settings


def object_key(entity_id: str, day: date) -> str:
    return f"{entity_id}/{day.isoformat()}.json"


class SampleLog:
    """Raw samples partitioned into one object per entity and UTC day.

    Samples are keyed by their full-precision capture instant inside their
    partition, so recording the same ``(entity_id, captured_at)`` twice keeps a
    single entry while distinct instants within one second are both kept.

    Only partitions of the newest UTC day seen are cached in memory; older days
    are reread from disk on demand. Without a root path, older days are dropped
    once a newer day is recorded.
    """

    def __init__(self, root_path: Optional[Path] = None) -> None:
        self.root_path = root_path
        self._partitions: Dict[Tuple[str, date], Dict[datetime, RawSample]] = {}
        self._current_day: Optional[date] = None
        self._lock = Lock()
        if root_path:
            try:
                root_path.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise StoreError(f"Cannot prepare sample log at {root_path}: {exc}") from exc

    def record(self, sample: RawSample) -> None:
        captured_at = ensure_utc(sample.captured_at)
        stored = sample.model_copy(update={"captured_at": captured_at})
        day = captured_at.date()
        with self._lock:
            self._advance(day)
            partition = dict(self._load_partition(sample.entity_id, day))
            partition[captured_at] = stored
            self._write_partition(sample.entity_id, day, partition)
            if self._cacheable(day):
                self._partitions[(sample.entity_id, day)] = partition

    def list_samples(self, entity_id: str, start: datetime, end: datetime) -> list[RawSample]:
        """Return samples with ``start <= captured_at < end`` in capture order."""
        start = ensure_utc(start)
        end = ensure_utc(end)
        if end <= start:
            return []

        matches: list[RawSample] = []
        with self._lock:
            for day in _days_between(start, end):
                partition = self._load_partition(entity_id, day)
                for sample in partition.values():
                    if start <= sample.captured_at < end:
                        matches.append(sample.model_copy())
        matches.sort(key=lambda sample: sample.captured_at)
        return matches

    @property
    def cached_partitions(self) -> int:
        with self._lock:
            return len(self._partitions)

    def _cacheable(self, day: date) -> bool:
        return self._current_day is None or day >= self._current_day

    def _advance(self, day: date) -> None:
        if self._current_day is not None and day <= self._current_day:
            return
        self._current_day = day
        for key in [key for key in self._partitions if key[1] < day]:
            del self._partitions[key]

    def _load_partition(self, entity_id: str, day: date) -> Dict[datetime, RawSample]:
        cached = self._partitions.get((entity_id, day))
        if cached is not None:
            return cached
        if not self.root_path:
            return {}

        key = object_key(entity_id, day)
        path = self.root_path / key
        if not path.exists():
            return {}
        try:
            raw = json.loads(path.read_text() or "[]")
            samples = [RawSample.model_validate(item) for item in raw]
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise StoreError(f"Cannot read sample partition {key!r}: {exc}") from exc

        partition = {ensure_utc(s.captured_at): s for s in samples}
        if self._cacheable(day):
            self._partitions[(entity_id, day)] = partition
        return partition

    def _write_partition(self, entity_id: str, day: date, partition: Dict[datetime, RawSample]) -> None:
        if not self.root_path:
            return
        key = object_key(entity_id, day)
        path = self.root_path / key
        ordered = [partition[moment].model_dump(mode="json") for moment in sorted(partition)]
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            scratch = path.with_name(path.name + ".tmp")
            scratch.write_text(json.dumps(ordered, indent=2))
            os.replace(scratch, path)
        except OSError as exc:
            raise StoreError(f"Cannot write sample partition {key!r}: {exc}") from exc


def _days_between(start: datetime, end: datetime) -> Iterator[date]:
    day = start.date()
    last = (end - timedelta(microseconds=1)).date()
    while day <= last:
        yield day
        day += timedelta(days=1)


@lru_cache
def build_default_sample_log(root_path: Optional[str] = None) -> SampleLog:
    settings = get_settings()
    log_root = settings.sample_log_root if root_path is None else root_path
    path = Path(log_root) if log_root else None
    return SampleLog(root_path=path)
