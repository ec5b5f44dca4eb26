"""Fixed-interval sampling loop over the configured entities."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from functools import lru_cache
from threading import Event, Lock, Thread
from typing import Callable, Dict, Iterable, List, Optional

from datastore.json_table import StoreError
from datastore.stores import (
    EntityStore,
    build_default_entity_store,
    build_default_summary_store,
)
from models.records import RawSample, utc_now
from services.aggregator import Aggregator
from services.fetcher import Fetcher, FetchError, OpenWeatherFetcher
from services.rollup import RollupEngine
from services.running_stats import build_observation
from settings import get_settings
from storage.sample_log import SampleLog, build_default_sample_log

logger = logging.getLogger(__name__)


@dataclass
class EntityOutcome:
    entity_id: str
    sampled: bool = False
    rolled_up: bool = False
    errors: List[str] = field(default_factory=list)

    def fail(self, step: str, reason: str) -> None:
        self.errors.append(f"{step}: {reason}")


@dataclass
class CycleReport:
    """What happened to each entity during one sampling cycle."""

    started_at: datetime
    outcomes: List[EntityOutcome] = field(default_factory=list)

    @property
    def sampled(self) -> List[str]:
        return [outcome.entity_id for outcome in self.outcomes if outcome.sampled]

    @property
    def rolled_up(self) -> List[str]:
        return [outcome.entity_id for outcome in self.outcomes if outcome.rolled_up]

    @property
    def failures(self) -> Dict[str, str]:
        return {
            outcome.entity_id: "; ".join(outcome.errors)
            for outcome in self.outcomes
            if outcome.errors
        }


class SamplingScheduler:
    """Samples every entity once per cycle and rolls up its current day.

    A failure while handling one entity is logged and recorded in the cycle
    report; it never stops the other entities or the loop. With ``workers > 1``
    entities are sampled in parallel, each under its own lock so the
    read-modify-write of its running statistics stays serialized.
    """

    def __init__(
        self,
        entities: Iterable[str],
        fetcher: Fetcher,
        entity_store: EntityStore,
        sample_log: SampleLog,
        rollup_engine: RollupEngine,
        alert_threshold: float = 28.0,
        interval_seconds: float = 30.0,
        workers: int = 1,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.entities = tuple(entities)
        self.fetcher = fetcher
        self.entity_store = entity_store
        self.sample_log = sample_log
        self.rollup_engine = rollup_engine
        self.alert_threshold = alert_threshold
        self.interval_seconds = interval_seconds
        self.executor = ThreadPoolExecutor(max_workers=workers) if workers > 1 else None
        self.last_report: Optional[CycleReport] = None
        self._clock = clock
        self._entity_locks: Dict[str, Lock] = {entity: Lock() for entity in self.entities}
        self._stop_event = Event()
        self._thread: Optional[Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Run the loop in a background daemon thread."""
        if self.running:
            return
        self._stop_event.clear()
        self._thread = Thread(target=self.run_forever, name="sampling-scheduler", daemon=True)
        self._thread.start()
        logger.info(
            "Sampling scheduler started",
            extra={"entity_count": len(self.entities)},
        )

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def shutdown(self) -> None:
        """Stop the loop and release executor and fetcher resources."""
        self.stop(timeout=5.0)
        if self.executor is not None:
            self.executor.shutdown(wait=False, cancel_futures=True)
        close = getattr(self.fetcher, "close", None)
        if callable(close):
            close()

    def run_forever(self) -> None:
        while not self._stop_event.is_set():
            self.run_cycle()
            self._stop_event.wait(self.interval_seconds)

    def run_cycles(self, count: int) -> List[CycleReport]:
        reports: List[CycleReport] = []
        for index in range(count):
            if index:
                if self._stop_event.wait(self.interval_seconds):
                    break
            reports.append(self.run_cycle())
        return reports

    def run_cycle(self) -> CycleReport:
        start_time = time.perf_counter()
        report = CycleReport(started_at=self._clock())

        if self.executor is None:
            outcomes = [self._sample_guarded(entity) for entity in self.entities]
        else:
            outcomes = list(self.executor.map(self._sample_guarded, self.entities))
        report.outcomes.extend(outcomes)

        logger.info(
            "Sampling cycle finished",
            extra={
                "entity_count": len(self.entities),
                "failure_count": len(report.failures),
                "duration_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        self.last_report = report
        return report

    def _sample_guarded(self, entity_id: str) -> EntityOutcome:
        outcome = EntityOutcome(entity_id=entity_id)
        lock = self._entity_locks.setdefault(entity_id, Lock())
        with lock:
            try:
                self.sample_entity(entity_id, outcome)
            except Exception as exc:  # noqa: BLE001 - one entity must not end the loop
                logger.exception(
                    "Unexpected error while sampling",
                    extra={"entity_id": entity_id, "step": "cycle"},
                )
                outcome.fail("cycle", str(exc))
        return outcome

    def sample_entity(self, entity_id: str, outcome: Optional[EntityOutcome] = None) -> EntityOutcome:
        """Run one entity through fetch, store and rollup.

        Steps completed before an unexpected exception stay recorded on
        ``outcome``, so callers that pass one in keep the partial result.
        """
        if outcome is None:
            outcome = EntityOutcome(entity_id=entity_id)

        try:
            reading = self.fetcher.fetch(entity_id)
        except FetchError as exc:
            logger.warning(
                "Fetch failed; skipping entity this cycle",
                extra={"entity_id": entity_id, "step": "fetch", "reason": str(exc)},
            )
            outcome.fail("fetch", str(exc))
            return outcome
        logger.debug(
            "Fetched reading",
            extra={"entity_id": entity_id, "step": "fetch", "value": reading.value},
        )

        try:
            prior = self.entity_store.get(entity_id)
        except StoreError as exc:
            logger.error(
                "Reading stored observation failed",
                extra={"entity_id": entity_id, "step": "read", "reason": str(exc)},
            )
            outcome.fail("read", str(exc))
            return outcome

        now = self._clock()
        observation = build_observation(
            entity_id,
            reading,
            prior,
            captured_at=now,
            last_updated=now,
            alert_threshold=self.alert_threshold,
        )

        try:
            self.sample_log.record(
                RawSample(
                    entity_id=entity_id,
                    captured_at=now,
                    value=reading.value,
                    category=reading.category,
                )
            )
        except StoreError as exc:
            logger.error(
                "Recording raw sample failed",
                extra={"entity_id": entity_id, "step": "record", "reason": str(exc)},
            )
            outcome.fail("record", str(exc))

        try:
            self.entity_store.upsert(observation)
        except StoreError as exc:
            logger.error(
                "Storing observation failed",
                extra={"entity_id": entity_id, "step": "store", "reason": str(exc)},
            )
            outcome.fail("store", str(exc))
        else:
            outcome.sampled = True
            logger.info(
                "Stored observation",
                extra={
                    "entity_id": entity_id,
                    "step": "store",
                    "value": observation.value,
                    "alert": observation.alert,
                },
            )
            if observation.alert:
                logger.warning(
                    "Value above alert threshold",
                    extra={"entity_id": entity_id, "value": observation.value},
                )

        try:
            summary = self.rollup_engine.rollup(entity_id, now)
        except StoreError as exc:
            logger.error(
                "Daily rollup failed",
                extra={"entity_id": entity_id, "step": "rollup", "reason": str(exc)},
            )
            outcome.fail("rollup", str(exc))
        else:
            if summary is not None:
                outcome.rolled_up = True
                logger.info(
                    "Stored daily summary",
                    extra={
                        "entity_id": entity_id,
                        "step": "rollup",
                        "day": summary.day.date().isoformat(),
                        "sample_count": summary.sample_count,
                    },
                )

        return outcome


@lru_cache
def build_default_scheduler(workers: Optional[int] = None) -> SamplingScheduler:
    """Factory that wires the scheduler from settings."""
    settings = get_settings()
    fetcher = OpenWeatherFetcher(
        api_key=settings.api_key,
        base_url=settings.api_base_url,
        units=settings.units,
        timeout=settings.fetch_timeout_seconds,
    )
    sample_log = build_default_sample_log()
    rollup_engine = RollupEngine(
        sample_log=sample_log,
        summary_store=build_default_summary_store(),
        aggregator=Aggregator(),
    )
    return SamplingScheduler(
        entities=settings.entities,
        fetcher=fetcher,
        entity_store=build_default_entity_store(),
        sample_log=sample_log,
        rollup_engine=rollup_engine,
        alert_threshold=settings.alert_threshold,
        interval_seconds=settings.poll_interval_seconds,
        workers=workers or settings.sampler_workers,
    )
