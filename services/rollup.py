"""Daily rollup of raw samples into one summary per entity and UTC day."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from datastore.stores import DailySummaryStore
from models.records import DailySummary, day_bounds
from services.aggregator import Aggregator
from storage.sample_log import SampleLog

logger = logging.getLogger(__name__)


class RollupEngine:
    """Recomputes a day's summary from the full raw sample set on every call.

    Nothing is updated incrementally: a replay or a late sample is absorbed by
    the next call, which rereads the whole day and replaces the stored row.
    """

    def __init__(
        self,
        sample_log: SampleLog,
        summary_store: DailySummaryStore,
        aggregator: Aggregator,
    ) -> None:
        self.sample_log = sample_log
        self.summary_store = summary_store
        self.aggregator = aggregator

    def rollup(self, entity_id: str, reference: datetime) -> Optional[DailySummary]:
        day_start, day_end = day_bounds(reference)
        samples = self.sample_log.list_samples(entity_id, day_start, day_end)
        if not samples:
            logger.debug(
                "No samples yet for day",
                extra={"entity_id": entity_id, "day": day_start.date().isoformat()},
            )
            return None

        result = self.aggregator.aggregate(samples)
        summary = DailySummary(
            entity_id=entity_id,
            day=day_start,
            avg_value=result.mean_value,
            max_value=result.max_value,
            min_value=result.min_value,
            dominant_category=result.dominant_category,
            sample_count=result.sample_count,
        )
        self.summary_store.upsert(summary)
        return summary
