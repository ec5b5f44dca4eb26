"""Aggregation logic for a day's raw samples."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable

from models.records import RawSample


@dataclass
class AggregationSummary:
    """Computed statistics for a batch of raw samples."""

    sample_count: int = 0
    min_value: float | None = None
    max_value: float | None = None
    mean_value: float | None = None
    category_counts: Dict[str, int] = field(default_factory=dict)
    dominant_category: str | None = None


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def aggregate(self, samples: Iterable[RawSample]) -> AggregationSummary:
        summary = AggregationSummary()
        total = 0.0

        for sample in samples:
            summary.sample_count += 1
            value = sample.value
            total += value

            if summary.min_value is None or value < summary.min_value:
                summary.min_value = value
            if summary.max_value is None or value > summary.max_value:
                summary.max_value = value

            summary.category_counts[sample.category] = (
                summary.category_counts.get(sample.category, 0) + 1
            )

        if summary.sample_count:
            summary.mean_value = total / summary.sample_count
            summary.dominant_category = self.dominant(summary.category_counts)

        return summary

    @staticmethod
    def dominant(counts: Dict[str, int]) -> str | None:
        """Highest count wins; ties go to the label seen first."""
        best: str | None = None
        best_count = 0
        for label, count in counts.items():
            if count > best_count:
                best, best_count = label, count
        return best
