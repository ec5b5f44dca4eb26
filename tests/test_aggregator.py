"""Unit tests for the aggregation logic."""

from __future__ import annotations

from datetime import datetime, timezone

from models.records import RawSample
from services.aggregator import Aggregator


def _sample(value: float, category: str, hour: int = 0) -> RawSample:
    """Helper to build deterministic raw samples."""

    return RawSample(
        entity_id="Delhi",
        captured_at=datetime(2024, 1, 1, hour, tzinfo=timezone.utc),
        value=value,
        category=category,
    )


def test_aggregate_empty_iterable_returns_default_summary() -> None:
    aggregator = Aggregator()

    summary = aggregator.aggregate([])

    assert summary.sample_count == 0
    assert summary.min_value is None
    assert summary.max_value is None
    assert summary.mean_value is None
    assert summary.category_counts == {}
    assert summary.dominant_category is None


def test_aggregate_computes_statistics() -> None:
    aggregator = Aggregator()
    samples = [
        _sample(10.0, "Clear", 1),
        _sample(30.0, "Rain", 2),
        _sample(20.0, "Rain", 3),
    ]

    summary = aggregator.aggregate(samples)

    assert summary.sample_count == 3
    assert summary.min_value == 10.0
    assert summary.max_value == 30.0
    assert summary.mean_value == 20.0
    assert summary.category_counts == {"Clear": 1, "Rain": 2}
    assert summary.dominant_category == "Rain"


def test_extrema_are_seeded_from_first_sample() -> None:
    summary = Aggregator().aggregate([_sample(-5.0, "Snow"), _sample(-7.5, "Snow")])

    assert summary.max_value == -5.0
    assert summary.min_value == -7.5


def test_dominant_tie_goes_to_first_encountered_label() -> None:
    samples = [
        _sample(20.0, "Haze", 1),
        _sample(21.0, "Clear", 2),
        _sample(22.0, "Clear", 3),
        _sample(23.0, "Haze", 4),
    ]

    summary = Aggregator().aggregate(samples)

    assert summary.category_counts == {"Haze": 2, "Clear": 2}
    assert summary.dominant_category == "Haze"
