from datetime import datetime, timezone
from typing import Iterator, List

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from datastore.json_table import JsonTable, StoreError
from datastore.stores import DailySummaryStore, EntityStore, summary_key
from models.records import DailySummary, Observation
from settings import get_settings

UPDATED = datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc)


class StubScheduler:
    instances: List["StubScheduler"] = []

    def __init__(self) -> None:
        self.started = False
        self.shut_down = False
        StubScheduler.instances.append(self)

    def start(self) -> None:
        self.started = True

    def shutdown(self) -> None:
        self.shut_down = True


def _build_stub_scheduler(workers=None) -> StubScheduler:
    return StubScheduler()


_build_stub_scheduler.cache_clear = lambda: None  # type: ignore[attr-defined]


def _observation(city: str, value: float, alert: bool = False) -> Observation:
    return Observation(
        entity_id=city,
        captured_at=UPDATED,
        value=value,
        category="Clear",
        source_timestamp=1717234200,
        last_updated=UPDATED,
        min_value=value - 4.0,
        max_value=value + 2.0,
        avg_value=value - 1.0,
        alert=alert,
    )


@pytest.fixture
def stores(tmp_path):
    entity_store = EntityStore(
        JsonTable(
            name="observations",
            model=Observation,
            key=lambda item: item.entity_id,
            persistence_path=tmp_path / "observations.json",
        )
    )
    summary_store = DailySummaryStore(
        JsonTable(
            name="daily_summaries",
            model=DailySummary,
            key=lambda item: summary_key(item.entity_id, item.day),
            persistence_path=tmp_path / "summaries.json",
        )
    )
    return entity_store, summary_store


@pytest.fixture
def api_client(stores, monkeypatch) -> Iterator[TestClient]:
    entity_store, summary_store = stores
    monkeypatch.setenv("WEATHER_CITIES", "Delhi,Mumbai")
    get_settings.cache_clear()
    StubScheduler.instances.clear()

    for target in ("app.main", "app.api", "app.web"):
        monkeypatch.setattr(f"{target}.build_default_entity_store", lambda: entity_store)
    for target in ("app.main", "app.api"):
        monkeypatch.setattr(f"{target}.build_default_summary_store", lambda: summary_store)
    monkeypatch.setattr("app.main.build_default_scheduler", _build_stub_scheduler)

    app = create_app()
    with TestClient(app) as client:
        yield client

    get_settings.cache_clear()


def test_lifespan_starts_and_shuts_down_scheduler(api_client: TestClient) -> None:
    assert len(StubScheduler.instances) == 1
    scheduler = StubScheduler.instances[0]
    assert scheduler.started is True
    assert scheduler.shut_down is False


def test_sampler_can_be_disabled(stores, monkeypatch) -> None:
    entity_store, summary_store = stores
    monkeypatch.setenv("SAMPLER_ENABLED", "false")
    get_settings.cache_clear()
    StubScheduler.instances.clear()
    monkeypatch.setattr("app.main.build_default_entity_store", lambda: entity_store)
    monkeypatch.setattr("app.main.build_default_summary_store", lambda: summary_store)
    monkeypatch.setattr("app.main.build_default_scheduler", _build_stub_scheduler)

    try:
        with TestClient(create_app()):
            assert StubScheduler.instances[0].started is False
        assert StubScheduler.instances[0].shut_down is True
    finally:
        get_settings.cache_clear()


def test_unreadable_store_fails_startup(monkeypatch) -> None:
    def broken_store():
        raise StoreError("Cannot load table 'observations'")

    monkeypatch.setattr("app.main.build_default_entity_store", broken_store)
    monkeypatch.setattr("app.main.build_default_scheduler", _build_stub_scheduler)

    with pytest.raises(StoreError):
        with TestClient(create_app()):
            pass


def test_list_weather_serializes_observations(api_client: TestClient, stores) -> None:
    entity_store, _ = stores
    entity_store.upsert(_observation("Mumbai", 29.0, alert=True))
    entity_store.upsert(_observation("Delhi", 24.0))

    response = api_client.get("/weather")

    assert response.status_code == 200
    payload = response.json()
    assert [item["city"] for item in payload] == ["Delhi", "Mumbai"]
    mumbai = payload[1]
    assert mumbai["dominant_condition"] == "Clear"
    assert mumbai["temperature"] == 29.0
    assert mumbai["avg_temperature"] == 28.0
    assert mumbai["alert"] is True
    assert mumbai["last_updated"].startswith("2024-06-01T09:30:00")


def test_list_weather_empty_before_first_sample(api_client: TestClient) -> None:
    response = api_client.get("/weather")

    assert response.status_code == 200
    assert response.json() == []


def test_get_weather_for_unknown_city_returns_not_found(api_client: TestClient) -> None:
    response = api_client.get("/weather/Atlantis")

    assert response.status_code == 404
    assert "Atlantis" in response.json()["detail"]


def test_get_daily_summary_by_day(api_client: TestClient, stores) -> None:
    _, summary_store = stores
    summary_store.upsert(
        DailySummary(
            entity_id="Delhi",
            day=datetime(2024, 6, 1, tzinfo=timezone.utc),
            avg_value=26.5,
            max_value=31.0,
            min_value=22.0,
            dominant_category="Haze",
            sample_count=12,
        )
    )

    response = api_client.get("/summaries/Delhi", params={"day": "2024-06-01"})

    assert response.status_code == 200
    assert response.json() == {
        "city": "Delhi",
        "day": "2024-06-01",
        "avg_temperature": 26.5,
        "max_temperature": 31.0,
        "min_temperature": 22.0,
        "dominant_condition": "Haze",
        "sample_count": 12,
    }

    missing = api_client.get("/summaries/Delhi", params={"day": "2024-06-02"})
    assert missing.status_code == 404


def test_store_failure_is_not_leaked(api_client: TestClient, stores, monkeypatch) -> None:
    entity_store, _ = stores

    def broken_scan():
        raise StoreError("disk gone: /var/lib/secret")

    monkeypatch.setattr(entity_store, "list_all", broken_scan)

    response = api_client.get("/weather")

    assert response.status_code == 503
    assert "secret" not in response.text


def test_ui_renders_configured_cities(api_client: TestClient, stores) -> None:
    entity_store, _ = stores
    entity_store.upsert(_observation("Delhi", 24.0))

    response = api_client.get("/ui")

    assert response.status_code == 200
    assert 'id="delhi-temp">24.0<' in response.text
    assert 'id="mumbai-temp">-<' in response.text
    assert 'data-poll-ms="30000"' in response.text


def test_health(api_client: TestClient) -> None:
    assert api_client.get("/health").json() == {"status": "ok"}
