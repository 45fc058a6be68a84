from __future__ import annotations

import asyncio

import engine.viewport_loader as viewport_loader
from engine.viewport_loader import ViewportLoader
from geo.bounds import Bounds
from overpass.client import OverpassClient
from overpass_fixtures import FakeOverpass, payload, square, way
from regions.registry import get_region
from telemetry.singleton import get_store, reset_store


def test_telemetry_store_writes_rows(tmp_path, monkeypatch):
    db_path = tmp_path / "telemetry.duckdb"
    monkeypatch.setenv("FOOTPRINTS_TELEMETRY_PATH", str(db_path))
    monkeypatch.setenv("FOOTPRINTS_TELEMETRY", "1")

    store = get_store()
    assert store is not None

    store.record(
        region="vienna",
        outcome="fetched",
        signature="48.2130,48.1970,16.3830,16.3670",
        bbox="48.197,16.367,48.213,16.383",
        elements=10,
        features=7,
        added=7,
        duration_ms=123.4,
    )
    store.flush(timeout_s=2.0)

    n = int(store.conn.execute("select count(*) from load_events").fetchone()[0])
    assert n == 1

    [row] = store.summary()
    assert row["outcome"] == "fetched"
    assert row["n"] == 1
    assert row["features"] == 7

    [slow] = store.slowest()
    assert slow["durationMs"] == 123.4
    reset_store()


def test_loader_records_outcomes(tmp_path, monkeypatch):
    monkeypatch.setenv("FOOTPRINTS_TELEMETRY_PATH", str(tmp_path / "t.duckdb"))
    monkeypatch.setenv("FOOTPRINTS_TELEMETRY", "1")

    fake = FakeOverpass(payload(way(1, square(16.37, 48.20), building="yes")))
    loader = ViewportLoader(
        region=get_region("vienna").config,
        client=OverpassClient("https://overpass.test/api/interpreter", transport=fake.transport()),
    )
    view = Bounds(north=48.21, south=48.20, east=16.38, west=16.37)

    async def run():
        await loader.load_buildings(view)
        await loader.load_buildings(view)

    asyncio.run(run())

    store = get_store()
    assert store is not None
    store.flush(timeout_s=2.0)
    outcomes = {r["outcome"]: r["n"] for r in store.summary(region="vienna")}
    assert outcomes == {"cache_hit": 1, "fetched": 1}
    reset_store()


def test_telemetry_reset_deletes_db(tmp_path, monkeypatch):
    db_path = tmp_path / "telemetry.duckdb"
    monkeypatch.setenv("FOOTPRINTS_TELEMETRY_PATH", str(db_path))
    monkeypatch.setenv("FOOTPRINTS_TELEMETRY", "1")

    store = get_store()
    assert store is not None
    store.record(region="vienna", outcome="out_of_region", signature=None, bbox=None)
    assert store.path.resolve() == db_path.resolve()

    reset_store()
    assert not db_path.exists()


def test_telemetry_can_be_disabled(monkeypatch):
    monkeypatch.setenv("FOOTPRINTS_TELEMETRY", "0")
    assert get_store() is None


def test_loader_opens_store_before_any_load(tmp_path, monkeypatch):
    monkeypatch.setenv("FOOTPRINTS_TELEMETRY_PATH", str(tmp_path / "t.duckdb"))
    monkeypatch.setenv("FOOTPRINTS_TELEMETRY", "1")

    fake = FakeOverpass(payload(way(1, square(16.37, 48.20), building="yes")))
    loader = ViewportLoader(
        region=get_region("vienna").config,
        client=OverpassClient("https://overpass.test/api/interpreter", transport=fake.transport()),
    )
    assert loader.telemetry is not None

    def opened_during_load():
        raise AssertionError("telemetry store opened on the event loop")

    monkeypatch.setattr(viewport_loader, "get_store", opened_during_load)
    asyncio.run(loader.load_buildings(Bounds(north=48.21, south=48.20, east=16.38, west=16.37)))

    loader.telemetry.flush(timeout_s=2.0)
    assert [r["outcome"] for r in loader.telemetry.summary()] == ["fetched"]
    reset_store()
