from __future__ import annotations

import asyncio

import httpx

from layers.districts import load_districts, load_sample_districts
from overpass_fixtures import FakeOverpass, failing_transport
from regions.registry import get_region


REGION = get_region("vienna")


def test_districts_come_from_endpoint_when_available():
    body = {
        "type": "FeatureCollection",
        "features": [{"type": "Feature", "properties": {"BEZIRK": "Leopoldstadt"}, "geometry": None}],
    }
    fake = FakeOverpass(body)
    data = asyncio.run(load_districts(REGION, transport=fake.transport()))
    assert data == body
    assert len(fake.requests) == 1


def test_districts_fall_back_to_sample_on_failure():
    sample = load_sample_districts(REGION)
    assert sample["features"][0]["properties"]["BEZIRK"].startswith("1. Innere Stadt")

    down = asyncio.run(load_districts(REGION, transport=failing_transport(httpx.ConnectError("down"))))
    assert down == sample

    broken = asyncio.run(load_districts(REGION, transport=FakeOverpass(status_code=500).transport()))
    assert broken == sample

    odd = asyncio.run(load_districts(REGION, transport=FakeOverpass({"error": "nope"}).transport()))
    assert odd == sample
