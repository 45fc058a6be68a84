from __future__ import annotations

import asyncio

from engine.debounce import ViewportDebouncer
from geo.bounds import Bounds


def _view(i: int) -> Bounds:
    return Bounds(north=48.21, south=48.20, east=16.38 + i * 0.001, west=16.37 + i * 0.001)


def test_burst_of_changes_loads_only_the_last_viewport():
    calls: list[Bounds] = []

    async def load(bounds: Bounds) -> None:
        calls.append(bounds)

    async def run():
        d = ViewportDebouncer(load, delay_s=0.02)
        for i in range(5):
            d.viewport_changed(_view(i))
            await asyncio.sleep(0.001)
        assert d.pending
        await d.flush()
        assert not d.pending

    asyncio.run(run())
    assert calls == [_view(4)]


def test_changes_separated_by_the_delay_each_load():
    calls: list[Bounds] = []

    async def load(bounds: Bounds) -> None:
        calls.append(bounds)

    async def run():
        d = ViewportDebouncer(load, delay_s=0.01)
        d.viewport_changed(_view(0))
        await d.flush()
        d.viewport_changed(_view(1))
        await d.flush()

    asyncio.run(run())
    assert calls == [_view(0), _view(1)]


def test_map_ready_loads_immediately_and_drops_pending_change():
    calls: list[Bounds] = []

    async def load(bounds: Bounds) -> None:
        calls.append(bounds)

    async def run():
        d = ViewportDebouncer(load, delay_s=0.05)
        d.viewport_changed(_view(1))
        await d.map_ready(_view(0))
        assert calls == [_view(0)]
        await d.flush()

    asyncio.run(run())
    assert calls == [_view(0)]


def test_cancel_does_not_interrupt_a_started_load():
    finished: list[Bounds] = []

    async def load(bounds: Bounds) -> None:
        await asyncio.sleep(0.02)
        finished.append(bounds)

    async def run():
        d = ViewportDebouncer(load, delay_s=0.0)
        d.viewport_changed(_view(0))
        # Let the settle timer fire and the load start.
        await asyncio.sleep(0.005)
        d.cancel()
        await d.flush()

    asyncio.run(run())
    assert finished == [_view(0)]
