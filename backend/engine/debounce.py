from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from geo.bounds import Bounds


SETTLE_DELAY_S = 0.5


class ViewportDebouncer:
    """
    The "viewport settled" contract between a map widget and the loader.

    - `viewport_changed` for every pan/zoom event; only the last one in a burst
      reaches `load`, `delay_s` after it arrived.
    - `map_ready` once the map finished its initial setup; loads immediately.

    A load that already started is never cancelled; only the waiting period is.
    """

    def __init__(
        self,
        load: Callable[[Bounds], Awaitable[Any]],
        *,
        delay_s: float = SETTLE_DELAY_S,
    ):
        self._load = load
        self.delay_s = delay_s
        self._pending: asyncio.Task | None = None
        self._running: set[asyncio.Task] = set()

    def viewport_changed(self, bounds: Bounds) -> None:
        self.cancel()
        self._pending = asyncio.get_running_loop().create_task(self._settle(bounds))

    async def map_ready(self, bounds: Bounds) -> None:
        self.cancel()
        await self._load(bounds)

    def cancel(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    async def flush(self) -> None:
        """
        Wait for the pending settle timer (if any) and every load it started.
        """
        pending = self._pending
        if pending is not None:
            await asyncio.wait({pending})
        if self._running:
            await asyncio.gather(*self._running, return_exceptions=True)

    async def _settle(self, bounds: Bounds) -> None:
        await asyncio.sleep(self.delay_s)
        # Past this point the load runs on its own task so cancel() can't interrupt it.
        task = asyncio.get_running_loop().create_task(self._load(bounds))
        self._running.add(task)
        task.add_done_callback(self._running.discard)
        self._pending = None
        await asyncio.shield(task)
