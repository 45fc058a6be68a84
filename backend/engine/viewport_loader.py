from __future__ import annotations

import logging
import time
from typing import Any

from cache.bounds_cache import BoundsCache
from engine.config import LOAD_BUFFER_FRACTION, cache_capacity, signature_decimals
from engine.types import LoaderState, LoadOutcome
from geo.bounds import (
    Bounds,
    buffer_bounds,
    signature_of,
    to_query_bbox,
    within_home_region,
)
from layers.convert import convert_elements
from layers.types import BuildingCollection, BuildingFeature, BuildingSet
from overpass.client import OverpassClient
from overpass.errors import OverpassError
from regions.registry import get_region
from regions.types import RegionConfig
from telemetry.singleton import get_store
from telemetry.store import TelemetryStore

logger = logging.getLogger(__name__)


class ViewportLoader:
    """
    Loads building footprints for map viewports.

    Owns the bounds cache, the in-flight set and the accumulated building set.
    Designed for a single asyncio event loop: the only suspension point is the
    Overpass fetch, and every check-then-act sequence on shared state runs between
    awaits, so no locks are needed.

    Callers debounce viewport changes (see `engine.debounce`).
    """

    def __init__(
        self,
        *,
        region: RegionConfig | None = None,
        client: OverpassClient | None = None,
        cache: BoundsCache[BuildingCollection] | None = None,
        buffer_fraction: float = LOAD_BUFFER_FRACTION,
        telemetry: TelemetryStore | None = None,
    ):
        self.region = region or get_region().config
        self.client = client or OverpassClient()
        if cache is None:
            cache = BoundsCache(capacity=cache_capacity(), decimals=signature_decimals())
        self.cache: BoundsCache[BuildingCollection] = cache
        self.buffer_fraction = buffer_fraction
        # load_buildings must never open DuckDB itself.
        self.telemetry = telemetry if telemetry is not None else _open_telemetry()

        self.buildings = BuildingSet()
        self.loading = False
        self.error: str | None = None
        self._in_flight: set[str] = set()

    async def load_buildings(self, bounds: Bounds) -> LoadOutcome:
        if not within_home_region(bounds, self.region):
            logger.debug("Bounds outside %s, skipping building load", self.region.title)
            self._record(LoadOutcome.out_of_region, None, None)
            return LoadOutcome.out_of_region

        buffered = buffer_bounds(bounds, self.buffer_fraction)
        bbox = to_query_bbox(buffered)
        signature = signature_of(buffered, self.cache.decimals)

        if signature in self._in_flight:
            logger.debug("Already loading this area: %s", signature)
            self._record(LoadOutcome.in_flight, signature, bbox)
            return LoadOutcome.in_flight

        cached = self.cache.get(buffered)
        if cached is not None:
            added = self.buildings.merge(cached.features)
            logger.debug("Using cached building data for %s (%d new)", signature, added)
            self._record(
                LoadOutcome.cache_hit, signature, bbox, features=len(cached), added=added
            )
            return LoadOutcome.cache_hit

        self.loading = True
        self.error = None
        self._in_flight.add(signature)
        t0 = time.perf_counter()
        try:
            logger.info("Loading buildings for viewport bbox %s", bbox)
            payload = await self.client.fetch(bbox)
            features = self._convert(payload)
            collection = BuildingCollection(features=tuple(features))
            self.cache.put(buffered, collection)
            added = self.buildings.merge(collection.features)
            logger.info(
                "Loaded %d buildings for viewport (%d new, %d total)",
                len(collection),
                added,
                len(self.buildings),
            )
            self._record(
                LoadOutcome.fetched,
                signature,
                bbox,
                elements=len(payload.get("elements") or []),
                features=len(collection),
                added=added,
                duration_ms=(time.perf_counter() - t0) * 1000.0,
            )
            return LoadOutcome.fetched
        except OverpassError as e:
            logger.warning("Failed to load viewport buildings: %s", e)
            self.error = str(e)
        except Exception as e:
            logger.exception("Failed to load viewport buildings")
            self.error = f"Failed to load buildings: {type(e).__name__}: {e}"
        finally:
            self._in_flight.discard(signature)
            # Other signatures may still be fetching.
            self.loading = bool(self._in_flight)

        self._record(
            LoadOutcome.error,
            signature,
            bbox,
            duration_ms=(time.perf_counter() - t0) * 1000.0,
            error=self.error,
        )
        return LoadOutcome.error

    def clear_cache(self) -> None:
        """
        Full reset: drop every cached region and every accumulated building.
        """
        self.cache.clear()
        self.buildings.clear()
        logger.info("Building cache cleared")

    def is_in_flight(self, bounds: Bounds) -> bool:
        buffered = buffer_bounds(bounds, self.buffer_fraction)
        return signature_of(buffered, self.cache.decimals) in self._in_flight

    def cache_info(self) -> dict[str, int]:
        return {"size": self.cache.size(), "totalBuildings": len(self.buildings)}

    def state(self) -> LoaderState:
        return LoaderState(
            loading=self.loading,
            error=self.error,
            cache_size=self.cache.size(),
            total_buildings=len(self.buildings),
        )

    def feature_collection(self, bounds: Bounds | None = None) -> dict[str, Any]:
        if bounds is None:
            return self.buildings.to_geojson()
        return BuildingCollection(tuple(self.buildings.visible_in(bounds))).to_geojson()

    def _convert(self, payload: dict[str, Any]) -> list[BuildingFeature]:
        return convert_elements(
            payload,
            coordinate_box=self.region.coordinateBox,
            fallback_label=self.region.fallbackLabel,
            max_ring_points=self.region.maxRingPoints,
        )

    def _record(self, outcome: LoadOutcome, signature: str | None, bbox: str | None, **fields) -> None:
        if self.telemetry is None:
            return
        try:
            self.telemetry.record(
                region=self.region.id,
                outcome=outcome.value,
                signature=signature,
                bbox=bbox,
                **fields,
            )
        except Exception:
            logger.debug("Telemetry record failed", exc_info=True)


def _open_telemetry() -> TelemetryStore | None:
    try:
        return get_store()
    except Exception:
        logger.warning("Telemetry store unavailable, load events are not recorded", exc_info=True)
        return None
