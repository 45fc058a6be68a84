from __future__ import annotations

from functools import lru_cache
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from engine.viewport_loader import ViewportLoader
from geo.bounds import Bounds
from layers.districts import load_districts
from regions.registry import RegionEntry, get_region
from telemetry.singleton import get_store

router = APIRouter()


class ApiBounds(BaseModel):
    north: float
    south: float
    east: float
    west: float

    def to_bounds(self) -> Bounds:
        return Bounds(north=self.north, south=self.south, east=self.east, west=self.west)


@lru_cache(maxsize=1)
def get_region_entry() -> RegionEntry:
    return get_region()


# The loader lives on the event loop: every route that touches it is `async def`.
@lru_cache(maxsize=1)
def get_loader() -> ViewportLoader:
    return ViewportLoader(region=get_region_entry().config)


@router.post("/viewport")
async def viewport_settled(body: ApiBounds, loader: ViewportLoader = Depends(get_loader)):
    """
    Called by the map once a pan/zoom has settled (the caller debounces).
    """
    outcome = await loader.load_buildings(body.to_bounds())
    return {"outcome": outcome.value, **loader.state().as_dict()}


@router.get("/buildings")
async def buildings(
    north: float | None = Query(default=None),
    south: float | None = Query(default=None),
    east: float | None = Query(default=None),
    west: float | None = Query(default=None),
    loader: ViewportLoader = Depends(get_loader),
) -> dict[str, Any]:
    edges = [north, south, east, west]
    if all(v is None for v in edges):
        return loader.feature_collection()
    if any(v is None for v in edges):
        raise HTTPException(
            status_code=422, detail="Pass all of north, south, east, west or none of them"
        )
    return loader.feature_collection(Bounds(north=north, south=south, east=east, west=west))


@router.get("/state")
async def state(loader: ViewportLoader = Depends(get_loader)) -> dict[str, Any]:
    return loader.state().as_dict()


@router.post("/cache/clear")
async def clear_cache(loader: ViewportLoader = Depends(get_loader)) -> dict[str, Any]:
    loader.clear_cache()
    return loader.state().as_dict()


@router.get("/districts")
async def districts(region: RegionEntry = Depends(get_region_entry)) -> dict[str, Any]:
    return await load_districts(region)


@router.get("/telemetry/summary")
def telemetry_summary() -> dict[str, Any]:
    store = get_store()
    if store is None:
        return {"enabled": False, "summary": [], "slowest": []}
    return {"enabled": True, "summary": store.summary(), "slowest": store.slowest(limit=10)}
