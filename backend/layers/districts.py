from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from regions.registry import RegionEntry

logger = logging.getLogger(__name__)


EMPTY_COLLECTION: dict[str, Any] = {"type": "FeatureCollection", "features": []}


async def load_districts(
    region: RegionEntry,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    timeout_s: float = 15.0,
) -> dict[str, Any]:
    """
    District boundaries for the region as a GeoJSON FeatureCollection.

    Tries the region's WFS endpoint first; on any failure falls back to the sample
    file shipped with the region (or an empty collection).
    """
    url = region.config.districts.url
    if url:
        try:
            async with httpx.AsyncClient(transport=transport, timeout=timeout_s) as client:
                response = await client.get(url)
                response.raise_for_status()
                data = response.json()
            if _is_feature_collection(data):
                logger.info("District data loaded: %d features", len(data["features"]))
                return data
            logger.warning("District endpoint returned an unexpected document")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("District data loading failed: %s", e)

    return load_sample_districts(region)


def load_sample_districts(region: RegionEntry) -> dict[str, Any]:
    sample = region.config.districts.sample
    if not sample:
        return dict(EMPTY_COLLECTION)
    path = region.resolve(sample)
    data = json.loads(path.read_text(encoding="utf-8"))
    if not _is_feature_collection(data):
        raise ValueError(f"Invalid district sample: {path}")
    return data


def _is_feature_collection(data: Any) -> bool:
    return (
        isinstance(data, dict)
        and data.get("type") == "FeatureCollection"
        and isinstance(data.get("features"), list)
    )
