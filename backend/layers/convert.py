from __future__ import annotations

import logging
import math
from typing import Any, Iterable

from layers.classify import (
    construction_year,
    display_address,
    floor_count,
    has_structure_tag,
    type_keyword,
)
from layers.types import BuildingFeature, BuildingProps, Ring
from regions.types import CoordinateBox

logger = logging.getLogger(__name__)


MIN_RING_POINTS = 4
DEFAULT_MAX_RING_POINTS = 100


class InvalidGeometry(ValueError):
    """Raised for an element whose geometry cannot become a footprint."""


def convert_elements(
    payload: dict[str, Any],
    *,
    coordinate_box: CoordinateBox,
    fallback_label: str,
    max_ring_points: int = DEFAULT_MAX_RING_POINTS,
) -> list[BuildingFeature]:
    """
    Turn an Overpass `out geom;` response into validated footprints.

    Input shape:
    - ways carry `geometry: [{lat, lon}, ...]`
    - relations carry `members: [{type, role, geometry}, ...]`

    Rejected elements are skipped; one bad element never aborts the batch.
    Output keeps the order of the input elements.
    """
    elements = payload.get("elements") or []

    out: list[BuildingFeature] = []
    for el in elements:
        try:
            feature = convert_element(
                el,
                coordinate_box=coordinate_box,
                fallback_label=fallback_label,
                max_ring_points=max_ring_points,
            )
        except InvalidGeometry as e:
            logger.debug("Skipping %s: %s", _element_ref(el), e)
            continue
        except Exception:
            logger.warning("Error processing %s, skipping", _element_ref(el), exc_info=True)
            continue
        if feature is not None:
            out.append(feature)

    logger.info("Processed %d elements, created %d valid buildings", len(elements), len(out))
    return out


def convert_element(
    el: dict[str, Any],
    *,
    coordinate_box: CoordinateBox,
    fallback_label: str,
    max_ring_points: int = DEFAULT_MAX_RING_POINTS,
) -> BuildingFeature | None:
    """
    Convert one element. Returns None for elements that are not footprints at all
    (untagged noise); raises InvalidGeometry for footprints with unusable geometry.
    """
    etype = el.get("type")
    tags = el.get("tags")
    if not isinstance(tags, dict):
        return None

    if etype == "way":
        nodes = el.get("geometry")
        if not isinstance(nodes, list):
            return None
        # Closed untagged shapes are kept as anonymous structures.
        if not has_structure_tag(tags) and len(nodes) <= 3:
            return None
    elif etype == "relation":
        if not isinstance(el.get("members"), list):
            return None
        if not has_structure_tag(tags):
            return None
        nodes = _first_outer_way(el["members"])
        if nodes is None:
            raise InvalidGeometry("relation has no outer way with geometry")
    else:
        return None

    ring = _to_ring(nodes, coordinate_box)
    ring = _ensure_closed(ring)
    if len(ring) > max_ring_points:
        raise InvalidGeometry(f"polygon too complex ({len(ring)} points)")

    return BuildingFeature(
        ring=ring,
        props=_props(tags, fallback_label=fallback_label),
        source_id=_element_ref(el) if el.get("id") is not None else None,
    )


def _first_outer_way(members: Iterable[Any]) -> list[Any] | None:
    # Multipolygon policy: only the first outer way is used; other outers and all
    # inner rings are ignored.
    for m in members:
        if not isinstance(m, dict):
            continue
        if m.get("type") == "way" and m.get("role") == "outer" and isinstance(m.get("geometry"), list):
            return m["geometry"]
    return None


def _to_ring(nodes: list[Any], box: CoordinateBox) -> Ring:
    if len(nodes) < MIN_RING_POINTS:
        raise InvalidGeometry(f"too few points ({len(nodes)})")

    ring: Ring = []
    for p in nodes:
        if not isinstance(p, dict):
            raise InvalidGeometry("malformed node")
        lon = p.get("lon")
        lat = p.get("lat")
        if not _is_number(lon) or not _is_number(lat):
            raise InvalidGeometry("non-numeric coordinate")
        lon, lat = float(lon), float(lat)
        if not box.contains(lon, lat):
            raise InvalidGeometry(f"coordinate outside region ({lon}, {lat})")
        ring.append((lon, lat))
    return ring


def _is_number(v: Any) -> bool:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return False
    return math.isfinite(v)


def _ensure_closed(ring: Ring) -> Ring:
    if ring[0] != ring[-1]:
        return [*ring, ring[0]]
    return ring


def _props(tags: dict[str, Any], *, fallback_label: str) -> BuildingProps:
    props: BuildingProps = {
        "ADRESSE": display_address(tags, fallback=fallback_label),
        "BAUWEISE": type_keyword(tags),
    }
    levels = floor_count(tags)
    if levels is not None:
        props["STOCKWERKE"] = levels
    year = construction_year(tags)
    if year is not None:
        props["BAUJAHR"] = year
    name = tags.get("name")
    if name:
        props["NAME"] = str(name)
    return props


def _element_ref(el: Any) -> str:
    if not isinstance(el, dict):
        return repr(el)[:40]
    return f"{el.get('type')}/{el.get('id')}"
