from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from shapely.geometry import Polygon
from shapely.geometry import box as shapely_box

if TYPE_CHECKING:
    from regions.types import RegionConfig


DEFAULT_SIGNATURE_DECIMALS = 4


@dataclass(frozen=True)
class Bounds:
    """
    WGS84 viewport rectangle in degrees.

    Convention used throughout this repo (matches the map widget):
    - north, south, east, west

    Callers are expected to pass well-formed rectangles (north >= south, east >= west).
    """

    north: float
    south: float
    east: float
    west: float

    @classmethod
    def from_dict(cls, d: dict[str, float]) -> "Bounds":
        return cls(
            north=float(d["north"]),
            south=float(d["south"]),
            east=float(d["east"]),
            west=float(d["west"]),
        )

    def as_dict(self) -> dict[str, float]:
        return {
            "north": self.north,
            "south": self.south,
            "east": self.east,
            "west": self.west,
        }

    def to_polygon(self) -> Polygon:
        return shapely_box(self.west, self.south, self.east, self.north)


def signature_of(bounds: Bounds, decimals: int = DEFAULT_SIGNATURE_DECIMALS) -> str:
    """
    A stable string key for caching and in-flight tracking.

    decimals=4 is ~11m in latitude. Two viewports that round to the same values
    share one key; that aliasing is accepted.
    """
    d = int(decimals)
    return ",".join(
        f"{v:.{d}f}" for v in (bounds.north, bounds.south, bounds.east, bounds.west)
    )


def buffer_bounds(bounds: Bounds, fraction: float = 0.2) -> Bounds:
    """
    Grow each edge outward by `fraction` of the extent along its axis.

    Used to prefetch a margin around the visible area.
    """
    lat_pad = (bounds.north - bounds.south) * fraction
    lon_pad = (bounds.east - bounds.west) * fraction
    return Bounds(
        north=bounds.north + lat_pad,
        south=bounds.south - lat_pad,
        east=bounds.east + lon_pad,
        west=bounds.west - lon_pad,
    )


def overlap(a: Bounds, b: Bounds) -> bool:
    # Touching edges count as overlapping.
    return not (
        a.east < b.west or b.east < a.west or a.north < b.south or b.north < a.south
    )


def within_home_region(bounds: Bounds, region: "RegionConfig | None" = None) -> bool:
    """
    True when the viewport touches the region the upstream data is requested for.
    """
    if region is None:
        # Lazily import to keep this module free of config loading.
        from regions.registry import get_region

        region = get_region().config
    return overlap(bounds, region.coverage.to_bounds())


def to_query_bbox(bounds: Bounds) -> str:
    """
    Overpass bbox filter: south,west,north,east (no spaces).

    Note the axis order differs from `Bounds`; it is fixed by the Overpass protocol.
    """
    return f"{bounds.south},{bounds.west},{bounds.north},{bounds.east}"
