from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, TypedDict

from shapely.geometry import Polygon

from geo.bounds import Bounds


Ring = list[tuple[float, float]]  # [(lon, lat), ...], closed


class BuildingProps(TypedDict, total=False):
    ADRESSE: str
    BAUWEISE: str
    STOCKWERKE: int
    BAUJAHR: int
    NAME: str


@dataclass(frozen=True)
class BuildingFeature:
    ring: Ring
    props: BuildingProps
    # "way/123" or "relation/456" when the upstream element carried an id.
    source_id: str | None = None

    @property
    def dedupe_key(self) -> str:
        """
        First ring vertex joined as "lon,lat".

        Cheap and approximate: two different footprints starting on the same vertex
        collapse into one.
        """
        lon, lat = self.ring[0]
        return f"{lon},{lat}"

    def to_geojson(self) -> dict[str, Any]:
        return {
            "type": "Feature",
            "properties": dict(self.props),
            "geometry": {
                "type": "Polygon",
                "coordinates": [[[lon, lat] for lon, lat in self.ring]],
            },
        }

    def to_polygon(self) -> Polygon:
        return Polygon(self.ring)


@dataclass(frozen=True)
class BuildingCollection:
    """
    Immutable result of one upstream fetch; this is what the bounds cache stores.
    """

    features: tuple[BuildingFeature, ...] = ()

    def __len__(self) -> int:
        return len(self.features)

    def to_geojson(self) -> dict[str, Any]:
        return feature_collection(self.features)


@dataclass
class BuildingSet:
    """
    Running collection of everything loaded this session.

    No two features share a `dedupe_key`, so merging the same region twice (or
    overlapping regions in any order) yields the same set.
    """

    features: list[BuildingFeature] = field(default_factory=list)
    _keys: set[str] = field(default_factory=set, repr=False)

    def __post_init__(self) -> None:
        existing = self.features
        self.features = []
        self._keys = set()
        self.merge(existing)

    def __len__(self) -> int:
        return len(self.features)

    def merge(self, features: Iterable[BuildingFeature]) -> int:
        """
        Append features whose first vertex is not known yet. Returns how many were added.
        """
        added = 0
        for f in features:
            key = f.dedupe_key
            if key in self._keys:
                continue
            self._keys.add(key)
            self.features.append(f)
            added += 1
        return added

    def clear(self) -> None:
        self.features.clear()
        self._keys.clear()

    def visible_in(self, bounds: Bounds) -> list[BuildingFeature]:
        """
        Features whose footprint intersects the viewport (linear scan, no index).
        """
        view = bounds.to_polygon()
        out: list[BuildingFeature] = []
        for f in self.features:
            try:
                if f.to_polygon().intersects(view):
                    out.append(f)
            except Exception:
                # Degenerate rings (e.g. all vertices equal) fall back to the first vertex.
                lon, lat = f.ring[0]
                if bounds.west <= lon <= bounds.east and bounds.south <= lat <= bounds.north:
                    out.append(f)
        return out

    def to_geojson(self) -> dict[str, Any]:
        return feature_collection(self.features)


def feature_collection(features: Iterable[BuildingFeature]) -> dict[str, Any]:
    return {
        "type": "FeatureCollection",
        "features": [f.to_geojson() for f in features],
    }
