from __future__ import annotations

from pydantic import BaseModel, Field

from geo.bounds import Bounds


class RegionBounds(BaseModel):
    north: float = Field(ge=-90.0, le=90.0)
    south: float = Field(ge=-90.0, le=90.0)
    east: float = Field(ge=-180.0, le=180.0)
    west: float = Field(ge=-180.0, le=180.0)

    def to_bounds(self) -> Bounds:
        return Bounds(north=self.north, south=self.south, east=self.east, west=self.west)


class CoordinateBox(BaseModel):
    """
    Rough lon/lat box every accepted footprint vertex must fall in.

    Wider than the coverage rectangle on purpose: buildings on the edge of a buffered
    viewport may extend past the coverage area.
    """

    minLon: float
    maxLon: float
    minLat: float
    maxLat: float

    def contains(self, lon: float, lat: float) -> bool:
        return self.minLon <= lon <= self.maxLon and self.minLat <= lat <= self.maxLat


class RegionDistricts(BaseModel):
    # WFS endpoint returning a GeoJSON FeatureCollection.
    url: str | None = None
    # Region-relative path to a GeoJSON file used when the endpoint is unavailable.
    sample: str | None = None


class RegionConfig(BaseModel):
    id: str
    title: str
    enabled: bool = True

    # Viewports that do not touch this rectangle are never fetched.
    coverage: RegionBounds
    coordinateBox: CoordinateBox

    # Display text used for ADRESSE when a footprint has no address, name or label rule.
    fallbackLabel: str = "Structure"
    maxRingPoints: int = Field(default=100, ge=4)

    districts: RegionDistricts = Field(default_factory=RegionDistricts)
