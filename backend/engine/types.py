from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class LoadOutcome(str, Enum):
    fetched = "fetched"
    cache_hit = "cache_hit"
    in_flight = "in_flight"
    out_of_region = "out_of_region"
    error = "error"


@dataclass(frozen=True)
class LoaderState:
    """
    Snapshot of what the map UI observes.
    """

    loading: bool
    error: str | None
    cache_size: int
    total_buildings: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "loading": self.loading,
            "error": self.error,
            "cacheInfo": {
                "size": self.cache_size,
                "totalBuildings": self.total_buildings,
            },
        }
