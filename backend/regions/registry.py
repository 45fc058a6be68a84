from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable

import yaml

from regions.types import RegionConfig


DEFAULT_REGION_ID = "vienna"


class RegionNotFoundError(RuntimeError):
    pass


def _repo_root() -> Path:
    # .../backend/regions/registry.py -> repo root is 2 levels up
    return Path(__file__).resolve().parents[2]


def _regions_root() -> Path:
    return _repo_root() / "regions"


@dataclass(frozen=True)
class RegionEntry:
    config: RegionConfig
    # Absolute path to region.yaml on disk.
    path: Path

    def resolve(self, region_relative: str) -> Path:
        return self.path.parent / region_relative.lstrip("/")


def _iter_region_yaml_files() -> Iterable[Path]:
    root = _regions_root()
    if not root.exists():
        return []
    # Convention: regions/*/region.yaml
    return root.glob("*/region.yaml")


def _load_yaml(path: Path) -> dict:
    raw = path.read_text(encoding="utf-8")
    data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid region yaml root: {path}")
    return data


@lru_cache(maxsize=1)
def get_registry() -> dict[str, RegionEntry]:
    out: dict[str, RegionEntry] = {}
    for p in sorted(_iter_region_yaml_files(), key=lambda x: str(x)):
        cfg = RegionConfig.model_validate(_load_yaml(p))
        if not cfg.enabled:
            continue
        out[cfg.id] = RegionEntry(config=cfg, path=p)
    return out


def default_region_id() -> str:
    return (os.getenv("FOOTPRINTS_REGION") or "").strip() or DEFAULT_REGION_ID


def list_regions() -> list[RegionConfig]:
    return [e.config for e in get_registry().values()]


def get_region(region_id: str | None = None) -> RegionEntry:
    reg = get_registry()
    if not reg:
        raise RegionNotFoundError("No regions discovered under `regions/*/region.yaml`")
    rid = (region_id or "").strip() or default_region_id()
    if rid not in reg:
        raise RegionNotFoundError(f"Unknown region: {rid!r} (known: {sorted(reg)})")
    return reg[rid]


def clear_registry_cache() -> None:
    """
    Clear in-memory region registry cache.

    Region YAML changes are otherwise not picked up until the process restarts.
    """
    get_registry.cache_clear()
