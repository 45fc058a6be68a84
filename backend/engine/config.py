from __future__ import annotations

import os

from cache.bounds_cache import DEFAULT_CAPACITY
from geo.bounds import DEFAULT_SIGNATURE_DECIMALS


# Prefetch margin around the visible viewport.
LOAD_BUFFER_FRACTION = 0.3


def cache_capacity() -> int:
    raw = (os.getenv("FOOTPRINTS_CACHE_CAPACITY") or "").strip()
    if raw:
        try:
            return max(1, int(raw))
        except Exception:
            pass
    return DEFAULT_CAPACITY


def signature_decimals() -> int:
    raw = (os.getenv("FOOTPRINTS_SIGNATURE_DECIMALS") or "").strip()
    if raw:
        try:
            return max(0, min(10, int(raw)))
        except Exception:
            pass
    return DEFAULT_SIGNATURE_DECIMALS
