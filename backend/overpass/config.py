from __future__ import annotations

import os


DEFAULT_OVERPASS_URL = "https://overpass-api.de/api/interpreter"


def overpass_url() -> str:
    return (os.getenv("FOOTPRINTS_OVERPASS_URL") or "").strip() or DEFAULT_OVERPASS_URL


def overpass_timeout_s() -> int:
    """
    Server-side query timeout passed as `[timeout:N]`.
    """
    raw = (os.getenv("FOOTPRINTS_OVERPASS_TIMEOUT_S") or "").strip()
    if raw:
        try:
            return max(1, int(raw))
        except Exception:
            pass
    return 30


def client_deadline_s(server_timeout_s: int) -> float:
    # Give the server its full budget plus some slack for transfer.
    return float(server_timeout_s) + 5.0
