from __future__ import annotations

from layers.classify import STRUCTURE_TAG_KEYS


DEFAULT_MAXSIZE = 536_870_912  # 512 MiB, server-side memory cap


def build_query(
    bbox: str,
    *,
    timeout_s: int = 30,
    maxsize: int = DEFAULT_MAXSIZE,
    tag_keys: tuple[str, ...] = STRUCTURE_TAG_KEYS,
) -> str:
    """
    Overpass QL for all ways and relations carrying one of `tag_keys` inside `bbox`.

    `bbox` is the Overpass filter string (south,west,north,east). `out geom;` inlines
    node coordinates so no second round-trip is needed.
    """
    statements = [f'way["{k}"]({bbox});' for k in tag_keys]
    statements += [f'relation["{k}"]({bbox});' for k in tag_keys]
    body = "\n  ".join(statements)
    return f"[out:json][timeout:{int(timeout_s)}][maxsize:{int(maxsize)}];\n(\n  {body}\n);\nout geom;"
