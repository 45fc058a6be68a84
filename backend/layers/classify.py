"""
Tag-driven classification of footprints.

Two ordered rule tables with deliberately different precedence:
- LABEL_RULES produce the human readable fallback used for ADRESSE
- KEYWORD_RULES produce the coarse type code stored in BAUWEISE

They are tuned independently; do not derive one from the other.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence


Tags = Mapping[str, Any]

# Tag keys that mark an element as a structure worth drawing.
# Kept in the same order as the Overpass query.
STRUCTURE_TAG_KEYS: tuple[str, ...] = (
    "building",
    "building:part",
    "landuse",
    "man_made",
    "amenity",
    "leisure",
    "shop",
    "office",
    "tourism",
    "historic",
    "aeroway",
    "railway",
    "public_transport",
    "craft",
    "industrial",
)

GENERIC_KEYWORD = "structure"


@dataclass(frozen=True)
class Rule:
    name: str
    applies: Callable[[Tags], bool]
    produce: Callable[[Tags], str]


def _has(key: str) -> Callable[[Tags], bool]:
    return lambda tags: bool(tags.get(key))


def _specific_building(tags: Tags) -> bool:
    # building=yes says nothing about the type.
    v = tags.get("building")
    return bool(v) and v != "yes"


def _value(key: str) -> Callable[[Tags], str]:
    return lambda tags: str(tags[key])


def _fmt(key: str, template: str) -> Callable[[Tags], str]:
    return lambda tags: template.format(tags[key])


def _const(text: str) -> Callable[[Tags], str]:
    return lambda _tags: text


LABEL_RULES: tuple[Rule, ...] = (
    Rule("building", _specific_building, _fmt("building", "{} building")),
    Rule("building:part", _has("building:part"), _const("building part")),
    Rule("landuse", _has("landuse"), _fmt("landuse", "{} area")),
    Rule("man_made", _has("man_made"), _value("man_made")),
    Rule("amenity", _has("amenity"), _value("amenity")),
    Rule("leisure", _has("leisure"), _value("leisure")),
    Rule("shop", _has("shop"), _const("shop")),
    Rule("office", _has("office"), _const("office building")),
)

KEYWORD_RULES: tuple[Rule, ...] = (
    Rule("building", _specific_building, _value("building")),
    Rule("building:part", _has("building:part"), _value("building:part")),
    Rule("landuse", _has("landuse"), _fmt("landuse", "{} area")),
    Rule("man_made", _has("man_made"), _value("man_made")),
    Rule("amenity", _has("amenity"), _value("amenity")),
    Rule("leisure", _has("leisure"), _value("leisure")),
    Rule("shop", _has("shop"), _fmt("shop", "shop ({})")),
    Rule("office", _has("office"), _const("office")),
    Rule("tourism", _has("tourism"), _value("tourism")),
    Rule("historic", _has("historic"), _value("historic")),
    Rule("aeroway", _has("aeroway"), _value("aeroway")),
    Rule("railway", _has("railway"), _value("railway")),
    Rule("public_transport", _has("public_transport"), _value("public_transport")),
    Rule("craft", _has("craft"), _value("craft")),
    Rule("industrial", _has("industrial"), _value("industrial")),
)


def first_match(tags: Tags, rules: Sequence[Rule], fallback: str) -> str:
    for rule in rules:
        if rule.applies(tags):
            return rule.produce(tags)
    return fallback


def type_label(tags: Tags, *, fallback: str) -> str:
    return first_match(tags, LABEL_RULES, fallback)


def type_keyword(tags: Tags) -> str:
    return first_match(tags, KEYWORD_RULES, GENERIC_KEYWORD)


def has_structure_tag(tags: Tags) -> bool:
    return any(tags.get(k) for k in STRUCTURE_TAG_KEYS)


def display_address(tags: Tags, *, fallback: str) -> str:
    street = tags.get("addr:street")
    number = tags.get("addr:housenumber")
    if street and number:
        return f"{street} {number}"
    name = tags.get("name")
    if name:
        return str(name)
    return type_label(tags, fallback=fallback)


_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_YEAR = re.compile(r"(?<!\d)(\d{4})(?!\d)")


def parse_int_prefix(value: Any) -> int | None:
    """
    Leading integer of a tag value ("3", "4.5" -> 4, "2;3" -> 2); None when absent.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value == value and abs(value) != float("inf") else None
    m = _LEADING_INT.match(str(value))
    return int(m.group(1)) if m else None


def floor_count(tags: Tags) -> int | None:
    raw = tags.get("building:levels") or tags.get("levels")
    return parse_int_prefix(raw)


def construction_year(tags: Tags) -> int | None:
    # OSM dates are free-form ("1905", "1905-06-01", "~1880", "C19" ...). Only a
    # standalone 4-digit year is trusted.
    raw = tags.get("start_date") or tags.get("building:start_date")
    if not raw:
        return None
    m = _YEAR.search(str(raw))
    return int(m.group(1)) if m else None
