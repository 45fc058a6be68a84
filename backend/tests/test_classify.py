from __future__ import annotations

import pytest

from layers.classify import (
    KEYWORD_RULES,
    LABEL_RULES,
    STRUCTURE_TAG_KEYS,
    display_address,
    has_structure_tag,
    parse_int_prefix,
    type_keyword,
    type_label,
)


FALLBACK = "Vienna Structure"


@pytest.mark.parametrize(
    "tags,label,keyword",
    [
        ({"building": "church"}, "church building", "church"),
        ({"building": "yes", "building:part": "tower"}, "building part", "tower"),
        ({"landuse": "retail"}, "retail area", "retail area"),
        ({"man_made": "tower"}, "tower", "tower"),
        ({"amenity": "school"}, "school", "school"),
        ({"leisure": "park"}, "park", "park"),
        ({"shop": "bakery"}, "shop", "shop (bakery)"),
        ({"office": "company"}, "office building", "office"),
        ({"tourism": "museum"}, FALLBACK, "museum"),
        ({"historic": "castle"}, FALLBACK, "castle"),
        ({"railway": "station"}, FALLBACK, "station"),
        ({"craft": "brewery"}, FALLBACK, "brewery"),
        ({"building": "yes"}, FALLBACK, "structure"),
        ({}, FALLBACK, "structure"),
    ],
)
def test_label_and_keyword_tables_follow_their_own_precedence(tags, label, keyword):
    assert type_label(tags, fallback=FALLBACK) == label
    assert type_keyword(tags) == keyword


def test_tables_are_independent_policies():
    assert len(LABEL_RULES) < len(KEYWORD_RULES)
    assert [r.name for r in KEYWORD_RULES] == list(STRUCTURE_TAG_KEYS)
    # building wins over amenity in both tables
    tags = {"building": "school", "amenity": "school"}
    assert type_label(tags, fallback=FALLBACK) == "school building"
    assert type_keyword(tags) == "school"


def test_display_address_precedence():
    both = {"addr:street": "Graben", "addr:housenumber": "21", "name": "Ankerhaus"}
    assert display_address(both, fallback=FALLBACK) == "Graben 21"

    street_only = {"addr:street": "Graben", "name": "Ankerhaus"}
    assert display_address(street_only, fallback=FALLBACK) == "Ankerhaus"

    assert display_address({"shop": "books"}, fallback=FALLBACK) == "shop"
    assert display_address({}, fallback=FALLBACK) == FALLBACK


def test_has_structure_tag():
    assert has_structure_tag({"public_transport": "platform"})
    assert not has_structure_tag({"highway": "footway"})
    assert not has_structure_tag({"building": ""})


@pytest.mark.parametrize(
    "raw,expected",
    [("3", 3), (" 12 ", 12), ("4.5", 4), ("2;3", 2), ("-1", -1), ("abc", None), ("", None), (None, None), (7, 7)],
)
def test_parse_int_prefix(raw, expected):
    assert parse_int_prefix(raw) == expected
