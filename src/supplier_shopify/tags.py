"""Tag synthesis for product rows.

Tags come from three places, in this order:

- descriptive role values (brand, category, subcategory, season, ...)
- boolean flag columns such as ``Boys``, ``Girls + Unisex`` or ``NB`` holding ``1``
- age brackets inferred from the size variants once a Boy/Girl tag is present
"""
from __future__ import annotations
from typing import Iterable, List, Tuple

from .mapping import ColumnRoles
from .normalize import cell_text, is_blank, normalize_flag_header, normalize_size_for_matching, parse_float
from .variants import DEFAULT_VARIANT


AgeGroups = List[Tuple[str, List[str]]]

BOY_AGE_GROUPS: AgeGroups = [
    ("Boy 0-3m", ["nb", "0-2m", "2-4m", "0-3m", "0-6m"]),
    ("Boy 3-6m", ["2-4m", "4-6m", "3-6m", "0-6m"]),
    ("Boy 6-12m", ["6-9m", "6-12m", "9-12m", "0-12m"]),
    ("Boy 1-2y", ["12-18m", "15-18m", "18-24m", "18m-3y", "1-2y", "1-3y"]),
    ("Boy 2-3y", ["18m-3y", "1-3y", "2-3y", "2-4y", "2-2.5y", "2.5-3y"]),
    ("Boy 3-4y", ["2-4y", "3-4y", "3-3.5y", "3.5-4y"]),
    ("Boy 4-5y", ["3-4y", "4-5y", "5-6y", "5-7y", "4-4.5y", "4.5-5y"]),
    ("Boy 5+ y", ["5-6y", "5-7y", "6-7y", "7-8y", "5-5.5y", "5.5-6y"]),
]

GIRL_AGE_GROUPS: AgeGroups = [
    ("Girl 0-3m", ["nb", "0-2m", "2-4m", "0-3m", "0-6m"]),
    ("Girl 3-6m", ["2-4m", "24m", "4-6m", "3-6m", "0-6m"]),
    ("Girl 6-12m", ["6-9m", "6-12m", "9-12m", "0-12m"]),
    ("Girl 1-2y", ["12-18m", "15-18m", "18-24m", "18m-3y", "1-2y", "1-3y"]),
    ("Girl 2-3y", ["18m-3y", "1-3y", "13y", "2-3y", "2-4y", "2-2.5y", "2.5-3y"]),
    ("Girl 3-4y", ["2-4y", "3-4y", "3-3.5y", "3.5-4y"]),
    ("Girl 4-5y", ["3-4y", "4-5y", "5-6y", "5-7y"]),
    ("Girl 5+ y", ["5-6y", "5-7y", "6-7y", "7-8y"]),
]

# Patterns shorter than this only match a variant exactly.
MIN_SUBSTRING_PATTERN = 3


class TagList:
    """Insertion-ordered list that ignores repeats."""

    def __init__(self, items: Iterable[str] = ()):
        self._items: List[str] = []
        self.extend(items)

    def add(self, tag: str) -> None:
        if tag and tag not in self._items:
            self._items.append(tag)

    def extend(self, tags: Iterable[str]) -> None:
        for t in tags:
            self.add(t)

    def __contains__(self, tag: object) -> bool:
        return tag in self._items

    def __iter__(self):
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def as_list(self) -> List[str]:
        return list(self._items)

    def joined(self, sep: str = ", ") -> str:
        return sep.join(self._items)


def is_value_one(val) -> bool:
    if is_blank(val):
        return False
    return parse_float(str(val).strip()) == 1.0


def flag_tags_for_header(header: str) -> List[str]:
    h = normalize_flag_header(header)
    if "girls" in h and "unisex" in h:
        return ["Girl", "Unisex"]
    if "boys" in h and "unisex" in h:
        return ["Boy", "Unisex"]
    if h in ("boy", "boys"):
        return ["Boy"]
    if h in ("girl", "girls"):
        return ["Girl"]
    if h == "unisex":
        return ["Unisex"]
    if h in ("nb", "newborn"):
        return ["Newborn"]
    return []


def flag_tags(row: dict, cols: List[str]) -> List[str]:
    found = TagList()
    for col in cols:
        if is_value_one(row.get(col)):
            found.extend(flag_tags_for_header(col))
    return found.as_list()


def age_group_tags(variants: List[str], groups: AgeGroups) -> List[str]:
    normalized = [normalize_size_for_matching(v) for v in variants if v and v != DEFAULT_VARIANT]
    normalized = [v for v in normalized if v]
    tags: List[str] = []
    for tag, patterns in groups:
        if any(
            pattern == v or (len(pattern) >= MIN_SUBSTRING_PATTERN and pattern in v)
            for v in normalized
            for pattern in patterns
        ):
            tags.append(tag)
    return tags


def build_tags(row: dict, cols: List[str], roles: ColumnRoles, variants: List[str]) -> TagList:
    tags = TagList()
    # sub_subcategory is listed twice: once under the "Subcategory" label and once
    # as itself. Only the raw value is emitted so the repeat is absorbed by TagList.
    for col in (
        roles.brand,
        roles.product_category,
        roles.subcategory,
        roles.sub_subcategory,
        roles.sub_subcategory,
        roles.season,
        roles.campaign,
        roles.sizes,
    ):
        if col:
            tags.add(cell_text(row.get(col)))

    tags.extend(flag_tags(row, cols))

    if "Boy" in tags:
        tags.extend(age_group_tags(variants, BOY_AGE_GROUPS))
    if "Girl" in tags:
        tags.extend(age_group_tags(variants, GIRL_AGE_GROUPS))
    return tags
