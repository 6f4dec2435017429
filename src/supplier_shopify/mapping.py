from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional

from .images import detect_image_columns
from .normalize import compact_lower, normalize_key


log = logging.getLogger(__name__)


ROLE_CANDIDATES: Dict[str, List[str]] = {
    "title": ["Title", "Product Title", "Name"],
    "brand": ["Brand Name", "Vendor", "Brand"],
    "product_category": ["Product category", "Category"],
    "subcategory": ["Subcategory", "Sub Category", "Type"],
    "sub_subcategory": ["Sub Sub Category", "SubSubCategory"],
    "season": ["Season"],
    "campaign": ["Campaign"],
    "sizes": ["Sizes", "Size"],
    "cost": ["Cost to Kiddo", "Cost"],
    "mrp": ["MRP"],
    "selling_price": ["Selling Price"],
    "size_chart": ["Size chart", "Size Chart", "Sizechart"],
}

# Output column -> source header candidates, copied through verbatim.
OPTIONAL_EXTRA_COLS: Dict[str, List[str]] = {
    "Fabric": ["Fabric", "Fabric (product.metafields.custom.fabric)"],
    "Wash Care": ["Wash Care", "Wash care", "Wash Care (product.metafields.custom.wash_care)"],
    "Material": ["Material", "Material (product.metafields.custom.material)"],
    "Shelf": ["Shelf", "Shelf (product.metafields.custom.shelf)"],
    "Test": ["Test", "Test (product.metafields.custom.test)"],
    "Season": ["Season", "Season (product.metafields.custom.season)"],
    "Campaign": ["Campaign", "Campaign (product.metafields.custom.campaign)"],
    "Variant Image": ["Variant Image", "Variant image"],
    "Variant Weight Unit": ["Variant Weight Unit", "Variant weight unit"],
    "Variant Tax Code": ["Variant Tax Code", "Variant tax code"],
    "Shelf No": ["Shelf No", "Shelf Number"],
    "Sizes": ["Sizes", "Size"],
}

DESCRIPTION_CANDIDATES = ["Product Specifcation", "Product Specification", "Product specification"]

SIZE_CANDIDATES = [
    "NB", "0-2M", "2-4M", "4-6M", "0-3M", "3-6M", "6-9M", "6-12M", "9-12M", "12-18M", "18-24M",
    "1-2Y", "2-3Y", "3-4Y", "4-5Y", "5-6Y", "One Size", "S", "M", "L", "XL", "XXL",
]

_SIZE_SUFFIX = re.compile(r"\d+\s*-?\s*\d*\s*[my]$", re.IGNORECASE)

TITLE_SAMPLE_ROWS = 10


def find_col_by_names(cols: List[str], names: List[str]) -> Optional[str]:
    """Resolve the first of ``names`` present in ``cols``.

    Exact match on normalized text first (candidates in priority order), then a
    substring scan of each candidate against the headers in their original order.
    """
    cols_norm: Dict[str, str] = {}
    for c in cols:
        cols_norm[normalize_key(c)] = c

    for name in names:
        key = normalize_key(name)
        if key and key in cols_norm:
            return cols_norm[key]

    for name in names:
        needle = compact_lower(name)
        for c in cols:
            if needle in compact_lower(c):
                return c
    return None


def detect_size_columns(cols: List[str]) -> List[str]:
    vocab = {s.lower() for s in SIZE_CANDIDATES}
    size_cols = [c for c in cols if c.strip().lower() in vocab]
    for c in cols:
        if c not in size_cols and _SIZE_SUFFIX.search(c.strip()):
            size_cols.append(c)
    return size_cols


def fallback_title_column(cols: List[str], records: List[dict]) -> Optional[str]:
    if not cols:
        return None
    sample = records[:TITLE_SAMPLE_ROWS]
    for c in cols:
        values = [r.get(c) or "" for r in sample]
        if any(v and not re.fullmatch(r"\d+", v) for v in values):
            return c
    return cols[0]


@dataclass
class ColumnRoles:
    title: Optional[str] = None
    brand: Optional[str] = None
    product_category: Optional[str] = None
    subcategory: Optional[str] = None
    sub_subcategory: Optional[str] = None
    season: Optional[str] = None
    campaign: Optional[str] = None
    sizes: Optional[str] = None
    cost: Optional[str] = None
    mrp: Optional[str] = None
    selling_price: Optional[str] = None
    size_chart: Optional[str] = None
    image_columns: List[str] = field(default_factory=list)
    size_columns: List[str] = field(default_factory=list)
    description_columns: List[str] = field(default_factory=list)
    extra_columns: Dict[str, str] = field(default_factory=dict)

    def role_map(self) -> Dict[str, Optional[str]]:
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name in ROLE_CANDIDATES}


def resolve_columns(cols: List[str], records: Optional[List[dict]] = None) -> ColumnRoles:
    """Build the ColumnRoles for a header row.

    Only the title fallback looks at ``records``; everything else depends on the
    header names alone.
    """
    roles = ColumnRoles(**{role: find_col_by_names(cols, names) for role, names in ROLE_CANDIDATES.items()})
    roles.image_columns = detect_image_columns(cols)
    roles.size_columns = detect_size_columns(cols)

    for name in DESCRIPTION_CANDIDATES:
        c = find_col_by_names(cols, [name])
        if c and c not in roles.description_columns:
            roles.description_columns.append(c)

    for out_col, names in OPTIONAL_EXTRA_COLS.items():
        c = find_col_by_names(cols, names)
        if c:
            roles.extra_columns[out_col] = c

    if not roles.title:
        roles.title = fallback_title_column(cols, records or [])
        log.debug(f"resolve_columns: title fallback -> {roles.title!r}")

    log.debug(f"resolve_columns: roles={roles.role_map()} sizes={roles.size_columns} images={roles.image_columns}")
    return roles
