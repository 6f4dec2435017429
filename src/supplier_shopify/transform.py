from __future__ import annotations
import logging
from pathlib import Path
from typing import List, Optional

from .describe import build_description, seo_description
from .images import collect_images
from .io import HEADER_LOOKAHEAD, read_grid, read_grid_path, records_from_grid, write_shopify_csv
from .mapping import ColumnRoles, resolve_columns
from .normalize import is_blank, slugify_for_handle
from .pricing import derive_prices
from .tags import build_tags
from .variants import DEFAULT_VARIANT, extract_variants


log = logging.getLogger(__name__)


TEMPLATE_COLS = [
    "Title", "URL handle", "Description", "Vendor", "Product category", "Type", "Tags",
    "Published on online store", "Status", "SKU", "Barcode",
    "Option1 name", "Option1 value", "Option2 name", "Option2 value", "Option3 name", "Option3 value",
    "Price", "Compare-at price", "Cost per item", "Charge tax", "Tax code",
    "Unit price total measure", "Unit price total measure unit", "Unit price base measure", "Unit price base measure unit",
    "Inventory tracker", "Variant Inventory Policy", "Inventory policy",
    "Continue selling when out of stock", "Inventory quantity",
    "Weight value (grams)", "Weight unit for display", "Requires shipping", "Fulfillment service",
    "Product image URL", "Image position", "Image alt text", "Variant image URL", "Gift card",
    "SEO title", "SEO description",
    "Google Shopping / Google product category", "Google Shopping / Gender", "Google Shopping / Age group",
    "Google Shopping / MPN", "Google Shopping / AdWords Grouping", "Google Shopping / AdWords labels",
    "Google Shopping / Condition", "Google Shopping / Custom product",
    "Google Shopping / Custom label 0", "Google Shopping / Custom label 1",
    "Google Shopping / Custom label 2", "Google Shopping / Custom label 3", "Google Shopping / Custom label 4",
    # Optional pass-through columns
    "Fabric", "Wash Care", "Material", "Shelf", "Test", "Season", "Campaign",
    "Variant Image", "Variant Weight Unit", "Variant Tax Code", "Shelf No", "Sizes",
]

HANDLE_COL = "URL handle"

FIXED_VALUES = {
    "Published on online store": "TRUE",
    "Status": "Active",
    "Charge tax": "TRUE",
    "Requires shipping": "TRUE",
    "Fulfillment service": "manual",
    "Gift card": "FALSE",
}


def new_output_row() -> dict:
    return {c: "" for c in TEMPLATE_COLS}


def assemble_rows(row: dict, cols: List[str], roles: ColumnRoles) -> List[dict]:
    """Expand one source record into its variant rows followed by its extra image rows."""
    title = str(row.get(roles.title) or "").strip() if roles.title else ""
    if is_blank(title):
        return []

    handle_base = slugify_for_handle(title)
    variants = extract_variants(row, roles.size_columns)
    images = collect_images(row, roles.image_columns, roles.size_chart)
    primary_image = images[0] if images else ""

    prices = derive_prices(
        selling=row.get(roles.selling_price) if roles.selling_price else "",
        mrp=row.get(roles.mrp) if roles.mrp else "",
        cost=row.get(roles.cost) if roles.cost else "",
    )
    description = build_description(row, roles.description_columns)
    tags = build_tags(row, cols, roles, variants).joined()

    out_rows: List[dict] = []
    for idx, size in enumerate(variants):
        out = new_output_row()
        out["Title"] = title
        out[HANDLE_COL] = handle_base
        out["Description"] = description

        for out_col, src_col in roles.extra_columns.items():
            out[out_col] = str(row.get(src_col) or "").strip()

        if roles.brand:
            out["Vendor"] = row.get(roles.brand) or ""
        if roles.product_category:
            out["Product category"] = row.get(roles.product_category) or ""
            out["Google Shopping / Google product category"] = row.get(roles.product_category) or ""
        if roles.subcategory:
            out["Type"] = row.get(roles.subcategory) or ""
            if not out["Type"] and roles.sub_subcategory:
                out["Type"] = row.get(roles.sub_subcategory) or ""

        out["Tags"] = tags
        out.update(FIXED_VALUES)

        out["Price"] = prices.price
        out["Compare-at price"] = prices.compare_at
        out["Cost per item"] = prices.cost

        out["SEO title"] = title
        out["SEO description"] = seo_description(description)

        if idx == 0:
            if primary_image:
                out["Product image URL"] = primary_image
                out["Image position"] = "1"
            if size != DEFAULT_VARIANT:
                out["Option1 name"] = "Size"
                out["Option1 value"] = size

        out_rows.append(out)

    for pos, url in enumerate(images[1:], start=2):
        img = new_output_row()
        img[HANDLE_COL] = handle_base
        img["Product image URL"] = url
        img["Image position"] = str(pos)
        out_rows.append(img)

    return out_rows


def transform_records(cols: List[str], records: List[dict], roles: Optional[ColumnRoles] = None) -> List[dict]:
    if not cols:
        return []
    roles = roles or resolve_columns(cols, records)
    out_rows: List[dict] = []
    skipped = 0
    for row in records:
        rows = assemble_rows(row, cols, roles)
        if not rows:
            skipped += 1
        out_rows.extend(rows)
    log.debug(f"transform_records: records={len(records)} skipped={skipped} rows={len(out_rows)}")
    return out_rows


def transform_grid(grid: list, header_lookahead: int = HEADER_LOOKAHEAD) -> List[dict]:
    cols, records = records_from_grid(grid, max_rows=header_lookahead)
    return transform_records(cols, records)


def transform_bytes(data: bytes, filename: str = "", header_lookahead: int = HEADER_LOOKAHEAD) -> List[dict]:
    return transform_grid(read_grid(data, filename), header_lookahead=header_lookahead)


def transform(input_path: Path, header_lookahead: int = HEADER_LOOKAHEAD) -> List[dict]:
    return transform_grid(read_grid_path(input_path), header_lookahead=header_lookahead)


def render_output(rows: List[dict]) -> str:
    return write_shopify_csv(rows, TEMPLATE_COLS)


def write_output(output_path: Path, rows: List[dict]) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_output(rows), encoding="utf-8", newline="")
