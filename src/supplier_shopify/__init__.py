"""
Supplier sheet → Shopify catalog converter.

This package provides modular building blocks for:
- Reading supplier sheets (CSV / delimited text, XLSX, XLS) and locating the header row
- Resolving semantic columns (title, brand, prices, sizes, images) from unknown headers
- Deriving variants, tags and prices per product record
- Emitting Shopify product-import CSVs and bundling them into a ZIP

Public API:
- io.read_grid, io.detect_header_row, io.records_from_grid
- mapping.find_col_by_names, mapping.detect_size_columns, mapping.resolve_columns
- pricing.clean_price, pricing.round_to_nearest_9
- tags.build_tags, tags.TagList
- transform.TEMPLATE_COLS, transform.transform_records, transform.transform
- bundle.process_batch, bundle.build_archive, bundle.archive_name
"""

from . import io, normalize, mapping, images, variants, tags, pricing, describe, transform, bundle  # re-export modules

__all__ = [
    "io",
    "normalize",
    "mapping",
    "images",
    "variants",
    "tags",
    "pricing",
    "describe",
    "transform",
    "bundle",
]
