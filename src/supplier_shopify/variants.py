from __future__ import annotations
from typing import List


DEFAULT_VARIANT = "Default"


def extract_variants(row: dict, size_cols: List[str]) -> List[str]:
    """Size columns with a stocked (non-empty, non-zero) cell, named after the column."""
    variants: List[str] = []
    for col in size_cols:
        val = str(row.get(col) or "").strip()
        if val and val != "0" and val.lower() != "nan":
            variants.append(col.strip())
    return variants or [DEFAULT_VARIANT]
