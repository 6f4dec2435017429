from __future__ import annotations
from typing import List


SEO_DESCRIPTION_LIMIT = 320


def build_description(row: dict, description_cols: List[str]) -> str:
    parts = []
    for col in description_cols:
        val = str(row.get(col) or "").strip()
        if val:
            parts.append(val)
    return "\n\n".join(parts)


def seo_description(description: str) -> str:
    return (description or "")[:SEO_DESCRIPTION_LIMIT]
