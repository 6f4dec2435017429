from __future__ import annotations
from typing import List, Optional

from .normalize import cell_text


IMAGE_KEYWORD = "image"


def detect_image_columns(cols: List[str]) -> List[str]:
    return [c for c in cols if IMAGE_KEYWORD in c.lower()]


def collect_images(row: dict, image_cols: List[str], size_chart_col: Optional[str] = None) -> List[str]:
    """Image URLs for one record, image columns first then the size chart, without duplicates."""
    sources = list(image_cols)
    if size_chart_col:
        sources.append(size_chart_col)
    images: List[str] = []
    for col in sources:
        url = cell_text(row.get(col))
        if url and url not in images:
            images.append(url)
    return images
