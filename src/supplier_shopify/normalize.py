from __future__ import annotations
import re
from typing import Optional


_NUMBER_PREFIX = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def is_blank(value) -> bool:
    """True for None, whitespace-only text and the literal 'nan' left behind by spreadsheet exports."""
    if value is None:
        return True
    s = str(value).strip()
    return not s or s.lower() == "nan"


def cell_text(value) -> str:
    if is_blank(value):
        return ""
    return str(value).strip()


def parse_float(text) -> Optional[float]:
    """Parse the leading numeric prefix of ``text`` ('12abc' -> 12.0). None when there is none."""
    if text is None:
        return None
    m = _NUMBER_PREFIX.match(str(text))
    if not m:
        return None
    try:
        return float(m.group(0))
    except ValueError:
        return None


def normalize_key(s: str) -> str:
    return re.sub(r"[^a-z0-9]", "", (s or "").lower())


def compact_lower(s: str) -> str:
    return re.sub(r"\s", "", (s or "").lower())


def slugify_for_handle(s: str) -> str:
    if not s:
        return ""
    s = s.strip().lower()
    s = re.sub(r"[^a-z0-9\s-]", "", s)
    s = re.sub(r"\s+", "-", s)
    s = re.sub(r"-+", "-", s)
    return s.strip("-")


def normalize_size_for_matching(s: str) -> str:
    if not s:
        return ""
    s = str(s).lower().strip()
    s = re.sub(r"\s+", " ", s)
    s = re.sub(r"\s*[-–—]\s*", "-", s)
    return s.replace(" ", "")


def normalize_flag_header(s: str) -> str:
    return re.sub(r"[*+\s]+", "", s or "").lower()
