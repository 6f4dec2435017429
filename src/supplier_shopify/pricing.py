from __future__ import annotations
import math
import re
from dataclasses import dataclass

from .normalize import parse_float


def clean_price(x) -> str:
    """Strip currency symbols and separators: '₹1,299.00' -> '1299', '19.95' -> '19.95'."""
    if x is None:
        return ""
    s = str(x).strip()
    if not s:
        return ""
    s2 = re.sub(r"[^0-9.\-]", "", s)
    if not s2:
        return ""
    f = parse_float(s2)
    if f is not None and math.isfinite(f) and f.is_integer():
        return str(int(f))
    return s2


def round_to_nearest_9(price: str) -> str:
    """Round to the nearest ten and step one below it: 100 -> 99, 150 -> 149."""
    if not price or not price.strip():
        return price
    p = parse_float(price)
    if p is None or not math.isfinite(p) or p <= 0:
        return price
    rounded = math.floor((p + 5) / 10) * 10 - 1
    return str(max(0, rounded))


@dataclass
class Prices:
    price: str = ""
    compare_at: str = ""
    cost: str = ""


def derive_prices(selling: str = "", mrp: str = "", cost: str = "", fallback_to_cost: bool = True) -> Prices:
    final = clean_price(selling)
    cost_price = clean_price(cost)
    price = ""
    if final:
        price = round_to_nearest_9(final)
    elif cost_price and fallback_to_cost:
        price = round_to_nearest_9(cost_price)
    return Prices(price=price, compare_at=clean_price(mrp), cost=cost_price)
