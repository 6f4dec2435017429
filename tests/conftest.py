"""Shared test fixtures for supplier_shopify tests."""

import csv
import io

import pytest


HEADER = [
    "Product Title", "Brand Name", "Category", "Subcategory", "Season",
    "Boys", "Girls", "0-3M", "3-6M", "6-12M",
    "MRP", "Selling Price", "Cost",
    "Product Image 1", "Product Image 2", "Product Specification",
]


def to_csv_bytes(rows):
    buf = io.StringIO(newline="")
    csv.writer(buf).writerows(rows)
    return buf.getvalue().encode("utf-8")


@pytest.fixture
def supplier_grid():
    """Supplier sheet with two preface lines above the header."""
    return [
        ["Supplier: Kiddo Co"],
        ["Price list 2024"],
        HEADER,
        [
            "Baby Romper", "Kiddo", "Clothing", "Rompers", "Summer",
            "1", "0", "5", "3", "0",
            "₹1,299.00", "999", "450",
            "https://cdn.example.com/romper-1.jpg", "https://cdn.example.com/romper-2.jpg",
            "Soft cotton romper",
        ],
        [
            "nan", "Kiddo", "Clothing", "Rompers", "Summer",
            "1", "0", "5", "", "",
            "100", "90", "50", "", "", "",
        ],
        [
            "Girls Party Dress", "Kiddo", "Clothing", "Dresses", "",
            "0", "1", "", "", "",
            "", "", "200", "", "", "",
        ],
    ]


@pytest.fixture
def supplier_csv(supplier_grid):
    return to_csv_bytes(supplier_grid)
