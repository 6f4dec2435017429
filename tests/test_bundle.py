"""Tests for batch conversion and archive packaging."""

import io
import zipfile
from datetime import date

import pytest

from supplier_shopify import bundle
from supplier_shopify.bundle import (
    BatchReport,
    Category,
    FileResult,
    archive_name,
    build_archive,
    convert_files,
    converted_name,
    error_name,
    process_batch,
    process_file,
    unique_entry_name,
)
from supplier_shopify.transform import TEMPLATE_COLS


def _entries(data):
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return {name: zf.read(name).decode("utf-8") for name in zf.namelist()}


def test_entry_names():
    assert converted_name("Kiddo Summer.csv") == "Kiddo Summer - Converted - Shopify.csv"
    assert converted_name("v1.2.sheet.xlsx") == "v1.2.sheet - Converted - Shopify.csv"
    assert converted_name("noext") == "noext - Converted - Shopify.csv"
    assert error_name("broken.csv") == "ERROR_broken.csv.txt"


def test_archive_name():
    assert archive_name(Category.TOYS, on=date(2024, 5, 1)) == "toys_processed_2024-05-01.zip"
    assert archive_name("Books", on=date(2024, 12, 31)) == "books_processed_2024-12-31.zip"


def test_process_file_success(supplier_csv):
    result = process_file("kiddo.csv", supplier_csv)
    assert result.ok
    assert result.rows == 4
    assert result.entry_name == "kiddo - Converted - Shopify.csv"
    assert result.body.splitlines()[0].startswith("Title,URL handle,Description")


def test_process_file_empty_table_is_not_an_error():
    result = process_file("empty.csv", b"")
    assert result.ok
    assert result.rows == 0
    assert result.body.strip() == ",".join(TEMPLATE_COLS)


def test_process_file_failure_becomes_error_entry():
    result = process_file("broken.xlsx", b"not a workbook")
    assert not result.ok
    assert result.entry_name == "ERROR_broken.xlsx.txt"
    assert "broken.xlsx" in result.body
    assert result.error


def test_failing_file_does_not_block_siblings(supplier_csv):
    files = [("good.csv", supplier_csv), ("broken.xlsx", b"not a workbook"), ("other.csv", supplier_csv)]
    data, report = convert_files(files, max_workers=3)
    assert report.processed == 2
    assert report.failed == 1
    assert report.total == 3

    entries = _entries(data)
    assert set(entries) == {
        "good - Converted - Shopify.csv",
        "ERROR_broken.xlsx.txt",
        "other - Converted - Shopify.csv",
    }
    assert entries["ERROR_broken.xlsx.txt"].startswith("Failed to process broken.xlsx:")
    assert "Baby Romper" in entries["good - Converted - Shopify.csv"]


def test_unexpected_exception_is_isolated(monkeypatch, supplier_csv):
    real = bundle.transform_bytes

    def flaky(data, filename="", header_lookahead=8):
        if filename == "boom.csv":
            raise RuntimeError("parser exploded")
        return real(data, filename, header_lookahead=header_lookahead)

    monkeypatch.setattr(bundle, "transform_bytes", flaky)
    report = process_batch([("boom.csv", supplier_csv), ("fine.csv", supplier_csv)])
    assert [r.ok for r in report.results] == [False, True]
    assert report.results[0].error == "parser exploded"


def test_results_keep_input_order(supplier_csv):
    names = [f"f{i}.csv" for i in range(6)]
    report = process_batch([(n, supplier_csv) for n in names], max_workers=4)
    assert [r.filename for r in report.results] == names


def test_empty_batch():
    report = process_batch([])
    assert report.total == 0
    assert _entries(build_archive(report)) == {}


def test_build_archive_failure_propagates(monkeypatch):
    report = BatchReport(results=[FileResult(filename="a.csv", entry_name="a.csv", body="x")])

    def broken_writestr(self, *args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(zipfile.ZipFile, "writestr", broken_writestr)
    with pytest.raises(OSError):
        build_archive(report)


def test_unique_entry_name():
    taken = {"kiddo - Converted - Shopify.csv", "kiddo - Converted - Shopify (2).csv", "notes"}
    assert unique_entry_name("fresh.csv", taken) == "fresh.csv"
    assert unique_entry_name("kiddo - Converted - Shopify.csv", taken) == "kiddo - Converted - Shopify (3).csv"
    assert unique_entry_name("notes", taken) == "notes (2)"


def test_colliding_entry_names_stay_distinct(supplier_csv):
    files = [("kiddo.csv", supplier_csv), ("kiddo.xlsx", b"bad"), ("kiddo.csv", supplier_csv), ("kiddo.xlsx", b"bad")]
    data, report = convert_files(files)
    assert report.total == 4
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        names = zf.namelist()
    assert names == [
        "kiddo - Converted - Shopify.csv",
        "ERROR_kiddo.xlsx.txt",
        "kiddo - Converted - Shopify (2).csv",
        "ERROR_kiddo.xlsx (2).txt",
    ]
