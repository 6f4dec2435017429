"""Batch conversion of uploaded sheets into one downloadable ZIP.

Every file is converted on its own worker; a failure is captured as a
``FileResult`` carrying an error message so the rest of the batch still
lands in the archive. Entries are written only after all workers settle.
"""
from __future__ import annotations
import io
import logging
import re
import zipfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from .io import HEADER_LOOKAHEAD
from .transform import render_output, transform_bytes


log = logging.getLogger(__name__)

CONVERTED_SUFFIX = " - Converted - Shopify.csv"
DEFAULT_MAX_WORKERS = 4


class Category(str, Enum):
    BOOKS = "Books"
    TOYS = "Toys"
    FASHION = "Fashion"
    ESSENTIALS = "Essentials"


@dataclass
class FileResult:
    filename: str
    entry_name: str
    body: str
    ok: bool = True
    rows: int = 0
    error: Optional[str] = None


@dataclass
class BatchReport:
    results: List[FileResult] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    @property
    def total(self) -> int:
        return len(self.results)


def file_stem(filename: str) -> str:
    return re.sub(r"\.[^/.]+$", "", filename)


def converted_name(filename: str) -> str:
    return f"{file_stem(filename)}{CONVERTED_SUFFIX}"


def error_name(filename: str) -> str:
    return f"ERROR_{filename}.txt"


def archive_name(category, on: Optional[date] = None) -> str:
    label = category.value if isinstance(category, Category) else str(category)
    stamp = (on or date.today()).isoformat()
    return f"{label.lower()}_processed_{stamp}.zip"


def process_file(filename: str, data: bytes, header_lookahead: int = HEADER_LOOKAHEAD) -> FileResult:
    try:
        rows = transform_bytes(data, filename, header_lookahead=header_lookahead)
        body = render_output(rows)
    except Exception as e:
        log.warning(f"Error processing file {filename}: {e}", exc_info=True)
        return FileResult(
            filename=filename,
            entry_name=error_name(filename),
            body=f"Failed to process {filename}: {e}",
            ok=False,
            error=str(e),
        )
    log.info(f"Converted {filename}: {len(rows)} rows")
    return FileResult(filename=filename, entry_name=converted_name(filename), body=body, rows=len(rows))


def process_batch(
    files: Sequence[Tuple[str, bytes]],
    max_workers: int = DEFAULT_MAX_WORKERS,
    header_lookahead: int = HEADER_LOOKAHEAD,
) -> BatchReport:
    """Convert ``(filename, data)`` pairs concurrently; results keep input order."""
    if not files:
        return BatchReport()
    workers = max(1, min(max_workers, len(files)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(process_file, name, data, header_lookahead) for name, data in files]
        results = [f.result() for f in futures]
    report = BatchReport(results=results)
    log.info(f"Batch done: processed={report.processed} failed={report.failed}")
    return report


def unique_entry_name(name: str, taken: set) -> str:
    """Return ``name``, or ``"<stem> (n).<ext>"`` with the lowest free n >= 2."""
    if name not in taken:
        return name
    stem, dot, ext = name.rpartition(".")
    if not dot:
        stem, ext = name, ""
    n = 2
    while True:
        candidate = f"{stem} ({n}){dot}{ext}"
        if candidate not in taken:
            return candidate
        n += 1


def build_archive(report: BatchReport) -> bytes:
    buf = io.BytesIO()
    taken: set = set()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for r in report.results:
            name = unique_entry_name(r.entry_name, taken)
            taken.add(name)
            zf.writestr(name, r.body)
    return buf.getvalue()


def convert_files(
    files: Sequence[Tuple[str, bytes]],
    max_workers: int = DEFAULT_MAX_WORKERS,
    header_lookahead: int = HEADER_LOOKAHEAD,
) -> Tuple[bytes, BatchReport]:
    report = process_batch(files, max_workers=max_workers, header_lookahead=header_lookahead)
    return build_archive(report), report
