from __future__ import annotations
import csv
import io
import logging
from collections import Counter
from pathlib import Path
from typing import Iterable, List, Tuple

import chardet


log = logging.getLogger(__name__)

HEADER_LOOKAHEAD = 8
EXCEL_EXTS = (".xlsx", ".xlsm", ".xltx", ".xltm")
FALLBACK_ENCODING = "latin-1"
DETECT_BYTES = 10000
DELIMITERS = ",;\t|"
SNIFF_LINES = 20


def _val_to_str(v) -> str:
    # Normalize Excel numeric cells: 5225.0 -> '5225'
    if v is None:
        return ""
    if isinstance(v, bool):
        return "TRUE" if v else "FALSE"
    if isinstance(v, (int, float)):
        if float(v).is_integer():
            return str(int(v))
        return str(v)
    return str(v)


def detect_encoding(data: bytes) -> str:
    result = chardet.detect(data[:DETECT_BYTES])
    encoding = result.get("encoding")
    # ASCII is a subset of UTF-8
    if not encoding or encoding.lower() == "ascii":
        return "utf-8"
    log.debug(f"detect_encoding: {encoding} (confidence {result.get('confidence') or 0:.2f})")
    return encoding


def _decode(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        pass
    encoding = detect_encoding(data)
    try:
        return data.decode(encoding)
    except (UnicodeDecodeError, LookupError) as e:
        log.warning(f"Decoding as {encoding} failed ({e}); using {FALLBACK_ENCODING}")
        return data.decode(FALLBACK_ENCODING)


def _sniff_delimiter(text: str) -> str:
    """Pick the delimiter on which the most sample lines, header included, agree on one width above 1.

    Quoted cells are parsed as such, so separators inside them do not count.
    Ties keep the earlier delimiter, which makes comma the default.
    """
    sample = [line for line in text.splitlines()[:SNIFF_LINES] if line.strip()]
    best, best_score = ",", (0, 0)
    for d in DELIMITERS:
        try:
            widths = Counter(len(r) for r in csv.reader(sample, delimiter=d))
        except csv.Error:
            continue
        wide = [(count, width) for width, count in widths.items() if width > 1]
        if not wide:
            continue
        score = max(wide)
        if score > best_score:
            best, best_score = d, score
    return best


def read_delimited(data: bytes) -> list:
    text = _decode(data)
    if not text.strip():
        return []
    delimiter = _sniff_delimiter(text)
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
    return [list(row) for row in reader]


def read_xlsx(data: bytes) -> list:
    from openpyxl import load_workbook

    wb = load_workbook(filename=io.BytesIO(data), read_only=True, data_only=True)
    try:
        if not wb.worksheets:
            return []
        ws = wb.worksheets[0]
        return [[_val_to_str(v) for v in row] for row in ws.iter_rows(values_only=True)]
    finally:
        wb.close()


def read_xls(data: bytes) -> list:
    import xlrd

    book = xlrd.open_workbook(file_contents=data)
    if book.nsheets == 0:
        return []
    sheet = book.sheet_by_index(0)
    return [
        [_val_to_str(sheet.cell_value(r, c)) for c in range(sheet.ncols)]
        for r in range(sheet.nrows)
    ]


def read_grid(data: bytes, filename: str = "") -> list:
    """Read an uploaded sheet into a RawTable (list of rows of text cells).

    Excel workbooks are read from their first worksheet; any other extension
    is treated as delimited text with a sniffed delimiter.
    """
    ext = Path(filename).suffix.lower()
    if ext in EXCEL_EXTS:
        grid = read_xlsx(data)
    elif ext == ".xls":
        grid = read_xls(data)
    else:
        grid = read_delimited(data)
    log.debug(f"read_grid: file={filename!r} rows={len(grid)}")
    return grid


def read_grid_path(input_path: Path) -> list:
    return read_grid(input_path.read_bytes(), input_path.name)


def detect_header_row(grid: list, max_rows: int = HEADER_LOOKAHEAD) -> int:
    for i, row in enumerate(grid[:max_rows]):
        lower = [str(c or "").strip().lower() for c in row]
        if any("title" in c for c in lower):
            return i
    return 0


def build_header(row: Iterable) -> List[str]:
    header = []
    for i, c in enumerate(row):
        name = str(c or "").strip()
        header.append(name or f"unnamed_{i}")
    return header


def records_from_grid(grid: list, max_rows: int = HEADER_LOOKAHEAD) -> Tuple[List[str], List[dict]]:
    """Split a RawTable into (HeaderRow, SourceRecords) around the detected header."""
    if not grid:
        return [], []
    header_idx = detect_header_row(grid, max_rows=max_rows)
    header = build_header(grid[header_idx])
    log.debug(f"records_from_grid: header_idx={header_idx} columns={len(header)}")

    records: List[dict] = []
    for raw in grid[header_idx + 1 :]:
        d: dict = {}
        for i, name in enumerate(header):
            d[name] = str(raw[i]) if i < len(raw) and raw[i] is not None else ""
        records.append(d)
    return header, records


def write_shopify_csv(rows: list, fieldnames: List[str]) -> str:
    buf = io.StringIO(newline="")
    writer = csv.DictWriter(buf, fieldnames=fieldnames, restval="", extrasaction="ignore")
    writer.writeheader()
    for r in rows:
        writer.writerow(r)
    return buf.getvalue()
