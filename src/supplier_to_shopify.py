#!/usr/bin/env python3
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from supplier_shopify.bundle import Category, DEFAULT_MAX_WORKERS, archive_name, build_archive, process_batch


INPUT_GLOBS = ("*.csv", "*.xlsx", "*.xls")


def collect_inputs(inputs: List[str], input_dir: str) -> List[Path]:
    paths = [Path(p) for p in inputs or []]
    if input_dir:
        root = Path(input_dir)
        if not root.exists():
            raise FileNotFoundError(f"Input directory not found: {root}")
        found = set()
        for pattern in INPUT_GLOBS:
            found.update(root.glob(pattern))
        paths.extend(sorted(found))
    missing = [str(p) for p in paths if not p.is_file()]
    if missing:
        raise FileNotFoundError(f"Input file(s) not found: {', '.join(missing)}")
    return paths


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Convert supplier product sheets into Shopify import CSVs bundled in a ZIP.")
    parser.add_argument("--input", action="append", default=[], help="Path to an input sheet; repeat for several files")
    parser.add_argument("--input-dir", default="", help="Directory whose .csv/.xlsx/.xls files are all converted")
    parser.add_argument("--output-dir", default=".", help="Directory to write the archive into")
    parser.add_argument(
        "--category",
        default=Category.FASHION.value,
        choices=[c.value for c in Category],
        help="Catalog category; only used to name the archive",
    )
    parser.add_argument("--workers", type=int, default=DEFAULT_MAX_WORKERS, help="Number of files converted in parallel")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v for info, -vv for debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")
    log = logging.getLogger(__name__)

    paths = collect_inputs(args.input, args.input_dir)
    if not paths:
        raise SystemExit("Either --input or --input-dir is required")

    files = [(p.name, p.read_bytes()) for p in paths]
    report = process_batch(files, max_workers=args.workers)
    data = build_archive(report)

    out_dir = Path(args.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / archive_name(Category(args.category))
    out_path.write_bytes(data)
    log.info(f"Archive written to {out_path}")

    for r in report.results:
        if not r.ok:
            print(f"Failed: {r.filename}: {r.error}", file=sys.stderr)
    print(f"Successfully processed {report.processed} of {report.total} files -> {out_path}")
    return 0


def run() -> None:
    try:
        sys.exit(main())
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    run()
