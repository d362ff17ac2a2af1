#!/usr/bin/env python3
"""Export a stored specification's size chart to CSV, or import points from one."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from backend.db.deps import get_db_path
from backend.db.store import DuckDBDocumentStore
from sizing import logger
from sizing.chart_io import read_chart_csv, write_chart_csv
from sizing.config import get_settings
from sizing.documents import load_spec
from sizing.session import EditingSession


def export_chart(store: DuckDBDocumentStore, spec_id: str, output_path: Path) -> Path:
    spec = load_spec(store.read(spec_id), get_settings())
    return write_chart_csv(spec, output_path)


async def import_chart(store: DuckDBDocumentStore, spec_id: str, csv_path: Path) -> int:
    """Append the CSV's points to the stored specification and save it through an editing session."""
    session = await EditingSession.open(spec_id, store)
    points = read_chart_csv(csv_path, session.size_range, session.unit)
    session.import_points(points)
    result = await session.save()
    if not result.saved:
        for issue in result.issues:
            logger.warning("%s: %s", issue.pom_code, "; ".join(issue.errors.values()))
        return 0
    return len(points)


def main():
    parser = argparse.ArgumentParser(description="Export or import a size chart CSV")
    parser.add_argument("spec_id", help="Specification id in the document store")
    parser.add_argument("csv_path", type=Path, help="CSV file to write or read")
    parser.add_argument(
        "--import",
        dest="import_",
        action="store_true",
        help="Read points from the CSV instead of writing it",
    )
    parser.add_argument("--db", type=Path, default=None, help="DuckDB file override")
    args = parser.parse_args()

    store = DuckDBDocumentStore(args.db or get_db_path())
    if args.import_:
        count = asyncio.run(import_chart(store, args.spec_id, args.csv_path))
        logger.info("Imported %s measurement points into %s", count, args.spec_id)
    else:
        export_chart(store, args.spec_id, args.csv_path)


if __name__ == "__main__":
    main()
