#!/usr/bin/env python3
"""Seed the DuckDB document store with demo measurement specifications."""

from __future__ import annotations

import argparse
from pathlib import Path

from backend.db.deps import get_db_path
from backend.db.store import DuckDBDocumentStore
from sizing import logger
from sizing.config import get_settings
from sizing.documents import dump_spec, load_spec
from sizing.points import MeasurementPointRepository
from sizing.rounds import SampleRoundEngine

DEMO_SPECS = {
    "demo-tee": {"articleInfo": {"gender": "Unisex"}, "measurementUnit": "cm"},
    "demo-kids-pant": {"articleInfo": {"gender": "Kids"}, "measurementUnit": "inch-16"},
}


def build_demo(spec_id: str, raw: dict) -> dict:
    """A spec with the common measurements and one open sample round."""
    spec = load_spec({**raw, "id": spec_id}, get_settings())
    rounds = SampleRoundEngine(spec)
    MeasurementPointRepository(spec, rounds).add_common_measurements()
    rounds.create_round(reviewer="QA")
    return dump_spec(spec)


def seed(db_path: Path, force: bool = False) -> int:
    store = DuckDBDocumentStore(db_path)
    existing = set(store.list_ids())
    written = 0
    for spec_id, raw in DEMO_SPECS.items():
        if spec_id in existing and not force:
            logger.info("Skipping existing spec %s", spec_id)
            continue
        store.write(spec_id, build_demo(spec_id, raw))
        written += 1
    logger.info("Seeded %s specs into %s", written, db_path)
    return written


def main():
    parser = argparse.ArgumentParser(description="Seed demo measurement specifications")
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="DuckDB file (default: SIZING_DB_PATH or data/sizing.duckdb)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite demo specs that already exist",
    )
    args = parser.parse_args()
    seed(args.db or get_db_path(), force=args.force)


if __name__ == "__main__":
    main()
