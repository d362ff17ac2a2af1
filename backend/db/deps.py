"""Database dependencies for FastAPI routes."""

from functools import lru_cache
from pathlib import Path
import os

from fastapi import Request

from backend.db.store import DuckDBDocumentStore

DB_ENV_VAR = "SIZING_DB_PATH"
DB_CANDIDATES = (
    Path("data/sizing.duckdb"),
    Path("data/techpack_sizing.duckdb"),
)


@lru_cache(maxsize=1)
def get_db_path() -> Path:
    """Resolve the DuckDB path using env override and sane fallbacks."""
    env_override = os.environ.get(DB_ENV_VAR)
    if env_override:
        return Path(env_override).expanduser()

    for candidate in DB_CANDIDATES:
        path = candidate.expanduser()
        if path.exists():
            return path

    # A fresh store is created at the first candidate.
    return DB_CANDIDATES[0].expanduser()


def get_document_store(request: Request) -> DuckDBDocumentStore:
    """Return the app's document store, creating the default one on first use."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        store = DuckDBDocumentStore(get_db_path())
        request.app.state.store = store
    return store
