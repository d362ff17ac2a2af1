"""DuckDB-backed persistence collaborator for techpack measurement documents."""

from __future__ import annotations

import asyncio
import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import duckdb

from sizing import logger

CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS spec_documents (
    spec_id VARCHAR PRIMARY KEY,
    document VARCHAR NOT NULL,
    updated_at TIMESTAMP
)
"""


class DocumentNotFoundError(LookupError):
    """Raised when no document is stored under a spec id."""


class DuckDBDocumentStore:
    """Stores one JSON document per specification.

    Saves merge into the stored document, so fields this engine does not own
    (article info, other tabs) survive a round-trip.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self._ensure_schema()

    def _connect(self) -> duckdb.DuckDBPyConnection:
        return duckdb.connect(str(self.db_path))

    def _ensure_schema(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        connection = self._connect()
        try:
            connection.execute(CREATE_TABLE_SQL)
        finally:
            connection.close()

    def list_ids(self) -> list[str]:
        connection = self._connect()
        try:
            rows = connection.execute(
                "SELECT spec_id FROM spec_documents ORDER BY updated_at DESC, spec_id"
            ).fetchall()
        finally:
            connection.close()
        return [row[0] for row in rows]

    def read(self, spec_id: str) -> dict[str, Any]:
        connection = self._connect()
        try:
            row = connection.execute(
                "SELECT document FROM spec_documents WHERE spec_id = ?", [spec_id]
            ).fetchone()
        finally:
            connection.close()
        if row is None:
            raise DocumentNotFoundError(f"No measurement specification with id {spec_id}")
        return json.loads(row[0])

    def write(self, spec_id: str, document: dict[str, Any]) -> dict[str, Any]:
        connection = self._connect()
        try:
            row = connection.execute(
                "SELECT document FROM spec_documents WHERE spec_id = ?", [spec_id]
            ).fetchone()
            merged = json.loads(row[0]) if row else {}
            merged.update(document)
            merged["id"] = spec_id
            updated_at = datetime.now(timezone.utc).replace(tzinfo=None)
            connection.execute(
                "INSERT OR REPLACE INTO spec_documents VALUES (?, ?, ?)",
                [spec_id, json.dumps(merged, ensure_ascii=False), updated_at],
            )
        finally:
            connection.close()
        logger.info("Stored measurement specification %s", spec_id)
        return merged

    def create(self, document: dict[str, Any] | None = None, spec_id: str | None = None) -> str:
        spec_id = spec_id or uuid.uuid4().hex
        self.write(spec_id, dict(document or {}))
        return spec_id

    def delete(self, spec_id: str) -> bool:
        connection = self._connect()
        try:
            existing = connection.execute(
                "SELECT COUNT(*) FROM spec_documents WHERE spec_id = ?", [spec_id]
            ).fetchone()[0]
            connection.execute("DELETE FROM spec_documents WHERE spec_id = ?", [spec_id])
        finally:
            connection.close()
        return bool(existing)

    async def load(self, spec_id: str) -> dict[str, Any]:
        return await asyncio.to_thread(self.read, spec_id)

    async def save(self, spec_id: str, document: dict[str, Any]) -> None:
        await asyncio.to_thread(self.write, spec_id, document)
