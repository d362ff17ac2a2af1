"""Local drafts of unsaved specifications, written with a debounce."""

from __future__ import annotations

import asyncio
import json
import re
import time
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from sizing import logger

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class DraftStore:
    """One JSON draft file per specification under ``root``."""

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def path_for(self, spec_id: str) -> Path:
        name = _UNSAFE_CHARS.sub("_", spec_id or "unsaved") or "unsaved"
        return self.root / f"{name}.json"

    def save(self, spec_id: str, document: dict[str, Any]) -> Path:
        path = self.path_for(spec_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "specId": spec_id,
            "savedAt": datetime.now(timezone.utc).isoformat(),
            "document": document,
        }
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
        tmp_path.replace(path)
        logger.info("Wrote draft for %s to %s", spec_id, path)
        return path

    def load(self, spec_id: str) -> dict[str, Any] | None:
        path = self.path_for(spec_id)
        if not path.exists():
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable draft %s: %s", path, exc)
            return None
        document = payload.get("document") if isinstance(payload, dict) else None
        return document if isinstance(document, dict) else None

    def discard(self, spec_id: str) -> bool:
        path = self.path_for(spec_id)
        if not path.exists():
            return False
        path.unlink()
        logger.info("Discarded draft for %s", spec_id)
        return True


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class DebouncedDraftWriter:
    """Coalesce bursts of edits into a single draft write.

    ``schedule`` takes a callable that produces the document, so the write
    always captures the latest state. Inside an event loop a timer fires the
    write. Without one, the next ``schedule`` or ``poll`` after the quiet
    period writes it.
    """

    def __init__(
        self,
        store: DraftStore,
        spec_id: str,
        delay: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.spec_id = spec_id
        self.delay = max(delay, 0.0)
        self.clock = clock
        self._snapshot: Callable[[], dict[str, Any]] | None = None
        self._due_at: float | None = None
        self._handle: asyncio.TimerHandle | None = None
        self.writes = 0

    @property
    def pending(self) -> bool:
        return self._snapshot is not None

    def _disarm(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def schedule(self, snapshot: Callable[[], dict[str, Any]]) -> None:
        # A draft whose quiet period already ended is written before the next one starts.
        self.poll()
        self._snapshot = snapshot
        self._due_at = self.clock() + self.delay
        loop = _running_loop()
        if loop is not None:
            self._disarm()
            self._handle = loop.call_later(self.delay, self.flush)

    def poll(self) -> bool:
        """Write the pending draft if its quiet period has elapsed."""
        if self._snapshot is None or self._due_at is None:
            return False
        if self.clock() < self._due_at:
            return False
        return self.flush()

    def flush(self) -> bool:
        self._disarm()
        snapshot, self._snapshot, self._due_at = self._snapshot, None, None
        if snapshot is None:
            return False
        self.store.save(self.spec_id, snapshot())
        self.writes += 1
        return True

    def cancel(self) -> None:
        self._disarm()
        self._snapshot = None
        self._due_at = None
