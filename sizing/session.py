"""Editing session: the working copy, its draft, and the save round-trip."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from sizing import logger
from sizing.config import Settings, get_settings
from sizing.documents import dump_spec, load_spec
from sizing.drafts import DebouncedDraftWriter, DraftStore
from sizing.errors import SaveFailedError, SaveInProgressError
from sizing.model import MeasurementPoint, MeasurementSpec, SampleEntry, SampleRound
from sizing.points import MeasurementPointRepository
from sizing.progression import PointIssues, ProgressionResult, validate_points, validate_progression
from sizing.rounds import SampleRoundEngine
from sizing.units import MeasurementUnit


class DocumentStore(Protocol):
    """The persistence collaborator a session saves to and re-reads from."""

    async def load(self, spec_id: str) -> dict[str, Any]: ...

    async def save(self, spec_id: str, document: dict[str, Any]) -> None: ...


@dataclass
class SaveResult:
    saved: bool
    issues: list[PointIssues] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    before: dict[str, Any] | None = None
    after: dict[str, Any] | None = None


class EditingSession:
    """Single-editor working copy of one specification.

    All mutations go through the session so it can mark itself dirty and
    schedule a draft write. Nothing can be mutated while a save is in flight.
    """

    def __init__(
        self,
        spec_id: str,
        spec: MeasurementSpec,
        store: DocumentStore,
        drafts: DraftStore | None = None,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.spec_id = spec_id
        self.store = store
        self.drafts = drafts
        self.settings = settings or get_settings()
        self._writer = (
            DebouncedDraftWriter(drafts, spec_id, self.settings.draft_delay, clock)
            if drafts is not None
            else None
        )
        self.dirty = False
        self.saving = False
        self.last_saved_at: str | None = None
        self._bind(spec)
        self._canonical = dump_spec(spec)

    @classmethod
    async def open(
        cls,
        spec_id: str,
        store: DocumentStore,
        drafts: DraftStore | None = None,
        settings: Settings | None = None,
        restore_draft: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> "EditingSession":
        settings = settings or get_settings()
        canonical = await store.load(spec_id)
        session = cls(spec_id, load_spec(canonical, settings), store, drafts, settings, clock)
        session._canonical = dump_spec(session.spec)

        if restore_draft and drafts is not None:
            draft = drafts.load(spec_id)
            if draft is not None:
                session._bind(load_spec(draft, settings))
                session.dirty = True
                logger.info("Restored local draft for %s", spec_id)

        logger.info(
            "Opened editing session for %s (%s points, %s rounds)",
            spec_id,
            len(session.spec.points),
            len(session.spec.rounds),
        )
        return session

    def _bind(self, spec: MeasurementSpec) -> None:
        self.spec = spec
        self.round_engine = SampleRoundEngine(spec)
        self.repository = MeasurementPointRepository(
            spec, self.round_engine, self.settings.default_base_size
        )

    @property
    def size_range(self) -> list[str]:
        return list(self.spec.size_range)

    @property
    def base_size(self) -> str:
        return self.spec.base_size

    @property
    def unit(self) -> MeasurementUnit:
        return self.spec.unit

    @property
    def points(self) -> list[MeasurementPoint]:
        return self.spec.points

    @property
    def rounds(self) -> list[SampleRound]:
        return self.spec.rounds

    def document(self) -> dict[str, Any]:
        return dump_spec(self.spec)

    def _before_edit(self) -> None:
        if self.saving:
            raise SaveInProgressError(f"A save of {self.spec_id} is in progress")
        # An overdue draft records the state from before this edit.
        self.poll_draft()

    def _mutate(self, operation: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        self._before_edit()
        result = operation(*args, **kwargs)
        self._touch()
        return result

    def _touch(self) -> None:
        self.dirty = True
        if self._writer is not None:
            self._writer.schedule(self.document)
            self._writer.poll()

    # Points

    def add_point(self, point: MeasurementPoint) -> MeasurementPoint:
        return self._mutate(self.repository.add, point)

    def insert_point(self, index: int, point: MeasurementPoint) -> MeasurementPoint:
        return self._mutate(self.repository.insert_at, index, point)

    def import_points(self, points: Iterable[MeasurementPoint]) -> list[MeasurementPoint]:
        return self._mutate(lambda: [self.repository.add(point) for point in points])

    def update_point(self, index: int, **changes: Any) -> MeasurementPoint:
        return self._mutate(self.repository.update_at, index, **changes)

    def delete_point(self, index: int) -> MeasurementPoint:
        return self._mutate(self.repository.delete_at, index)

    def duplicate_point(self, index: int) -> MeasurementPoint:
        return self._mutate(self.repository.duplicate, index)

    def add_common_measurements(self) -> list[MeasurementPoint]:
        return self._mutate(self.repository.add_common_measurements)

    def set_base_value(self, index: int, value: str | float | None) -> bool:
        self._before_edit()
        applied = self.repository.set_base_value(index, value)
        if applied:
            self._touch()
        return applied

    def set_jump(self, index: int, size: str, jump: str | float | None) -> bool:
        self._before_edit()
        applied = self.repository.set_jump(index, size, jump)
        if applied:
            self._touch()
        return applied

    # Size configuration

    def set_size_range(self, sizes: Iterable[str]) -> list[str]:
        return self._mutate(self.repository.set_size_range, sizes)

    def add_size(self, label: str) -> list[str]:
        return self._mutate(self.repository.add_size, label)

    def remove_size(self, label: str) -> list[str]:
        return self._mutate(self.repository.remove_size, label)

    def apply_preset(self, preset_id: str) -> list[str]:
        return self._mutate(self.repository.apply_preset, preset_id)

    def set_base_size(self, size: str) -> str:
        return self._mutate(self.repository.set_base_size, size)

    def set_unit(self, unit: MeasurementUnit | str) -> MeasurementUnit:
        """Change the display unit; stored values are not converted."""
        self._before_edit()
        self.spec.unit = MeasurementUnit(unit)
        self._touch()
        return self.spec.unit

    # Sample rounds

    def create_round(self, **fields: Any) -> SampleRound:
        return self._mutate(self.round_engine.create_round, **fields)

    def update_round(self, round_key: str, **changes: Any) -> SampleRound:
        return self._mutate(self.round_engine.update_round, round_key, **changes)

    def delete_round(self, round_key: str) -> SampleRound:
        return self._mutate(self.round_engine.delete_round, round_key)

    def edit_cell(
        self, round_key: str, point_key: str, field_name: str, size: str, value: str
    ) -> SampleEntry:
        return self._mutate(self.round_engine.edit_cell, round_key, point_key, field_name, size, value)

    def reconcile_round(self, round_key: str) -> list[str]:
        return self._mutate(self.round_engine.reconcile, round_key)

    # Validation

    def progression_for(self, point: MeasurementPoint) -> ProgressionResult:
        return validate_progression(
            point.sizes, self.spec.size_range, self.settings.progression_mode, self.spec.unit
        )

    def validate(self) -> list[PointIssues]:
        return validate_points(
            self.spec.points, self.spec.size_range, self.settings.progression_mode, self.spec.unit
        )

    # Drafts

    def poll_draft(self) -> bool:
        """Write the pending draft if edits have been quiet for the configured delay."""
        return self._writer.poll() if self._writer is not None else False

    def flush_draft(self) -> bool:
        return self._writer.flush() if self._writer is not None else False

    def discard_draft(self) -> bool:
        if self._writer is not None:
            self._writer.cancel()
        return self.drafts.discard(self.spec_id) if self.drafts is not None else False

    # Save

    async def save(self) -> SaveResult:
        """Validate, send the document and adopt the collaborator's canonical copy.

        Field errors are returned, not raised. A failed round-trip leaves the
        working copy untouched and raises ``SaveFailedError``.
        """
        self._before_edit()
        issues = self.validate()
        warnings = [f"{issue.pom_code}: {warning}" for issue in issues for warning in issue.warnings]
        blocking = [issue for issue in issues if issue.errors]
        if blocking:
            logger.warning(
                "Save of %s blocked by %s invalid measurement points", self.spec_id, len(blocking)
            )
            return SaveResult(saved=False, issues=blocking, warnings=warnings)

        before = self._canonical
        document = self.document()
        self.saving = True
        self.dirty = False
        try:
            await self.store.save(self.spec_id, document)
            canonical = await self.store.load(self.spec_id)
        except Exception as exc:
            self.dirty = True
            logger.warning("Save of %s failed: %s", self.spec_id, exc)
            raise SaveFailedError(f"Saving {self.spec_id} failed: {exc}") from exc
        finally:
            self.saving = False

        self._bind(load_spec(canonical, self.settings))
        self._canonical = dump_spec(self.spec)
        if self._writer is not None:
            self._writer.cancel()
        if self.drafts is not None:
            self.drafts.discard(self.spec_id)
        self.last_saved_at = datetime.now(timezone.utc).isoformat()
        logger.info("Saved %s (%s points)", self.spec_id, len(self.spec.points))
        return SaveResult(saved=True, warnings=warnings, before=before, after=self._canonical)
