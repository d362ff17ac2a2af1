"""Sample rounds: seeding, entry synchronisation, cell edits and reconciliation.

Only the most recently created round is editable; earlier rounds are locked
at the edit boundary (``edit_cell`` and ``update_round``) but keep their data.
"""

from __future__ import annotations

import copy
from datetime import date

from sizing import logger
from sizing.errors import RoundLockedError, UnknownPointError, UnknownRoundError
from sizing.grading import GRADING_DECIMALS, accept_revisions
from sizing.model import (
    MeasurementPoint,
    MeasurementSpec,
    RequestedSource,
    SampleEntry,
    SampleField,
    SampleRound,
    new_key,
)
from sizing.presets import point_base_size
from sizing.units import clean_number_text, format_value, parse_value

EDITABLE_ROUND_FIELDS = frozenset({"name", "date", "reviewer", "overall_comments"})
EDITABLE_CELL_FIELDS = frozenset({SampleField.MEASURED, SampleField.REVISED, SampleField.COMMENTS})


def entry_complete(entry: SampleEntry) -> bool:
    """True when every requested size has a measured value."""
    requested = [size for size, value in entry.requested.items() if value.strip()]
    if not requested:
        return False
    return all(entry.measured.get(size, "").strip() for size in requested)


def round_complete(sample_round: SampleRound) -> bool:
    return bool(sample_round.entries) and all(entry_complete(e) for e in sample_round.entries)


class SampleRoundEngine:
    """Owns the ordered sample rounds of a working specification."""

    def __init__(self, spec: MeasurementSpec):
        self.spec = spec

    @property
    def rounds(self) -> list[SampleRound]:
        return self.spec.rounds

    def latest(self) -> SampleRound | None:
        return self.rounds[-1] if self.rounds else None

    def get(self, round_key: str) -> SampleRound:
        for sample_round in self.rounds:
            if round_key in (sample_round.key, sample_round.id):
                return sample_round
        raise UnknownRoundError(f"Unknown sample round: {round_key}")

    def is_editable(self, round_key: str) -> bool:
        latest = self.latest()
        return latest is not None and round_key in (latest.key, latest.id)

    def _require_editable(self, sample_round: SampleRound) -> None:
        if sample_round is not self.latest():
            logger.warning("Rejected edit of locked sample round %s", sample_round.key)
            raise RoundLockedError(sample_round.key)

    def _previous(self, sample_round: SampleRound) -> SampleRound | None:
        index = self.rounds.index(sample_round)
        return self.rounds[index - 1] if index > 0 else None

    def find_entry(self, sample_round: SampleRound, point: MeasurementPoint) -> SampleEntry | None:
        """Match by stable key; legacy entries without a key match once by POM code."""
        for entry in sample_round.entries:
            if entry.point_key == point.key:
                return entry
        for entry in sample_round.entries:
            if entry.point_key is None and entry.pom_code and entry.pom_code == point.pom_code:
                entry.point_key = point.key
                return entry
        return None

    def seed_requested(
        self,
        point: MeasurementPoint,
        source: RequestedSource,
        previous: SampleRound | None,
    ) -> dict[str, str]:
        """Requested values for ``point``: master values, overlaid per size by prior revisions."""
        unit = self.spec.unit
        requested = {
            size: format_value(value, unit)
            for size, value in point.sizes.items()
            if value is not None
        }
        if source is RequestedSource.PREVIOUS and previous is not None:
            prior = self.find_entry(previous, point)
            if prior is not None:
                for size, value in prior.revised.items():
                    if value.strip():
                        requested[size] = value.strip()
        return requested

    def _new_entry(self, sample_round: SampleRound, point: MeasurementPoint) -> SampleEntry:
        entry = SampleEntry(
            point_key=point.key,
            pom_code=point.pom_code,
            pom_name=point.pom_name,
            requested=self.seed_requested(
                point, sample_round.requested_source, self._previous(sample_round)
            ),
        )
        entry.normalize()
        return entry

    def create_round(
        self,
        name: str | None = None,
        date_value: str | None = None,
        reviewer: str = "",
        requested_source: RequestedSource | str | None = None,
        overall_comments: str = "",
    ) -> SampleRound:
        if requested_source is None:
            source = RequestedSource.PREVIOUS if self.rounds else RequestedSource.ORIGINAL
        else:
            source = RequestedSource.coerce(requested_source)

        sample_round = SampleRound(
            name=(name or "").strip() or f"Sample Round {len(self.rounds) + 1}",
            date=date_value or date.today().isoformat(),
            reviewer=(reviewer or "").strip(),
            requested_source=source,
            overall_comments=overall_comments or "",
        )
        self.rounds.append(sample_round)
        sample_round.entries = [self._new_entry(sample_round, p) for p in self.spec.points]
        logger.info(
            "Created sample round %s (%s) with %s entries",
            sample_round.name,
            source.value,
            len(sample_round.entries),
        )
        return sample_round

    def update_round(self, round_key: str, **changes: str) -> SampleRound:
        sample_round = self.get(round_key)
        self._require_editable(sample_round)
        unknown = set(changes) - EDITABLE_ROUND_FIELDS
        if unknown:
            raise ValueError(f"Cannot edit round fields: {', '.join(sorted(unknown))}")
        for attr, value in changes.items():
            setattr(sample_round, attr, value if value is not None else "")
        return sample_round

    def delete_round(self, round_key: str) -> SampleRound:
        sample_round = self.get(round_key)
        self.rounds.remove(sample_round)
        logger.info("Deleted sample round %s; %s rounds remain", sample_round.name, len(self.rounds))
        return sample_round

    def sync_entries(self) -> None:
        """Align every round's entries with the current point list."""
        points = self.spec.points
        for sample_round in self.rounds:
            kept: list[SampleEntry] = []
            for point in points:
                entry = self.find_entry(sample_round, point)
                if entry is None:
                    entry = self._new_entry(sample_round, point)
                entry.pom_code = point.pom_code
                entry.pom_name = point.pom_name
                kept.append(entry)
            kept_ids = {id(entry) for entry in kept}
            dropped = sum(1 for entry in sample_round.entries if id(entry) not in kept_ids)
            if dropped:
                logger.debug("Dropped %s orphaned entries from round %s", dropped, sample_round.key)
            sample_round.entries = kept

    def remove_entries_for(self, point_key: str) -> int:
        """Remove a point's entries from every round, locked ones included."""
        removed = 0
        for sample_round in self.rounds:
            before = len(sample_round.entries)
            sample_round.entries = [e for e in sample_round.entries if e.point_key != point_key]
            removed += before - len(sample_round.entries)
        return removed

    def clone_entries(self, source: MeasurementPoint, duplicate: MeasurementPoint) -> None:
        """Give ``duplicate`` its own copy of every entry ``source`` has."""
        for sample_round in self.rounds:
            entry = self.find_entry(sample_round, source)
            if entry is None:
                continue
            clone = copy.deepcopy(entry)
            clone.key = new_key("entry")
            clone.id = None
            clone.point_key = duplicate.key
            clone.pom_code = duplicate.pom_code
            clone.pom_name = duplicate.pom_name
            position = sample_round.entries.index(entry) + 1
            sample_round.entries.insert(position, clone)

    def edit_cell(
        self,
        round_key: str,
        point_key: str,
        field: SampleField | str,
        size: str,
        raw_value: str,
    ) -> SampleEntry:
        """Write one size cell of a point's entry in the editable round.

        The entry is created on demand. Editing ``measured`` recomputes ``diff``.
        """
        sample_round = self.get(round_key)
        self._require_editable(sample_round)

        field = SampleField(field)
        if field not in EDITABLE_CELL_FIELDS:
            raise ValueError(f"{field.value} is computed and cannot be edited")

        point = self.spec.point_by_key(point_key)
        if point is None:
            raise UnknownPointError(f"Unknown measurement point: {point_key}")

        entry = self.find_entry(sample_round, point)
        if entry is None:
            entry = self._new_entry(sample_round, point)
            sample_round.entries.append(entry)
            logger.debug("Created entry for %s in round %s on edit", point.pom_code, sample_round.key)

        raw_value = raw_value or ""
        if field is SampleField.COMMENTS:
            stored = raw_value if raw_value.strip() else ""
        else:
            stored = clean_number_text(raw_value)
        entry.value_map(field.value)[size] = stored

        if field is SampleField.MEASURED:
            entry.diff[size] = self._diff(entry, point, size)
        entry.normalize()
        return entry

    def _diff(self, entry: SampleEntry, point: MeasurementPoint, size: str) -> str:
        unit = self.spec.unit
        measured = parse_value(entry.measured.get(size, ""), unit)
        requested_text = entry.requested.get(size, "")
        if not requested_text.strip() and point.sizes.get(size) is not None:
            requested_text = format_value(point.sizes[size], unit)
        requested = parse_value(requested_text, unit)
        if measured is None or requested is None:
            return ""
        return format_value(round(measured - requested, GRADING_DECIMALS), unit)

    def reconcile(self, round_key: str) -> list[str]:
        """Merge a round's numeric revisions into the master specification.

        Returns the keys of the points whose size rows changed.
        """
        sample_round = self.get(round_key)
        unit = self.spec.unit
        size_range = self.spec.size_range
        changed: list[str] = []

        for entry in sample_round.entries:
            point = self.spec.point_by_key(entry.point_key) if entry.point_key else None
            if point is None:
                continue
            revisions: dict[str, float] = {}
            for size, text in entry.revised.items():
                value = parse_value(text, unit)
                if value is not None and size in size_range:
                    revisions[size] = value
            if not revisions:
                continue

            regraded = accept_revisions(point.sizes, point.base_size, revisions, size_range, unit)
            if regraded != point.sizes:
                point.sizes = regraded
                point.base_size = point_base_size(regraded, self.spec.base_size, point.base_size)
                changed.append(point.key)

        logger.info(
            "Reconciled round %s into the specification; %s points changed",
            sample_round.name,
            len(changed),
        )
        return changed
