"""Ordered measurement point collection and size-range configuration."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from sizing import logger
from sizing.errors import UnknownPointError
from sizing.grading import rebase, regrade_base_value, regrade_jump
from sizing.model import MeasurementPoint, MeasurementSpec, new_key
from sizing.presets import (
    COMMON_MEASUREMENTS,
    check_size_range,
    get_preset,
    point_base_size,
    resolve_base_size,
)
from sizing.rounds import SampleRoundEngine
from sizing.units import parse_value

UPDATABLE_FIELDS = frozenset(
    {
        "pom_code",
        "pom_name",
        "minus_tolerance",
        "plus_tolerance",
        "sizes",
        "base_size",
        "measurement_method",
        "notes",
        "is_active",
    }
)


class MeasurementPointRepository:
    """Mutations of the specification's point list.

    Every mutation re-normalises the touched points against the global base
    size and size range. When a round engine is attached, list changes are
    mirrored into the sample rounds.
    """

    def __init__(
        self,
        spec: MeasurementSpec,
        rounds: SampleRoundEngine | None = None,
        default_base_size: str | None = None,
    ):
        self.spec = spec
        self.rounds = rounds
        self.default_base_size = default_base_size

    @property
    def points(self) -> list[MeasurementPoint]:
        return self.spec.points

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[MeasurementPoint]:
        return iter(self.points)

    def get(self, index: int) -> MeasurementPoint:
        if not 0 <= index < len(self.points):
            raise UnknownPointError(f"No measurement point at index {index}")
        return self.points[index]

    def index_of(self, key: str) -> int:
        for index, point in enumerate(self.points):
            if key in (point.key, point.id):
                return index
        raise UnknownPointError(f"Unknown measurement point: {key}")

    def normalize(self, point: MeasurementPoint) -> MeasurementPoint:
        """Prune sizes to the range (in range order) and settle the base size."""
        point.sizes = {
            size: float(point.sizes[size])
            for size in self.spec.size_range
            if point.sizes.get(size) is not None
        }
        point.base_size = point_base_size(point.sizes, self.spec.base_size, point.base_size)
        return point

    def _points_changed(self) -> None:
        if self.rounds is not None:
            self.rounds.sync_entries()

    def add(self, point: MeasurementPoint) -> MeasurementPoint:
        return self.insert_at(len(self.points), point)

    def insert_at(self, index: int, point: MeasurementPoint) -> MeasurementPoint:
        index = max(0, min(index, len(self.points)))
        self.normalize(point)
        self.points.insert(index, point)
        self._points_changed()
        logger.debug("Inserted measurement point %s at %s", point.pom_code, index)
        return point

    def update_at(self, index: int, **changes: object) -> MeasurementPoint:
        point = self.get(index)
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update point fields: {', '.join(sorted(unknown))}")
        for attr, value in changes.items():
            if attr == "sizes":
                value = dict(value or {})
            setattr(point, attr, value)
        self.normalize(point)
        self._points_changed()
        logger.debug("Updated measurement point %s", point.pom_code)
        return point

    def delete_at(self, index: int) -> MeasurementPoint:
        point = self.get(index)
        del self.points[index]
        if self.rounds is not None:
            removed = self.rounds.remove_entries_for(point.key)
            logger.debug("Removed %s sample entries of %s", removed, point.pom_code)
        self._points_changed()
        logger.info("Deleted measurement point %s", point.pom_code)
        return point

    def _unique_copy_code(self, code: str) -> str:
        taken = {point.pom_code for point in self.points}
        candidate = f"{code}_COPY"
        suffix = 1
        while candidate in taken:
            candidate = f"{code}_COPY-{suffix}"
            suffix += 1
        return candidate

    def duplicate(self, index: int) -> MeasurementPoint:
        """Insert a copy right after the point at ``index`` with its own identity."""
        source = self.get(index)
        copy_point = MeasurementPoint(
            pom_code=self._unique_copy_code(source.pom_code),
            pom_name=f"{source.pom_name} (Copy)",
            key=new_key("pom"),
            minus_tolerance=source.minus_tolerance,
            plus_tolerance=source.plus_tolerance,
            sizes=dict(source.sizes),
            base_size=source.base_size,
            measurement_method=source.measurement_method,
            notes=source.notes,
            is_active=source.is_active,
        )
        self.normalize(copy_point)
        self.points.insert(index + 1, copy_point)
        if self.rounds is not None:
            self.rounds.clone_entries(source, copy_point)
        self._points_changed()
        logger.info("Duplicated %s as %s", source.pom_code, copy_point.pom_code)
        return copy_point

    def add_common_measurements(self) -> list[MeasurementPoint]:
        """Add template points with a simple progression; existing codes are skipped."""
        taken = {point.pom_code for point in self.points}
        added: list[MeasurementPoint] = []
        for template_index, template in enumerate(COMMON_MEASUREMENTS):
            if template.pom_code in taken:
                continue
            sizes = {
                size: 50 + size_index * 2.5 + template_index * 5
                for size_index, size in enumerate(self.spec.size_range)
            }
            point = MeasurementPoint(
                pom_code=template.pom_code,
                pom_name=template.pom_name,
                measurement_method=template.method,
                sizes=sizes,
                base_size=self.spec.base_size,
            )
            self.normalize(point)
            self.points.append(point)
            added.append(point)
        if added:
            self._points_changed()
        return added

    def set_base_value(self, index: int, value: str | float | None) -> bool:
        """Regrade a point from a new base value.

        Returns ``False`` and leaves the point untouched when ``value`` does not
        parse yet (for example ``"52 1/"`` while typing).
        """
        point = self.get(index)
        parsed = None
        if isinstance(value, str) and not value.strip():
            value = None
        if value is not None:
            parsed = parse_value(value, self.spec.unit)
            if parsed is None:
                return False
        point.sizes = regrade_base_value(
            point.sizes, point.base_size, parsed, self.spec.size_range, self.spec.unit
        )
        self.normalize(point)
        return True

    def set_jump(self, index: int, size: str, jump: str | float | None) -> bool:
        """Set one size's jump from the base; an empty jump ungrades the size."""
        point = self.get(index)
        if size not in self.spec.size_range:
            raise ValueError(f"Size {size} is not in the configured size range")
        if isinstance(jump, str) and not jump.strip():
            jump = None
        if jump is not None and parse_value(jump, self.spec.unit) is None:
            return False
        point.sizes = regrade_jump(
            point.sizes, point.base_size, size, jump, self.spec.size_range, self.spec.unit
        )
        self.normalize(point)
        return True

    def set_size_range(self, sizes: Iterable[str]) -> list[str]:
        """Replace the size range; retained sizes keep their values as-is."""
        size_range = check_size_range(sizes)
        previous_base = self.spec.base_size
        self.spec.size_range = size_range
        self.spec.base_size = resolve_base_size(
            size_range, preferred=previous_base, fallback=self.default_base_size
        )
        for point in self.points:
            self.normalize(point)
        if self.spec.base_size != previous_base:
            logger.info("Base size moved from %s to %s", previous_base, self.spec.base_size)
        logger.info("Size range set to %s", ", ".join(size_range))
        return size_range

    def add_size(self, label: str) -> list[str]:
        return self.set_size_range([*self.spec.size_range, label])

    def remove_size(self, label: str) -> list[str]:
        if label not in self.spec.size_range:
            raise ValueError(f"Size {label} is not in the configured size range")
        return self.set_size_range([size for size in self.spec.size_range if size != label])

    def apply_preset(self, preset_id: str) -> list[str]:
        return self.set_size_range(get_preset(preset_id).sizes)

    def set_base_size(self, size: str) -> str:
        """Move the global base size and re-anchor every point on it."""
        if size not in self.spec.size_range:
            raise ValueError(f"Size {size} is not in the configured size range")
        self.spec.base_size = size
        for point in self.points:
            if point.sizes.get(size) is not None:
                point.sizes = rebase(point.sizes, size, self.spec.size_range, self.spec.unit)
            self.normalize(point)
        logger.info("Base size set to %s", size)
        return size

