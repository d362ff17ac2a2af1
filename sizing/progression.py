"""Size progression checks and save-time point validation."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

from sizing.model import MeasurementPoint
from sizing.units import DEFAULT_UNIT, MeasurementUnit, format_value

SMALL_PROGRESSION_PERCENT = 1.0
MAX_TOLERANCE = 50.0

_POM_CODE_RE = re.compile(r"^[A-Z0-9_-]+$")


class ProgressionMode(str, Enum):
    """``strict`` blocks saving on a decreasing row, ``warn`` only reports it."""

    STRICT = "strict"
    WARN = "warn"

    @classmethod
    def coerce(cls, value: object) -> "ProgressionMode":
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.strip().lower() == cls.WARN.value:
            return cls.WARN
        return cls.STRICT


@dataclass
class ProgressionResult:
    is_valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def validate_progression(
    sizes: Mapping[str, float],
    size_order: Iterable[str],
    mode: ProgressionMode = ProgressionMode.STRICT,
    unit: MeasurementUnit = DEFAULT_UNIT,
) -> ProgressionResult:
    """Check that values grow from one graded size to the next."""
    entries = [
        (size, sizes[size]) for size in size_order if sizes.get(size) is not None
    ]
    if len(entries) < 2:
        return ProgressionResult()

    errors: list[str] = []
    warnings: list[str] = []

    if any(value <= 0 for _, value in entries):
        errors.append("All measurements must be greater than 0")

    violations: list[str] = []
    for (prev_size, prev_value), (size, value) in zip(entries, entries[1:]):
        diff = value - prev_value
        if diff < 0:
            violations.append(
                f"{prev_size} → {size}: decreased by {format_value(-diff, unit)}{unit.suffix}"
            )
        elif diff == 0:
            warnings.append(f"{prev_size} and {size} have the same value")
        elif prev_value > 0 and diff / prev_value * 100 < SMALL_PROGRESSION_PERCENT:
            warnings.append(
                f"Very small progression between {prev_size} and {size} "
                f"({format_value(diff, unit)}{unit.suffix})"
            )

    if violations:
        details = "; ".join(violations)
        if mode is ProgressionMode.STRICT:
            errors.append(f"Size progression error: {details}")
        else:
            warnings.append(f"Size progression warning: {details}")

    return ProgressionResult(is_valid=not errors, errors=errors, warnings=warnings)


@dataclass
class PointIssues:
    """Field-scoped validation messages for one measurement point."""

    point_key: str
    pom_code: str
    errors: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _check_text(value: str, label: str, min_length: int, max_length: int) -> str | None:
    text = (value or "").strip()
    if not text:
        return f"{label} is required"
    if len(text) < min_length:
        return f"{label} must be at least {min_length} characters long"
    if len(text) > max_length:
        return f"{label} must be no more than {max_length} characters long"
    return None


def _check_tolerance(value: float, label: str) -> str | None:
    if value < 0:
        return f"{label} cannot be negative"
    if value > MAX_TOLERANCE:
        return f"{label} is too large (max {MAX_TOLERANCE:g} units)"
    return None


def validate_point(
    point: MeasurementPoint,
    size_order: Sequence[str],
    mode: ProgressionMode = ProgressionMode.STRICT,
    unit: MeasurementUnit = DEFAULT_UNIT,
) -> PointIssues:
    issues = PointIssues(point_key=point.key, pom_code=point.pom_code)
    errors = issues.errors

    code_error = _check_text(point.pom_code, "POM Code", 2, 20)
    if not code_error and not _POM_CODE_RE.match(point.pom_code.strip().upper()):
        code_error = "POM Code must contain only uppercase letters, numbers, hyphens, and underscores"
    if code_error:
        errors["pomCode"] = code_error

    name_error = _check_text(point.pom_name, "POM Name", 2, 100)
    if name_error:
        errors["pomName"] = name_error

    for attr, key, label in (
        ("minus_tolerance", "minusTolerance", "Minus tolerance"),
        ("plus_tolerance", "plusTolerance", "Plus tolerance"),
    ):
        tolerance_error = _check_tolerance(getattr(point, attr), label)
        if tolerance_error:
            errors[key] = tolerance_error

    values = [value for value in point.sizes.values() if value is not None]
    if not any(value > 0 for value in values):
        errors["sizes"] = "At least one size measurement must be greater than 0"

    if values:
        if not point.base_size:
            errors["baseSize"] = "Base size is required"
        elif point.sizes.get(point.base_size) is None:
            errors["baseSize"] = "Base size measurement value is required"

    order = list(size_order) or list(point.sizes)
    progression = validate_progression(point.sizes, order, mode, unit)
    if progression.errors and "sizes" not in errors:
        errors["sizes"] = "; ".join(progression.errors)
    issues.warnings.extend(progression.warnings)
    return issues


def validate_points(
    points: Iterable[MeasurementPoint],
    size_order: Sequence[str],
    mode: ProgressionMode = ProgressionMode.STRICT,
    unit: MeasurementUnit = DEFAULT_UNIT,
) -> list[PointIssues]:
    """Return issues for every point that has errors or warnings."""
    results = []
    for point in points:
        issues = validate_point(point, size_order, mode, unit)
        if issues.errors or issues.warnings:
            results.append(issues)
    return results
