"""Pydantic schemas for measurement points exposed by the API."""

from typing import Any

from pydantic import BaseModel, Field

from sizing.grading import derive_jumps
from sizing.model import MeasurementPoint
from sizing.progression import ProgressionResult
from sizing.units import MeasurementUnit, format_tolerance, format_value


class MeasurementPointIn(BaseModel):
    """A new point of measure as entered in the editor."""
    pom_code: str
    pom_name: str
    minus_tolerance: float = 1.0
    plus_tolerance: float = 1.0
    sizes: dict[str, float] = Field(default_factory=dict)
    base_size: str | None = None
    measurement_method: str = ""
    notes: str = ""
    is_active: bool = True

    def to_point(self) -> MeasurementPoint:
        return MeasurementPoint(
            pom_code=self.pom_code.strip().upper(),
            pom_name=self.pom_name.strip(),
            minus_tolerance=self.minus_tolerance,
            plus_tolerance=self.plus_tolerance,
            sizes=dict(self.sizes),
            base_size=self.base_size,
            measurement_method=self.measurement_method,
            notes=self.notes,
            is_active=self.is_active,
        )


class InsertPointIn(MeasurementPointIn):
    index: int = 0


class MeasurementPointUpdate(BaseModel):
    """Partial update; only fields that were sent are applied."""
    pom_code: str | None = None
    pom_name: str | None = None
    minus_tolerance: float | None = None
    plus_tolerance: float | None = None
    sizes: dict[str, float] | None = None
    base_size: str | None = None
    measurement_method: str | None = None
    notes: str | None = None
    is_active: bool | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class BaseValueIn(BaseModel):
    value: str | float | None = None


class JumpIn(BaseModel):
    jump: str | float | None = None


class ProgressionOut(BaseModel):
    is_valid: bool
    errors: list[str]
    warnings: list[str]

    @classmethod
    def from_result(cls, result: ProgressionResult) -> "ProgressionOut":
        return cls(is_valid=result.is_valid, errors=result.errors, warnings=result.warnings)


def _tolerance_label(point: MeasurementPoint, unit: MeasurementUnit) -> str:
    if point.minus_tolerance == point.plus_tolerance:
        return format_tolerance(point.plus_tolerance, unit)
    minus = format_value(point.minus_tolerance, unit)
    plus = format_value(point.plus_tolerance, unit)
    return f"-{minus} / +{plus} {unit.suffix}"


class MeasurementPointOut(BaseModel):
    key: str
    id: str | None = None
    pom_code: str
    pom_name: str
    minus_tolerance: float
    plus_tolerance: float
    tolerance_label: str
    sizes: dict[str, float]
    display_sizes: dict[str, str]
    jumps: dict[str, str]
    base_size: str | None = None
    measurement_method: str
    notes: str
    is_active: bool
    progression: ProgressionOut

    @classmethod
    def from_point(
        cls,
        point: MeasurementPoint,
        unit: MeasurementUnit,
        progression: ProgressionResult,
    ) -> "MeasurementPointOut":
        return cls(
            key=point.key,
            id=point.id,
            pom_code=point.pom_code,
            pom_name=point.pom_name,
            minus_tolerance=point.minus_tolerance,
            plus_tolerance=point.plus_tolerance,
            tolerance_label=_tolerance_label(point, unit),
            sizes=dict(point.sizes),
            display_sizes={size: format_value(value, unit) for size, value in point.sizes.items()},
            jumps=derive_jumps(point.sizes, point.base_size, unit),
            base_size=point.base_size,
            measurement_method=point.measurement_method,
            notes=point.notes,
            is_active=point.is_active,
            progression=ProgressionOut.from_result(progression),
        )
