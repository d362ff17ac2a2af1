"""Pydantic schemas for a specification's editing session."""

from typing import Any

from pydantic import BaseModel

from backend.models.measurement import MeasurementPointOut
from backend.models.sample_round import SampleRoundOut
from sizing.session import EditingSession, SaveResult
from sizing.units import MeasurementUnit


class SpecCreateIn(BaseModel):
    spec_id: str | None = None
    document: dict[str, Any] | None = None


class SpecCreated(BaseModel):
    spec_id: str


class OpenSessionIn(BaseModel):
    restore_draft: bool = False


class SizeRangeIn(BaseModel):
    sizes: list[str]


class SizeLabelIn(BaseModel):
    label: str


class PresetIn(BaseModel):
    preset_id: str


class BaseSizeIn(BaseModel):
    size: str


class UnitIn(BaseModel):
    unit: MeasurementUnit


class SpecOut(BaseModel):
    """Everything the editor needs to render one specification."""
    spec_id: str
    unit: MeasurementUnit
    size_range: list[str]
    base_size: str
    dirty: bool
    saving: bool
    last_saved_at: str | None = None
    points: list[MeasurementPointOut]
    rounds: list[SampleRoundOut]

    @classmethod
    def from_session(cls, session: EditingSession) -> "SpecOut":
        latest = session.round_engine.latest()
        return cls(
            spec_id=session.spec_id,
            unit=session.unit,
            size_range=session.size_range,
            base_size=session.base_size,
            dirty=session.dirty,
            saving=session.saving,
            last_saved_at=session.last_saved_at,
            points=[
                MeasurementPointOut.from_point(point, session.unit, session.progression_for(point))
                for point in session.points
            ],
            rounds=[
                SampleRoundOut.from_round(sample_round, sample_round is latest)
                for sample_round in session.rounds
            ],
        )


class PointIssuesOut(BaseModel):
    point_key: str
    pom_code: str
    errors: dict[str, str]
    warnings: list[str]


class SaveOut(BaseModel):
    saved: bool
    issues: list[PointIssuesOut]
    warnings: list[str]
    before: dict[str, Any] | None = None
    after: dict[str, Any] | None = None

    @classmethod
    def from_result(cls, result: SaveResult) -> "SaveOut":
        return cls(
            saved=result.saved,
            issues=[
                PointIssuesOut(
                    point_key=issue.point_key,
                    pom_code=issue.pom_code,
                    errors=issue.errors,
                    warnings=issue.warnings,
                )
                for issue in result.issues
            ],
            warnings=result.warnings,
            before=result.before,
            after=result.after,
        )
