"""Pydantic schemas for sample rounds and their entries."""

from typing import Any

from pydantic import BaseModel, Field

from sizing.model import RequestedSource, SampleEntry, SampleField, SampleRound
from sizing.rounds import entry_complete, round_complete


class SampleRoundIn(BaseModel):
    name: str | None = None
    date: str | None = None
    reviewer: str = ""
    requested_source: RequestedSource | None = None
    overall_comments: str = ""

    def create_kwargs(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "date_value": self.date,
            "reviewer": self.reviewer,
            "requested_source": self.requested_source,
            "overall_comments": self.overall_comments,
        }


class SampleRoundUpdate(BaseModel):
    name: str | None = None
    date: str | None = None
    reviewer: str | None = None
    overall_comments: str | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class CellEditIn(BaseModel):
    """One size cell of a point's row in the editable round."""
    point_key: str
    field: SampleField
    size: str
    value: str = ""


class ReconcileOut(BaseModel):
    changed: list[str]


class SampleEntryOut(BaseModel):
    key: str
    point_key: str | None = None
    pom_code: str
    pom_name: str
    requested: dict[str, str] = Field(default_factory=dict)
    measured: dict[str, str] = Field(default_factory=dict)
    diff: dict[str, str] = Field(default_factory=dict)
    revised: dict[str, str] = Field(default_factory=dict)
    comments: dict[str, str] = Field(default_factory=dict)
    complete: bool

    @classmethod
    def from_entry(cls, entry: SampleEntry) -> "SampleEntryOut":
        return cls(
            key=entry.key,
            point_key=entry.point_key,
            pom_code=entry.pom_code,
            pom_name=entry.pom_name,
            requested=dict(entry.requested),
            measured=dict(entry.measured),
            diff=dict(entry.diff),
            revised=dict(entry.revised),
            comments=dict(entry.comments),
            complete=entry_complete(entry),
        )


class SampleRoundOut(BaseModel):
    key: str
    id: str | None = None
    name: str
    date: str
    reviewer: str
    requested_source: RequestedSource
    overall_comments: str
    editable: bool
    complete: bool
    entries: list[SampleEntryOut]

    @classmethod
    def from_round(cls, sample_round: SampleRound, editable: bool) -> "SampleRoundOut":
        return cls(
            key=sample_round.key,
            id=sample_round.id,
            name=sample_round.name,
            date=sample_round.date,
            reviewer=sample_round.reviewer,
            requested_source=sample_round.requested_source,
            overall_comments=sample_round.overall_comments,
            editable=editable,
            complete=round_complete(sample_round),
            entries=[SampleEntryOut.from_entry(entry) for entry in sample_round.entries],
        )
