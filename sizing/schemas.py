"""Pydantic schemas for the persisted techpack measurement document.

Documents coming back from the persistence collaborator may be missing
fields or carry legacy shapes. Every optional field gets an explicit default
here, so engine code never has to guess.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from sizing import logger
from sizing.units import MeasurementUnit, parse_tolerance, parse_value


def _text(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return ""
        return ("%f" % value).rstrip("0").rstrip(".")
    return str(value)


class DocumentModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PointDocument(DocumentModel):
    id: str | None = Field(None, validation_alias=AliasChoices("id", "_id"))
    client_key: str | None = Field(None, alias="clientKey")
    pom_code: str = Field("", alias="pomCode")
    pom_name: str = Field("", alias="pomName")
    tolerance_minus: float = Field(
        1.0, validation_alias=AliasChoices("toleranceMinus", "minusTolerance")
    )
    tolerance_plus: float = Field(
        1.0, validation_alias=AliasChoices("tolerancePlus", "plusTolerance")
    )
    sizes: dict[str, float] = Field(default_factory=dict)
    base_size: str | None = Field(None, alias="baseSize")
    unit: str | None = None
    measurement_method: str = Field("", alias="measurementMethod")
    notes: str = ""
    is_active: bool = Field(True, alias="isActive")

    @field_validator("id", "client_key", "base_size", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> str | None:
        text = _text(value).strip()
        return text or None

    @field_validator("pom_code", "pom_name", "measurement_method", "notes", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return _text(value)

    @field_validator("tolerance_minus", "tolerance_plus", mode="before")
    @classmethod
    def _tolerance(cls, value: Any) -> float:
        return parse_tolerance(value)

    @field_validator("is_active", mode="before")
    @classmethod
    def _active(cls, value: Any) -> bool:
        return value is not False

    @field_validator("sizes", mode="before")
    @classmethod
    def _sizes(cls, value: Any, info: ValidationInfo) -> dict[str, float]:
        if not isinstance(value, dict):
            return {}
        # Text values are read in the document unit ("12 1/2" for inch units).
        unit = MeasurementUnit.coerce((info.context or {}).get("unit"))
        sizes: dict[str, float] = {}
        for size, raw in value.items():
            parsed = parse_value(raw, unit)
            if parsed is not None:
                sizes[str(size).strip()] = parsed
            elif _text(raw).strip():
                logger.warning("Dropping unreadable %s value for size %s: %r", unit.value, size, raw)
        return sizes


class EntryDocument(DocumentModel):
    id: str | None = Field(None, validation_alias=AliasChoices("id", "_id"))
    client_key: str | None = Field(None, alias="clientKey")
    measurement_id: str | None = Field(None, alias="measurementId")
    pom_code: str = Field("", alias="pomCode")
    pom_name: str = Field("", validation_alias=AliasChoices("pomName", "point"))
    requested: dict[str, str] = Field(default_factory=dict)
    measured: dict[str, str] = Field(default_factory=dict)
    diff: dict[str, str] = Field(default_factory=dict)
    revised: dict[str, str] = Field(default_factory=dict)
    comments: dict[str, str] = Field(default_factory=dict)

    @field_validator("id", "client_key", "measurement_id", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> str | None:
        text = _text(value).strip()
        return text or None

    @field_validator("pom_code", "pom_name", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return _text(value)

    @field_validator("requested", "measured", "diff", "revised", "comments", mode="before")
    @classmethod
    def _value_map(cls, value: Any) -> dict[str, str]:
        if not isinstance(value, dict):
            return {}
        return {str(size).strip(): _text(raw) for size, raw in value.items()}


class RoundDocument(DocumentModel):
    id: str | None = Field(None, validation_alias=AliasChoices("id", "_id"))
    client_key: str | None = Field(None, alias="clientKey")
    name: str = ""
    measurement_date: str = Field("", validation_alias=AliasChoices("measurementDate", "date"))
    reviewer: str = ""
    requested_source: str = Field("original", alias="requestedSource")
    overall_comments: str = Field("", alias="overallComments")
    order: int | None = None
    measurements: list[EntryDocument] = Field(default_factory=list)

    @field_validator("id", "client_key", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> str | None:
        text = _text(value).strip()
        return text or None

    @field_validator("name", "measurement_date", "reviewer", "overall_comments", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return _text(value)

    @field_validator("requested_source", mode="before")
    @classmethod
    def _source(cls, value: Any) -> str:
        return _text(value) or "original"

    @field_validator("measurements", mode="before")
    @classmethod
    def _entries(cls, value: Any) -> list[Any]:
        return value if isinstance(value, list) else []


class SpecDocument(DocumentModel):
    id: str | None = Field(None, validation_alias=AliasChoices("id", "_id"))
    measurement_unit: str | None = Field(None, alias="measurementUnit")
    measurement_size_range: list[str] = Field(default_factory=list, alias="measurementSizeRange")
    measurement_base_size: str | None = Field(None, alias="measurementBaseSize")
    article_info: dict[str, Any] = Field(default_factory=dict, alias="articleInfo")
    measurements: list[PointDocument] = Field(default_factory=list)
    sample_measurement_rounds: list[RoundDocument] = Field(
        default_factory=list, alias="sampleMeasurementRounds"
    )

    @field_validator("id", "measurement_unit", "measurement_base_size", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> str | None:
        text = _text(value).strip()
        return text or None

    @field_validator("measurement_size_range", mode="before")
    @classmethod
    def _size_range(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [_text(size).strip() for size in value if _text(size).strip()]

    @field_validator("article_info", mode="before")
    @classmethod
    def _article_info(cls, value: Any) -> dict[str, Any]:
        return value if isinstance(value, dict) else {}

    @field_validator("measurements", "sample_measurement_rounds", mode="before")
    @classmethod
    def _list(cls, value: Any) -> list[Any]:
        return value if isinstance(value, list) else []
