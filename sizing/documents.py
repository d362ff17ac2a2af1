"""Converting persisted techpack documents to and from the working spec."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sizing import logger
from sizing.config import Settings, get_settings
from sizing.model import (
    MeasurementPoint,
    MeasurementSpec,
    RequestedSource,
    SampleEntry,
    SampleRound,
    new_key,
)
from sizing.points import MeasurementPointRepository
from sizing.presets import DEFAULT_GENDER, default_size_range, resolve_base_size
from sizing.rounds import SampleRoundEngine
from sizing.schemas import EntryDocument, PointDocument, RoundDocument, SpecDocument
from sizing.units import MeasurementUnit


def _size_range(doc: SpecDocument, gender: str) -> list[str]:
    configured = doc.measurement_size_range or default_size_range(gender)
    size_range: list[str] = []
    seen: set[str] = set()
    for label in configured:
        if label.casefold() not in seen:
            seen.add(label.casefold())
            size_range.append(label)
    # Sizes graded on points but missing from the range are kept, not dropped.
    for point in doc.measurements:
        for label in point.sizes:
            if label and label.casefold() not in seen:
                seen.add(label.casefold())
                size_range.append(label)
    return size_range


def _point(doc: PointDocument, labels: Mapping[str, str]) -> MeasurementPoint:
    """Build a point whose size labels use the range's own spelling."""
    sizes = {labels.get(size.casefold(), size): value for size, value in doc.sizes.items()}
    base_size = labels.get(doc.base_size.casefold(), doc.base_size) if doc.base_size else None
    return MeasurementPoint(
        pom_code=doc.pom_code.strip(),
        pom_name=doc.pom_name.strip(),
        key=doc.client_key or new_key("pom"),
        id=doc.id,
        minus_tolerance=doc.tolerance_minus,
        plus_tolerance=doc.tolerance_plus,
        sizes=sizes,
        base_size=base_size,
        measurement_method=doc.measurement_method,
        notes=doc.notes,
        is_active=doc.is_active,
    )


def _entry(doc: EntryDocument, links: Mapping[str, str]) -> SampleEntry:
    entry = SampleEntry(
        point_key=links.get(doc.measurement_id) if doc.measurement_id else None,
        pom_code=doc.pom_code.strip(),
        pom_name=doc.pom_name,
        key=doc.client_key or new_key("entry"),
        id=doc.id,
        requested=dict(doc.requested),
        measured=dict(doc.measured),
        diff=dict(doc.diff),
        revised=dict(doc.revised),
        comments=dict(doc.comments),
    )
    entry.normalize()
    return entry


def _round(doc: RoundDocument, position: int, links: Mapping[str, str]) -> SampleRound:
    return SampleRound(
        name=doc.name.strip() or f"Sample Round {position + 1}",
        key=doc.client_key or new_key("round"),
        id=doc.id,
        date=doc.measurement_date,
        reviewer=doc.reviewer,
        requested_source=RequestedSource.coerce(doc.requested_source),
        overall_comments=doc.overall_comments,
        entries=[_entry(entry, links) for entry in doc.measurements],
    )


def load_spec(raw: Mapping[str, Any] | None, settings: Settings | None = None) -> MeasurementSpec:
    """Normalise a persisted document into a working specification.

    Missing unit, size range and base size fall back to the settings and the
    article gender. Every point, round and entry gets a client key, and sample
    entries are re-linked to their points.
    """
    settings = settings or get_settings()
    raw = dict(raw or {})
    unit = MeasurementUnit.coerce(raw.get("measurementUnit"), settings.default_unit)
    doc = SpecDocument.model_validate(raw, context={"unit": unit})

    gender = str(doc.article_info.get("gender") or DEFAULT_GENDER)
    size_range = _size_range(doc, gender)
    labels = {label.casefold(): label for label in size_range}
    preferred_base = doc.measurement_base_size
    if preferred_base:
        preferred_base = labels.get(preferred_base.casefold(), preferred_base)
    spec = MeasurementSpec(
        id=doc.id,
        size_range=size_range,
        base_size=resolve_base_size(
            size_range, preferred=preferred_base, fallback=settings.default_base_size
        ),
        unit=unit,
        gender=gender,
    )

    repository = MeasurementPointRepository(spec, default_base_size=settings.default_base_size)
    for point_doc in doc.measurements:
        spec.points.append(repository.normalize(_point(point_doc, labels)))

    links: dict[str, str] = {}
    for point in spec.points:
        links[point.key] = point.key
        if point.id:
            links[point.id] = point.key

    ordered = sorted(
        enumerate(doc.sample_measurement_rounds),
        key=lambda item: (item[1].order if item[1].order is not None else item[0], item[0]),
    )
    spec.rounds = [
        _round(round_doc, position, links) for position, (_, round_doc) in enumerate(ordered)
    ]
    SampleRoundEngine(spec).sync_entries()

    logger.debug(
        "Loaded specification %s: %s points, %s rounds, unit %s",
        spec.id,
        len(spec.points),
        len(spec.rounds),
        spec.unit.value,
    )
    return spec


def _values(values: Mapping[str, str]) -> dict[str, str]:
    return {size: value for size, value in values.items() if value is not None and str(value).strip()}


def _dump_point(point: MeasurementPoint, unit: MeasurementUnit) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "clientKey": point.key,
        "pomCode": point.pom_code,
        "pomName": point.pom_name,
        "toleranceMinus": point.minus_tolerance,
        "tolerancePlus": point.plus_tolerance,
        "sizes": dict(point.sizes),
        "baseSize": point.base_size,
        "unit": unit.value,
        "measurementMethod": point.measurement_method,
        "notes": point.notes,
        "isActive": point.is_active,
    }
    if point.id:
        payload["id"] = point.id
    return payload


def _dump_entry(entry: SampleEntry, spec: MeasurementSpec) -> dict[str, Any]:
    point = spec.point_by_key(entry.point_key) if entry.point_key else None
    payload: dict[str, Any] = {
        "clientKey": entry.key,
        "measurementId": point.link_id if point is not None else None,
        "pomCode": entry.pom_code,
        "pomName": entry.pom_name,
        "requested": _values(entry.requested),
    }
    for name in ("measured", "diff", "revised", "comments"):
        values = _values(entry.value_map(name))
        if values:
            payload[name] = values
    if entry.id:
        payload["id"] = entry.id
    return payload


def _dump_round(sample_round: SampleRound, order: int, spec: MeasurementSpec) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "clientKey": sample_round.key,
        "name": sample_round.name,
        "measurementDate": sample_round.date,
        "reviewer": sample_round.reviewer or "",
        "requestedSource": sample_round.requested_source.value,
        "overallComments": sample_round.overall_comments,
        "order": order,
        "measurements": [_dump_entry(entry, spec) for entry in sample_round.entries],
    }
    if sample_round.id:
        payload["id"] = sample_round.id
    return payload


def dump_spec(spec: MeasurementSpec) -> dict[str, Any]:
    """Serialise the working specification into the persisted document shape."""
    payload: dict[str, Any] = {
        "measurementUnit": spec.unit.value,
        "measurementSizeRange": list(spec.size_range),
        "measurementBaseSize": spec.base_size,
        "measurements": [_dump_point(point, spec.unit) for point in spec.points],
        "sampleMeasurementRounds": [
            _dump_round(sample_round, order, spec) for order, sample_round in enumerate(spec.rounds)
        ],
    }
    if spec.id:
        payload["id"] = spec.id
    return payload
