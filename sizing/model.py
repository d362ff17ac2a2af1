"""In-memory types for the working measurement specification."""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from sizing.units import DEFAULT_TOLERANCE, DEFAULT_UNIT, MeasurementUnit


class RequestedSource(str, Enum):
    """Where a new round takes its requested values from."""

    ORIGINAL = "original"
    PREVIOUS = "previous"

    @classmethod
    def coerce(cls, value: object) -> "RequestedSource":
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.strip().lower() == cls.PREVIOUS.value:
            return cls.PREVIOUS
        return cls.ORIGINAL


class SampleField(str, Enum):
    """Per-size value maps of a sample entry that users edit."""

    MEASURED = "measured"
    DIFF = "diff"
    REVISED = "revised"
    COMMENTS = "comments"


VALUE_MAPS = ("requested", "measured", "diff", "revised", "comments")


def new_key(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


@dataclass
class MeasurementPoint:
    """A point of measure (POM) and its size-by-size values.

    ``key`` is minted on the client and never changes; ``id`` is whatever the
    persistence collaborator assigned, if anything. A size missing from
    ``sizes`` is "not specified", not zero.
    """

    pom_code: str
    pom_name: str
    key: str = field(default_factory=lambda: new_key("pom"))
    id: str | None = None
    minus_tolerance: float = DEFAULT_TOLERANCE
    plus_tolerance: float = DEFAULT_TOLERANCE
    sizes: dict[str, float] = field(default_factory=dict)
    base_size: str | None = None
    measurement_method: str = ""
    notes: str = ""
    is_active: bool = True

    @property
    def link_id(self) -> str:
        """Identifier written into sample entries when serialising."""
        return self.id or self.key

    @property
    def base_value(self) -> float | None:
        if self.base_size is None:
            return None
        return self.sizes.get(self.base_size)


@dataclass
class SampleEntry:
    """One point's row in a sample round.

    All value maps are string-valued and share one key set; a size with no
    value holds ``""``.
    """

    point_key: str | None
    pom_code: str = ""
    pom_name: str = ""
    key: str = field(default_factory=lambda: new_key("entry"))
    id: str | None = None
    requested: dict[str, str] = field(default_factory=dict)
    measured: dict[str, str] = field(default_factory=dict)
    diff: dict[str, str] = field(default_factory=dict)
    revised: dict[str, str] = field(default_factory=dict)
    comments: dict[str, str] = field(default_factory=dict)

    def value_map(self, name: str) -> dict[str, str]:
        if name not in VALUE_MAPS:
            raise ValueError(f"Unknown sample value map: {name}")
        return getattr(self, name)

    def size_keys(self) -> list[str]:
        keys: list[str] = []
        for name in VALUE_MAPS:
            for size in self.value_map(name):
                if size not in keys:
                    keys.append(size)
        return keys

    def normalize(self) -> None:
        """Give every value map the same key set, filling gaps with ``""``."""
        keys = self.size_keys()
        for name in VALUE_MAPS:
            values = self.value_map(name)
            for size in keys:
                values.setdefault(size, "")


@dataclass
class SampleRound:
    name: str
    key: str = field(default_factory=lambda: new_key("round"))
    id: str | None = None
    date: str = field(default_factory=lambda: date.today().isoformat())
    reviewer: str = ""
    requested_source: RequestedSource = RequestedSource.ORIGINAL
    overall_comments: str = ""
    entries: list[SampleEntry] = field(default_factory=list)


@dataclass
class MeasurementSpec:
    """The working measurement specification of one techpack."""

    id: str | None
    size_range: list[str]
    base_size: str
    unit: MeasurementUnit = DEFAULT_UNIT
    gender: str = "Unisex"
    points: list[MeasurementPoint] = field(default_factory=list)
    rounds: list[SampleRound] = field(default_factory=list)

    def point_by_key(self, key: str) -> MeasurementPoint | None:
        return next((point for point in self.points if point.key == key), None)

    def snapshot(self) -> "MeasurementSpec":
        return copy.deepcopy(self)
