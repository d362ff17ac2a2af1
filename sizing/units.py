"""Measurement units and the numeric value codec.

Metric units are plain decimals displayed with at most two decimal places.
Inch units are stored as decimals but displayed, and accepted, as whole plus
fraction (``12 5/16``) at the unit's fixed denominator. Parsed inch values are
snapped to that denominator so that ``parse_value(format_value(v, u), u)``
reproduces ``v`` within the unit's resolution.
"""

from __future__ import annotations

import math
import re
from enum import Enum
from typing import Any


class MeasurementUnit(str, Enum):
    MM = "mm"
    CM = "cm"
    INCH_10 = "inch-10"
    INCH_16 = "inch-16"
    INCH_32 = "inch-32"

    @property
    def denominator(self) -> int | None:
        """Fraction denominator for inch units, ``None`` for metric units."""
        return _DENOMINATORS.get(self)

    @property
    def is_fractional(self) -> bool:
        return self.denominator is not None

    @property
    def resolution(self) -> float:
        denominator = self.denominator
        return 1 / denominator if denominator else 0.01

    @property
    def suffix(self) -> str:
        return "in" if self.is_fractional else self.value

    @classmethod
    def coerce(cls, value: Any, default: "MeasurementUnit | None" = None) -> "MeasurementUnit":
        """Resolve a raw unit value, falling back to ``default`` (or cm) when unknown."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            for unit in cls:
                if unit.value == key:
                    return unit
        return default or DEFAULT_UNIT


_DENOMINATORS = {
    MeasurementUnit.INCH_10: 10,
    MeasurementUnit.INCH_16: 16,
    MeasurementUnit.INCH_32: 32,
}

DEFAULT_UNIT = MeasurementUnit.CM
DEFAULT_TOLERANCE = 1.0

_DECIMAL_RE = re.compile(r"^(?:\d+(?:\.\d*)?|\.\d+)$")
_FRACTION_RE = re.compile(r"^(\d+)/(\d+)$")
_MIXED_RE = re.compile(r"^(\d+)\s+(\d+)/(\d+)$")
_INCOMPLETE_RE = re.compile(r"^(?:|\.|\d+/|\d+\s+|\d+\s+\d+/?)$")
_TOLERANCE_RE = re.compile(r"-?\d+(?:\.\d+)?")


def clean_number_text(text: str) -> str:
    """Trim and swap a decimal comma for a dot."""
    return text.strip().replace(",", ".")


def _split_sign(text: str) -> tuple[int, str]:
    if text[:1] == "-":
        return -1, text[1:].strip()
    if text[:1] in ("+", "±"):
        return 1, text[1:].strip()
    return 1, text


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def is_incomplete(text: str) -> bool:
    """True when ``text`` looks like a value that is still being typed (``"12 1/"``)."""
    _, body = _split_sign(clean_number_text(text))
    return bool(_INCOMPLETE_RE.match(body))


def _parse_magnitude(body: str, fractional: bool) -> float | None:
    if _DECIMAL_RE.match(body):
        return float(body)
    if not fractional:
        return None

    mixed = _MIXED_RE.match(body)
    if mixed:
        whole, numerator, denominator = (int(part) for part in mixed.groups())
        if denominator == 0:
            return None
        return whole + numerator / denominator

    fraction = _FRACTION_RE.match(body)
    if fraction:
        numerator, denominator = (int(part) for part in fraction.groups())
        if denominator == 0:
            return None
        return numerator / denominator
    return None


def snap(value: float, unit: MeasurementUnit) -> float:
    """Snap ``value`` to the nearest representable fraction of an inch unit."""
    denominator = unit.denominator
    if not denominator:
        return value
    sign = -1 if value < 0 else 1
    return sign * _round_half_up(abs(value) * denominator) / denominator


def parse_value(text: Any, unit: MeasurementUnit = DEFAULT_UNIT) -> float | None:
    """Parse user input into a decimal value.

    Returns ``None`` for empty, incomplete or malformed input instead of raising,
    so editors can keep the raw keystrokes around.
    """
    if isinstance(text, bool):
        return None
    if isinstance(text, (int, float)):
        return float(text) if math.isfinite(text) else None
    if not isinstance(text, str):
        return None

    sign, body = _split_sign(clean_number_text(text))
    if not body or _INCOMPLETE_RE.match(body):
        return None

    magnitude = _parse_magnitude(body, unit.is_fractional)
    if magnitude is None:
        return None
    return snap(sign * magnitude, unit)


def format_value(value: float | None, unit: MeasurementUnit = DEFAULT_UNIT) -> str:
    """Render a decimal value in the unit's display notation."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""

    sign = "-" if value < 0 else ""
    magnitude = abs(value)
    denominator = unit.denominator

    if not denominator:
        text = f"{magnitude:.2f}".rstrip("0").rstrip(".")
        return text if text == "0" else f"{sign}{text}"

    ticks = _round_half_up(magnitude * denominator)
    if ticks == 0:
        return "0"
    whole, numerator = divmod(ticks, denominator)
    if numerator == 0:
        return f"{sign}{whole}"

    divisor = math.gcd(numerator, denominator)
    fraction = f"{numerator // divisor}/{denominator // divisor}"
    if whole == 0:
        return f"{sign}{fraction}"
    return f"{sign}{whole} {fraction}"


def format_jump(value: float | None, unit: MeasurementUnit = DEFAULT_UNIT) -> str:
    """Render a grading increment with an explicit sign (``+3``, ``-1 1/2``, ``0``)."""
    if value is None:
        return ""
    text = format_value(abs(value), unit)
    if text in ("", "0"):
        return text
    return f"{'-' if value < 0 else '+'}{text}"


def parse_tolerance(value: Any) -> float:
    """Read a tolerance, accepting legacy strings such as ``"±1.0 cm"``."""
    if isinstance(value, bool):
        return DEFAULT_TOLERANCE
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else DEFAULT_TOLERANCE
    if isinstance(value, str):
        match = _TOLERANCE_RE.search(value.replace(",", "."))
        if match:
            return float(match.group(0))
    return DEFAULT_TOLERANCE


def format_tolerance(value: float, unit: MeasurementUnit = DEFAULT_UNIT) -> str:
    return f"±{format_value(abs(value), unit)} {unit.suffix}"


__all__ = [
    "DEFAULT_TOLERANCE",
    "DEFAULT_UNIT",
    "MeasurementUnit",
    "clean_number_text",
    "format_jump",
    "format_tolerance",
    "format_value",
    "is_incomplete",
    "parse_tolerance",
    "parse_value",
    "snap",
]
