"""Grading math: deriving jumps from a size row and regrading rows from jumps.

A row is anchored on its base size. Every other size is ``base + jump``.
Sizes without a jump are left out of the row ("not yet graded") rather than
being filled with zero. Computed values are rounded to ``GRADING_DECIMALS``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from sizing.units import DEFAULT_UNIT, MeasurementUnit, format_jump, parse_value

GRADING_DECIMALS = 4

JumpMap = Mapping[str, "str | float | None"]


def _round(value: float) -> float:
    return round(value, GRADING_DECIMALS)


def _ordered(sizes: Mapping[str, float], size_order: Iterable[str]) -> dict[str, float]:
    return {size: sizes[size] for size in size_order if sizes.get(size) is not None}


def _numeric_jumps(sizes: Mapping[str, float], base_size: str | None) -> dict[str, float]:
    if not base_size or sizes.get(base_size) is None:
        return {}
    base_value = sizes[base_size]
    return {
        size: value - base_value
        for size, value in sizes.items()
        if size != base_size and value is not None
    }


def derive_jumps(
    sizes: Mapping[str, float],
    base_size: str | None,
    unit: MeasurementUnit = DEFAULT_UNIT,
) -> dict[str, str]:
    """Express every non-base value as a signed jump from the base value."""
    return {
        size: format_jump(_round(delta), unit)
        for size, delta in _numeric_jumps(sizes, base_size).items()
    }


def apply_jumps(
    base_size: str | None,
    base_value: float | None,
    jumps: JumpMap,
    size_order: Iterable[str],
    unit: MeasurementUnit = DEFAULT_UNIT,
) -> dict[str, float]:
    """Rebuild a size row from a base value and per-size jumps.

    Sizes in ``size_order`` whose jump is missing or unparseable are omitted.
    """
    if not base_size or base_value is None:
        return {}

    order = list(size_order)
    if base_size not in order:
        order.insert(0, base_size)

    row: dict[str, float] = {}
    for size in order:
        if size == base_size:
            row[size] = _round(base_value)
            continue
        delta = parse_value(jumps.get(size), unit)
        if delta is None:
            continue
        row[size] = _round(base_value + delta)
    return row


def regrade_base_value(
    sizes: Mapping[str, float],
    base_size: str | None,
    base_value: float | None,
    size_order: Iterable[str],
    unit: MeasurementUnit = DEFAULT_UNIT,
) -> dict[str, float]:
    """Move the base value and carry every graded size along with it."""
    jumps = _numeric_jumps(sizes, base_size)
    return apply_jumps(base_size, base_value, jumps, size_order, unit)


def regrade_jump(
    sizes: Mapping[str, float],
    base_size: str | None,
    size: str,
    jump: str | float | None,
    size_order: Iterable[str],
    unit: MeasurementUnit = DEFAULT_UNIT,
) -> dict[str, float]:
    """Set one size's jump; only that size's value changes.

    An empty jump removes the size from the row.
    """
    if size == base_size:
        raise ValueError("The base size has no jump; edit the base value instead")

    row = dict(sizes)
    base_value = sizes.get(base_size) if base_size else None
    delta = parse_value(jump, unit)
    if base_value is None or delta is None:
        row.pop(size, None)
    else:
        row[size] = _round(base_value + delta)
    return _ordered(row, size_order)


def rebase(
    sizes: Mapping[str, float],
    new_base: str,
    size_order: Iterable[str],
    unit: MeasurementUnit = DEFAULT_UNIT,
) -> dict[str, float]:
    """Re-anchor a row on ``new_base``; the per-size values are preserved."""
    order = list(size_order)
    if sizes.get(new_base) is None:
        return _ordered(sizes, order)
    jumps = _numeric_jumps(sizes, new_base)
    return apply_jumps(new_base, sizes[new_base], jumps, order, unit)


def accept_revisions(
    sizes: Mapping[str, float],
    base_size: str | None,
    revisions: Mapping[str, float],
    size_order: Iterable[str],
    unit: MeasurementUnit = DEFAULT_UNIT,
) -> dict[str, float]:
    """Fold accepted sample revisions into a size row.

    Jumps come from the row as it was before the update. A revised base value
    regrades every sibling by those jumps; a revised non-base value only
    replaces that size's jump.
    """
    order = list(size_order)
    if not revisions:
        return _ordered(sizes, order)

    base_value = revisions.get(base_size) if base_size else None
    if base_value is None and base_size:
        base_value = sizes.get(base_size)
    if base_value is None:
        merged = {**sizes, **revisions}
        return _ordered(merged, order)

    jumps: dict[str, float | str | None] = dict(_numeric_jumps(sizes, base_size))
    for size, value in revisions.items():
        if size != base_size:
            jumps[size] = value - base_value
    return apply_jumps(base_size, base_value, jumps, order, unit)
