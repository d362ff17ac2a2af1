import pytest

from sizing.grading import (
    accept_revisions,
    apply_jumps,
    derive_jumps,
    rebase,
    regrade_base_value,
    regrade_jump,
)
from sizing.units import MeasurementUnit

ORDER = ["XS", "S", "M", "L", "XL"]


def _row():
    return {"S": 49.0, "M": 52.0, "L": 55.0}


def test_derive_jumps_relative_to_base():
    assert derive_jumps(_row(), "M") == {"S": "-3", "L": "+3"}
    assert derive_jumps({"S": 12.0, "M": 12.5}, "S", MeasurementUnit.INCH_16) == {"M": "+1/2"}


def test_derive_jumps_without_base_value():
    assert derive_jumps({"S": 49.0}, "M") == {}
    assert derive_jumps({}, None) == {}


def test_apply_jumps_omits_ungraded_sizes():
    row = apply_jumps("M", 52.0, {"S": "-3", "L": "+3", "XL": ""}, ORDER)
    assert row == {"S": 49.0, "M": 52.0, "L": 55.0}
    assert list(row) == ["S", "M", "L"]


def test_apply_jumps_accepts_fraction_jumps():
    row = apply_jumps("M", 20.0, {"L": "+1 1/2"}, ORDER, MeasurementUnit.INCH_16)
    assert row == {"M": 20.0, "L": 21.5}


def test_apply_jumps_rounds_float_noise():
    row = apply_jumps("M", 10.1, {"L": "+0.2"}, ORDER)
    assert row["L"] == 10.3


def test_base_value_change_carries_siblings():
    row = regrade_base_value(_row(), "M", 54.0, ORDER)
    assert row == {"S": 51.0, "M": 54.0, "L": 57.0}


def test_jump_change_touches_only_that_size():
    row = regrade_jump(_row(), "M", "L", "+4", ORDER)
    assert row == {"S": 49.0, "M": 52.0, "L": 56.0}


def test_empty_jump_ungrades_size():
    row = regrade_jump(_row(), "M", "L", "", ORDER)
    assert row == {"S": 49.0, "M": 52.0}


def test_base_size_has_no_jump():
    with pytest.raises(ValueError):
        regrade_jump(_row(), "M", "M", "+1", ORDER)


def test_rebase_preserves_values():
    assert rebase(_row(), "S", ORDER) == _row()
    assert derive_jumps(rebase(_row(), "S", ORDER), "S") == {"M": "+3", "L": "+6"}


def test_accepting_base_revision_regrades_siblings():
    row = accept_revisions(_row(), "M", {"M": 54.0}, ORDER)
    assert row == {"S": 51.0, "M": 54.0, "L": 57.0}


def test_accepting_non_base_revision_changes_only_that_size():
    row = accept_revisions(_row(), "M", {"L": 58.0}, ORDER)
    assert row == {"S": 49.0, "M": 52.0, "L": 58.0}


def test_accepting_base_and_sibling_revisions_together():
    row = accept_revisions(_row(), "M", {"M": 54.0, "L": 58.0}, ORDER)
    assert row == {"S": 51.0, "M": 54.0, "L": 58.0}


def test_accepting_revisions_without_base_value_merges():
    assert accept_revisions({}, None, {"M": 50.0}, ORDER) == {"M": 50.0}


@pytest.mark.parametrize(
    ("unit", "sizes"),
    [
        (MeasurementUnit.CM, {"XS": 46.5, "S": 49.25, "M": 52.4, "L": 55.75, "XL": 58.1}),
        (MeasurementUnit.MM, {"S": 492.5, "M": 524.0, "L": 557.5}),
        (MeasurementUnit.INCH_10, {"S": 10.3, "M": 12.5, "L": 14.7}),
        (
            MeasurementUnit.INCH_16,
            {"XS": 17.125, "S": 18.5625, "M": 19.75, "L": 21.0625, "XL": 22.375},
        ),
        (MeasurementUnit.INCH_32, {"S": 30.03125, "M": 31.5, "L": 33.09375}),
    ],
)
def test_derived_jumps_rebuild_the_row(unit, sizes):
    jumps = derive_jumps(sizes, "M", unit)
    rebuilt = apply_jumps("M", sizes["M"], jumps, ORDER, unit)
    assert list(rebuilt) == list(sizes)
    assert rebuilt == pytest.approx(sizes)
