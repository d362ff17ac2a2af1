from sizing.model import MeasurementPoint
from sizing.progression import (
    ProgressionMode,
    validate_point,
    validate_points,
    validate_progression,
)

ORDER = ["S", "M", "L", "XL"]


def test_increasing_row_is_valid():
    result = validate_progression({"S": 49, "M": 52, "L": 55}, ORDER)
    assert result.is_valid
    assert result.errors == []
    assert result.warnings == []


def test_fewer_than_two_values_is_trivially_valid():
    assert validate_progression({"M": 52}, ORDER).is_valid
    assert validate_progression({}, ORDER).is_valid


def test_decrease_is_an_error_in_strict_mode():
    result = validate_progression({"S": 50, "M": 49}, ORDER)
    assert not result.is_valid
    assert result.errors == ["Size progression error: S → M: decreased by 1cm"]


def test_decrease_is_a_warning_in_warn_mode():
    result = validate_progression({"S": 50, "M": 49}, ORDER, ProgressionMode.WARN)
    assert result.is_valid
    assert result.warnings == ["Size progression warning: S → M: decreased by 1cm"]


def test_equal_and_tiny_steps_warn():
    result = validate_progression({"S": 50, "M": 50, "L": 50.2}, ORDER)
    assert result.is_valid
    assert "S and M have the same value" in result.warnings
    assert "Very small progression between M and L (0.2cm)" in result.warnings


def test_non_positive_values_are_errors():
    result = validate_progression({"S": 0, "M": 10}, ORDER)
    assert "All measurements must be greater than 0" in result.errors


def test_gaps_compare_neighbouring_graded_sizes():
    result = validate_progression({"S": 49, "XL": 55}, ORDER)
    assert result.is_valid
    assert result.warnings == []


def test_mode_coerce():
    assert ProgressionMode.coerce("WARN") is ProgressionMode.WARN
    assert ProgressionMode.coerce("anything") is ProgressionMode.STRICT


def _point(**overrides):
    fields = {
        "pom_code": "CHEST",
        "pom_name": "Chest width",
        "sizes": {"S": 49.0, "M": 52.0, "L": 55.0},
        "base_size": "M",
    }
    fields.update(overrides)
    return MeasurementPoint(**fields)


def test_valid_point_has_no_issues():
    issues = validate_point(_point(), ORDER)
    assert issues.is_valid
    assert issues.errors == {}


def test_point_field_errors():
    point = _point(pom_code="c", pom_name="", minus_tolerance=-1, plus_tolerance=60, sizes={})
    issues = validate_point(point, ORDER)
    assert set(issues.errors) == {"pomCode", "pomName", "minusTolerance", "plusTolerance", "sizes"}
    assert issues.errors["pomCode"] == "POM Code must be at least 2 characters long"


def test_point_code_charset():
    issues = validate_point(_point(pom_code="CH EST"), ORDER)
    assert "pomCode" in issues.errors


def test_missing_base_value_is_an_error():
    issues = validate_point(_point(sizes={"S": 49.0, "L": 55.0}, base_size="M"), ORDER)
    assert issues.errors["baseSize"] == "Base size measurement value is required"


def test_progression_violation_blocks_point_in_strict_mode():
    point = _point(sizes={"S": 53.0, "M": 52.0})
    assert "sizes" in validate_point(point, ORDER).errors
    warn = validate_point(point, ORDER, ProgressionMode.WARN)
    assert warn.is_valid
    assert warn.warnings


def test_validate_points_reports_only_problem_points():
    good = _point()
    bad = _point(pom_code="WAIST", sizes={"S": 53.0, "M": 52.0})
    issues = validate_points([good, bad], ORDER)
    assert [issue.pom_code for issue in issues] == ["WAIST"]
