"""Size chart export and import as CSV."""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from sizing import logger
from sizing.model import MeasurementPoint, MeasurementSpec
from sizing.units import MeasurementUnit, format_value, parse_tolerance, parse_value

LEADING_COLUMNS = ["POM Code", "POM Name", "Minus Tolerance", "Plus Tolerance", "Base Size"]
TRAILING_COLUMNS = ["Measurement Method", "Notes"]


def normalize_header(header: str) -> str:
    """Normalize a CSV header by lower-casing and replacing whitespace with underscores."""

    return "_".join(str(header).strip().lower().split())


def chart_frame(spec: MeasurementSpec) -> pd.DataFrame:
    """One row per point, one column per size, values formatted in the specification's unit."""
    unit = spec.unit
    rows = []
    for point in spec.points:
        row = {
            "POM Code": point.pom_code,
            "POM Name": point.pom_name,
            "Minus Tolerance": format_value(point.minus_tolerance, unit),
            "Plus Tolerance": format_value(point.plus_tolerance, unit),
            "Base Size": point.base_size or "",
        }
        for size in spec.size_range:
            row[size] = format_value(point.sizes.get(size), unit)
        row["Measurement Method"] = point.measurement_method
        row["Notes"] = point.notes
        rows.append(row)
    columns = [*LEADING_COLUMNS, *spec.size_range, *TRAILING_COLUMNS]
    return pd.DataFrame(rows, columns=columns)


def write_chart_csv(spec: MeasurementSpec, output_path: Path) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    frame = chart_frame(spec)
    frame.to_csv(output_path, index=False)
    logger.info("Wrote %s measurement points to %s", len(frame), output_path)
    return output_path


def read_chart_csv(
    csv_path: Path,
    size_range: list[str],
    unit: MeasurementUnit,
) -> list[MeasurementPoint]:
    """Read points from a chart CSV.

    Size columns are matched to ``size_range`` case-insensitively; other
    columns are matched on their normalized header. Rows without a POM code
    are skipped.
    """
    logger.info("Loading chart CSV: %s", csv_path)
    frame = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
    field_map = {normalize_header(column): column for column in frame.columns}
    sizes_by_label = {size.casefold(): size for size in size_range}
    size_columns = {
        column: sizes_by_label[str(column).strip().casefold()]
        for column in frame.columns
        if str(column).strip().casefold() in sizes_by_label
    }

    def cell(record: dict, name: str) -> str:
        column = field_map.get(name)
        return str(record.get(column, "")).strip() if column is not None else ""

    points: list[MeasurementPoint] = []
    for record in frame.to_dict("records"):
        pom_code = cell(record, "pom_code").upper()
        if not pom_code:
            continue
        sizes = {}
        for column, size in size_columns.items():
            value = parse_value(str(record[column]), unit)
            if value is not None:
                sizes[size] = value
        points.append(
            MeasurementPoint(
                pom_code=pom_code,
                pom_name=cell(record, "pom_name"),
                minus_tolerance=parse_tolerance(parse_value(cell(record, "minus_tolerance"), unit)),
                plus_tolerance=parse_tolerance(parse_value(cell(record, "plus_tolerance"), unit)),
                sizes=sizes,
                base_size=cell(record, "base_size") or None,
                measurement_method=cell(record, "measurement_method"),
                notes=cell(record, "notes"),
            )
        )
    logger.info("Processed %s measurement points from %s", len(points), csv_path)
    return points
