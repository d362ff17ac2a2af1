"""Minimal Streamlit client for the Techpack Sizing API."""

from __future__ import annotations

import os
from typing import Any

import httpx
import pandas as pd
import streamlit as st

DEFAULT_API_BASE = "http://localhost:8000"
UNIT_OPTIONS = ["cm", "mm", "inch-10", "inch-16", "inch-32"]
CELL_FIELDS = ["measured", "revised", "comments"]


def get_api_base() -> str:
    """Prefer Streamlit secrets/env var overrides for API base URL."""
    # Streamlit raises when no secrets file exists, so guard the lookup.
    secret_value: str | None = None
    try:
        secret_value = st.secrets["api_base"]
    except Exception:  # noqa: BLE001 - secrets module raises custom errors
        secret_value = None

    env_value = os.environ.get("API_BASE_URL")
    return secret_value or env_value or DEFAULT_API_BASE


def _request_api(method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
    base_url = get_api_base().rstrip("/")
    url = f"{base_url}{path}"
    with httpx.Client(timeout=30, follow_redirects=True) as client:
        response = client.request(method, url, json=payload)
        response.raise_for_status()
        if response.status_code == 204:
            return None
        return response.json()


def _show_error(exc: httpx.HTTPError) -> None:
    detail = str(exc)
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            detail = exc.response.json().get("detail", detail)
        except ValueError:
            pass
    st.error(f"Request failed: {detail}")


def chart_table(spec: dict[str, Any]) -> pd.DataFrame:
    """Grading chart with formatted values, base column marked."""
    rows = []
    for point in spec["points"]:
        row = {"POM": point["pom_code"], "Name": point["pom_name"], "Tol": point["tolerance_label"]}
        for size in spec["size_range"]:
            label = f"{size} (base)" if size == spec["base_size"] else size
            if size == point["base_size"]:
                row[label] = point["display_sizes"].get(size, "")
            else:
                row[label] = point["jumps"].get(size, "")
        row["Progression"] = "; ".join(point["progression"]["errors"] + point["progression"]["warnings"])
        rows.append(row)
    return pd.DataFrame(rows)


def round_table(sample_round: dict[str, Any], size_range: list[str]) -> pd.DataFrame:
    rows = []
    for entry in sample_round["entries"]:
        for size in size_range:
            rows.append(
                {
                    "POM": entry["pom_code"],
                    "Size": size,
                    "Requested": entry["requested"].get(size, ""),
                    "Measured": entry["measured"].get(size, ""),
                    "Diff": entry["diff"].get(size, ""),
                    "Revised": entry["revised"].get(size, ""),
                    "Comments": entry["comments"].get(size, ""),
                }
            )
    return pd.DataFrame(rows)


def sidebar(spec_id: str, spec: dict[str, Any]) -> None:
    st.header("Size configuration")
    unit = st.selectbox("Unit", UNIT_OPTIONS, index=UNIT_OPTIONS.index(spec["unit"]))
    if unit != spec["unit"]:
        _request_api("PUT", f"/specs/{spec_id}/unit", {"unit": unit})
        st.rerun()

    sizes_text = st.text_input("Size range", ", ".join(spec["size_range"]))
    if st.button("Apply sizes", use_container_width=True):
        sizes = [size.strip() for size in sizes_text.split(",")]
        _request_api("PUT", f"/specs/{spec_id}/size-range", {"sizes": sizes})
        st.rerun()

    base_size = st.selectbox(
        "Base size", spec["size_range"], index=spec["size_range"].index(spec["base_size"])
    )
    if base_size != spec["base_size"]:
        _request_api("PUT", f"/specs/{spec_id}/base-size", {"size": base_size})
        st.rerun()

    st.divider()
    if st.button("Add common measurements", use_container_width=True):
        _request_api("POST", f"/specs/{spec_id}/points/common")
        st.rerun()
    if st.button("Save", type="primary", use_container_width=True):
        result = _request_api("POST", f"/specs/{spec_id}/save")
        if result["saved"]:
            st.success("Saved")
        for issue in result["issues"]:
            st.error(f"{issue['pom_code']}: {'; '.join(issue['errors'].values())}")
        for warning in result["warnings"]:
            st.warning(warning)


def grading_editor(spec_id: str, spec: dict[str, Any]) -> None:
    if not spec["points"]:
        st.info("No measurement points yet.")
        return
    labels = [f"{point['pom_code']} - {point['pom_name']}" for point in spec["points"]]
    index = st.selectbox("Point", range(len(labels)), format_func=lambda i: labels[i])
    point = spec["points"][index]

    base_value = st.text_input(
        f"Base value ({point['base_size']})", point["display_sizes"].get(point["base_size"], "")
    )
    if st.button("Set base value"):
        _request_api("PUT", f"/specs/{spec_id}/points/{index}/base-value", {"value": base_value})
        st.rerun()

    size = st.selectbox("Size", [s for s in spec["size_range"] if s != point["base_size"]])
    jump = st.text_input("Jump", point["jumps"].get(size, "") if size else "")
    if size and st.button("Set jump"):
        _request_api("PUT", f"/specs/{spec_id}/points/{index}/jumps/{size}", {"jump": jump})
        st.rerun()

    left, right = st.columns(2)
    if left.button("Duplicate point"):
        _request_api("POST", f"/specs/{spec_id}/points/{index}/duplicate")
        st.rerun()
    if right.button("Delete point"):
        _request_api("DELETE", f"/specs/{spec_id}/points/{index}")
        st.rerun()


def rounds_view(spec_id: str, spec: dict[str, Any]) -> None:
    if st.button("New sample round"):
        _request_api("POST", f"/specs/{spec_id}/rounds", {})
        st.rerun()

    for sample_round in reversed(spec["rounds"]):
        status = "editable" if sample_round["editable"] else "locked"
        with st.expander(f"{sample_round['name']} ({sample_round['date']}, {status})"):
            st.dataframe(round_table(sample_round, spec["size_range"]), use_container_width=True)
            if sample_round["editable"] and spec["points"]:
                codes = {p["pom_code"]: p["key"] for p in spec["points"]}
                code = st.selectbox("POM", list(codes), key=f"pom-{sample_round['key']}")
                size = st.selectbox("Size", spec["size_range"], key=f"size-{sample_round['key']}")
                field = st.selectbox("Field", CELL_FIELDS, key=f"field-{sample_round['key']}")
                value = st.text_input("Value", key=f"value-{sample_round['key']}")
                if st.button("Update cell", key=f"cell-{sample_round['key']}"):
                    _request_api(
                        "PUT",
                        f"/specs/{spec_id}/rounds/{sample_round['key']}/cells",
                        {"point_key": codes[code], "field": field, "size": size, "value": value},
                    )
                    st.rerun()
            if st.button("Accept revisions", key=f"reconcile-{sample_round['key']}"):
                result = _request_api("POST", f"/specs/{spec_id}/rounds/{sample_round['key']}/reconcile")
                st.success(f"{len(result['changed'])} points regraded")


def main() -> None:
    st.set_page_config(page_title="Techpack Sizing", layout="wide")
    st.title("Measurement Specification")
    st.caption("Streamlit prototype backed by DuckDB + FastAPI")

    try:
        spec_ids = _request_api("GET", "/specs/")
    except httpx.HTTPError as exc:
        _show_error(exc)
        return
    if not spec_ids:
        st.info("No specifications stored yet. Run scripts/seed_specs.py first.")
        return

    spec_id = st.sidebar.selectbox("Specification", spec_ids)
    restore = st.sidebar.checkbox("Restore local draft", value=False)
    try:
        if st.session_state.get("spec_id") != spec_id:
            _request_api("POST", f"/specs/{spec_id}/session", {"restore_draft": restore})
            st.session_state["spec_id"] = spec_id
        spec = _request_api("GET", f"/specs/{spec_id}")
        with st.sidebar:
            sidebar(spec_id, spec)
    except httpx.HTTPError as exc:
        _show_error(exc)
        return

    if spec["dirty"]:
        st.caption("Unsaved changes")

    chart_tab, grading_tab, rounds_tab = st.tabs(["Chart", "Grading", "Sample rounds"])
    with chart_tab:
        st.dataframe(chart_table(spec), use_container_width=True)
    try:
        with grading_tab:
            grading_editor(spec_id, spec)
        with rounds_tab:
            rounds_view(spec_id, spec)
    except httpx.HTTPError as exc:
        _show_error(exc)


if __name__ == "__main__":
    main()
