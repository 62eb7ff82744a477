# kpi_engine/loader.py
# CSV loader + validator for the three KPI datasets.
# - Header row -> column labels, blank lines skipped
# - Robust to missing/extra columns per row
# - Returns partial results instead of crashing

from __future__ import annotations
from typing import Dict, Any, Tuple, List
import io
import logging
import pandas as pd

from kpi_engine.schema import DatasetSlots, Record, columns_for, records_from_rows

logger = logging.getLogger(__name__)

# --------------------------- Helpers ---------------------------

def _read_text(csv_file) -> str:
    """Accept a path, raw bytes, or a file-like object (e.g. a Streamlit upload)."""
    if hasattr(csv_file, "getvalue"):
        data = csv_file.getvalue()
    elif hasattr(csv_file, "read"):
        data = csv_file.read()
    elif isinstance(csv_file, bytes):
        data = csv_file
    else:
        with open(csv_file, "rb") as fh:
            data = fh.read()
    if isinstance(data, bytes):
        data = data.decode("utf-8-sig")
    return data

def _missing_columns(columns: List[str], role: str) -> List[str]:
    present = set(columns)
    return [c for c in columns_for(role) if c not in present]

def read_csv_frame(text: str) -> pd.DataFrame:
    """
    Parse CSV text into a frame of raw strings keyed by the header labels.
    Short rows leave trailing columns as None; extra cells beyond the header are dropped.
    Empty and whitespace-only lines are skipped.
    """
    if not text or not text.strip():
        return pd.DataFrame()
    header = pd.read_csv(io.StringIO(text), nrows=0, dtype=str)
    width = len(header.columns)
    # index_col=False: a long first row must not turn into an implicit index
    df = pd.read_csv(
        io.StringIO(text),
        dtype=object,  # raw strings, no type inference
        keep_default_na=False,
        skip_blank_lines=True,
        engine="python",
        index_col=False,
        usecols=list(range(width)),
    )
    return df.astype(object).where(df.notna(), None)

# --------------------------- Loader + Validator ---------------------------

def load_dataset(csv_file, role: str) -> Tuple[List[Record], Dict[str, Any]]:
    """
    Read one CSV and return:
      records: typed records for `role`
      report: {"role", "num_rows", "num_columns", "missing_columns", "read_error", "_warnings"}
    Missing expected columns are reported as warnings only; aggregation treats
    their values as absent. An unreadable file sets `read_error` and yields no records.
    """
    report: Dict[str, Any] = {"role": role, "num_rows": 0, "num_columns": 0,
                              "missing_columns": [], "read_error": None, "_warnings": []}
    columns_for(role)  # unknown role -> ValueError before any I/O

    try:
        text = _read_text(csv_file)
        df = read_csv_frame(text)
    except (OSError, ValueError) as e:  # ParserError / EmptyDataError / UnicodeDecodeError are ValueErrors
        logger.warning("Failed to read %s CSV: %s", role, e)
        report["read_error"] = str(e)
        report["_warnings"].append(f"Failed to read CSV: {e}")
        return [], report

    rows = df.to_dict(orient="records")
    columns = [str(c) for c in df.columns]
    report["num_rows"] = len(rows)
    report["num_columns"] = len(columns)
    report["missing_columns"] = _missing_columns(columns, role)
    if report["missing_columns"]:
        report["_warnings"].append(
            f"{role.capitalize()}: missing columns {report['missing_columns']}; "
            "their values count as absent (0 for numeric fields)."
        )
    if not rows:
        report["_warnings"].append(f"{role.capitalize()}: no data rows found.")

    logger.info("Loaded %s dataset: %d rows, %d columns", role, report["num_rows"], report["num_columns"])
    if report["missing_columns"]:
        logger.warning("%s dataset missing columns: %s", role, report["missing_columns"])
    return records_from_rows(role, rows), report

def load_into_slots(slots: DatasetSlots, csv_file, role: str) -> Tuple[DatasetSlots, Dict[str, Any]]:
    """
    Load `csv_file` into the `role` slot, replacing whatever was there.
    A failed read leaves `slots` untouched and returns it as-is.
    """
    records, report = load_dataset(csv_file, role)
    if report["read_error"] is not None:
        return slots, report
    return slots.replace(role, records), report
