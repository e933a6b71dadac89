import pandas as pd
from typing import Dict, List, Tuple

from pronote_average.backend_logic import (
    CoefficientMap,
    ScanResult,
    coefficient_for,
    coerce_coefficient,
)
from pronote_average.normalize import format2, normalize_subject_name, subject_key

# ------------------------
# Table / CSV helpers (UI-side)
# ------------------------
SUBJECT_COL = "Matière"
AVERAGE_COL = "Moyenne"
COEF_COL = "Coefficient"

_COLUMN_ALIASES = {
    "matière": "subject",
    "matiere": "subject",
    "coef": "coefficient",
    "coefficients": "coefficient",
}


def _normalise_cols(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]
    return df.rename(columns={k: v for k, v in _COLUMN_ALIASES.items() if v not in df.columns})


def records_to_frame(records: ScanResult, coef_map: CoefficientMap) -> pd.DataFrame:
    """One row per subject, with the coefficient the table should show."""
    return pd.DataFrame(
        {
            SUBJECT_COL: [r.subject for r in records],
            AVERAGE_COL: [format2(r.average) for r in records],
            COEF_COL: [coerce_coefficient(coefficient_for(coef_map, r.subject)) for r in records],
        },
        columns=[SUBJECT_COL, AVERAGE_COL, COEF_COL],
    )


def edited_coefficients(records: ScanResult, edited_rows: Dict) -> List[Tuple[str, float]]:
    """
    (subject, coefficient) for each row edited in the table.

    edited_rows: the data editor's {row position: {column: value}} state.
    Cleared cells are left out: the user is still typing.
    """
    changes = []
    for row, columns in sorted(edited_rows.items(), key=lambda item: int(item[0])):
        value = columns.get(COEF_COL)
        if value is None or pd.isna(value):
            continue
        index = int(row)
        if not 0 <= index < len(records):
            continue
        changes.append((records[index].subject, float(value)))
    return changes


def read_csv_upload(uploaded_file) -> pd.DataFrame:
    df = pd.read_csv(uploaded_file)
    return _normalise_cols(df)


def validate_coefficients_csv(df: pd.DataFrame) -> pd.DataFrame:
    required = {"subject", "coefficient"}
    missing = required - set(df.columns)
    if missing:
        raise ValueError(f"Missing columns: {sorted(missing)}. Expected: Matière, Coefficient.")
    out = df[["subject", "coefficient"]].copy()
    out = out.rename(columns={"subject": SUBJECT_COL, "coefficient": COEF_COL})
    return out


def parse_coefficients_csv(df: pd.DataFrame) -> Dict[str, object]:
    """Storage key -> coefficient, numbers kept as floats and anything else as text."""
    items = {}
    for _, row in df.iterrows():
        subject = row.get(SUBJECT_COL)
        value = row.get(COEF_COL)
        if pd.isna(subject) or pd.isna(value):
            continue
        subject = normalize_subject_name(subject)
        if not subject:
            continue
        try:
            items[subject_key(subject)] = float(value)
        except (TypeError, ValueError):
            items[subject_key(subject)] = str(value).strip()
    return items


def coefficients_to_csv(records: ScanResult, coef_map: CoefficientMap) -> bytes:
    df = records_to_frame(records, coef_map)[[SUBJECT_COL, COEF_COL]]
    return df.to_csv(index=False).encode("utf-8")
