import math
from dataclasses import dataclass
from typing import Iterable, List, Mapping, NamedTuple, Optional, Tuple, Union

import numpy as np

from pronote_average.config import DEFAULT_COEFFICIENT, UNKNOWN_SUBJECT
from pronote_average.errors import NotFoundError, UnparseableDataError
from pronote_average.extractor import RawEntry
from pronote_average.injection import Snapshot, execute_script, extract_subjects
from pronote_average.logging_config import get_logger
from pronote_average.normalize import (
    collation_key,
    normalize_subject_name,
    parse_french_number,
    subject_key,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class SubjectRecord:
    subject: str
    average: Optional[float]


ScanResult = Tuple[SubjectRecord, ...]
# storage key ("coef:" + lowercased subject) -> value as stored
CoefficientMap = Mapping[str, object]


class Averages(NamedTuple):
    simple: float
    weighted: float


def _is_finite(x) -> bool:
    return x is not None and math.isfinite(x)


# ------------------------
# Records
# ------------------------
def build_records(raw: Iterable[Union[RawEntry, Mapping[str, str]]]) -> ScanResult:
    """
    raw: RawEntry objects or {"subject", "average_text"} dicts as returned
         across the injection boundary.
    returns: records sorted by subject name, French dictionary order.
    """
    records: List[SubjectRecord] = []
    for item in raw:
        if isinstance(item, RawEntry):
            subject, text = item.subject, item.average_text
        else:
            subject, text = item.get("subject"), item.get("average_text")

        subject = normalize_subject_name(subject) or UNKNOWN_SUBJECT
        records.append(SubjectRecord(subject, parse_french_number(text)))

    records.sort(key=lambda r: collation_key(r.subject))
    return tuple(records)


def classify_scan(raw: list, records: ScanResult) -> None:
    """Raise the scan error matching an empty or unreadable result."""
    if not raw:
        raise NotFoundError()
    if not any(_is_finite(r.average) for r in records):
        raise UnparseableDataError(f"{len(records)} subject(s) without a number")


def scan_snapshot(snapshot: Snapshot) -> ScanResult:
    raw = execute_script(snapshot, extract_subjects)
    if not isinstance(raw, list):
        raw = []

    records = build_records(raw)
    classify_scan(raw, records)

    logger.info("Scan found %d subject(s)", len(records))
    return records


# ------------------------
# Coefficients
# ------------------------
def coerce_coefficient(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return math.nan


def coefficient_for(coef_map: CoefficientMap, subject: str):
    """Stored value for a subject, or the default coefficient when unset."""
    value = coef_map.get(subject_key(subject))
    return DEFAULT_COEFFICIENT if value is None else value


def load_coefficients(store, records: ScanResult) -> dict:
    return store.get([subject_key(r.subject) for r in records])


def save_coefficient(store, subject: str, value) -> None:
    # stored as typed, even when the weighted average will ignore it
    store.set({subject_key(subject): value})


# ------------------------
# Core logic
# ------------------------
def compute_simple_average(records: Iterable[SubjectRecord]) -> float:
    """Mean of the finite averages; NaN when there are none."""
    values = np.array([r.average for r in records if _is_finite(r.average)], dtype=float)
    if values.size == 0:
        return np.nan
    return float(values.mean())


def compute_weighted_average(records: Iterable[SubjectRecord],
                             coef_map: CoefficientMap) -> float:
    """
    Coefficient-weighted mean of the finite averages.

    A subject whose coefficient is not a finite positive number is left out
    of both sums. Returns NaN when no subject is left.
    """
    grades, coefs = [], []
    for record in records:
        if not _is_finite(record.average):
            continue
        coef = coerce_coefficient(coefficient_for(coef_map, record.subject))
        if not math.isfinite(coef) or coef <= 0:
            continue
        grades.append(record.average)
        coefs.append(coef)

    weights = np.asarray(coefs, dtype=float)
    total = float(weights.sum())
    if total <= 0:
        return np.nan

    return float(np.dot(np.asarray(grades, dtype=float), weights) / total)


def recalculate(scan_result: ScanResult, coef_map: CoefficientMap) -> Averages:
    return Averages(
        simple=compute_simple_average(scan_result),
        weighted=compute_weighted_average(scan_result, coef_map),
    )
