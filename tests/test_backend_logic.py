import json
import math

import pytest

from pronote_average.backend_logic import (
    Averages,
    SubjectRecord,
    build_records,
    classify_scan,
    coefficient_for,
    coerce_coefficient,
    compute_simple_average,
    compute_weighted_average,
    load_coefficients,
    recalculate,
    save_coefficient,
    scan_snapshot,
)
from pronote_average.errors import InjectionRefusedError, NotFoundError, UnparseableDataError
from pronote_average.extractor import RawEntry


def rec(subject, average):
    return SubjectRecord(subject, average)


# ------------------------
# Simple average
# ------------------------
def test_simple_average_ignores_absent_values():
    records = [rec("A", 15.0), rec("B", None), rec("C", 9.0)]
    assert compute_simple_average(records) == 12.0


def test_simple_average_of_nothing_is_undefined():
    assert math.isnan(compute_simple_average([]))
    assert math.isnan(compute_simple_average([rec("A", None)]))


# ------------------------
# Weighted average
# ------------------------
def test_weighted_average_excludes_non_positive_coefficients():
    records = [rec("A", 15.0), rec("B", 10.0)]
    coefs = {"coef:a": 2, "coef:b": -1}
    assert compute_weighted_average(records, coefs) == 15.0


def test_default_coefficient_is_one():
    records = [rec("A", 12.0), rec("B", 16.0)]
    averages = recalculate(tuple(records), {})
    assert averages == Averages(simple=14.0, weighted=14.0)


def test_weighted_average_uses_case_insensitive_keys():
    records = [rec("Physique-Chimie", 10.0), rec("Anglais", 16.0)]
    coefs = {"coef:physique-chimie": 3, "coef:anglais": 1}
    assert compute_weighted_average(records, coefs) == 11.5


@pytest.mark.parametrize(
    "bad", [0, -2, float("nan"), float("inf"), "abc", "", json.loads("1" + "0" * 400)]
)
def test_malformed_coefficient_excludes_subject(bad):
    records = [rec("A", 8.0), rec("B", 18.0)]
    assert compute_weighted_average(records, {"coef:a": bad}) == 18.0


def test_weighted_average_skips_absent_values():
    records = [rec("A", None), rec("B", 11.0)]
    assert compute_weighted_average(records, {"coef:a": 5}) == 11.0


def test_weighted_average_undefined_without_usable_coefficient():
    records = [rec("A", 12.0), rec("B", 14.0)]
    assert math.isnan(compute_weighted_average(records, {"coef:a": 0, "coef:b": -1}))


def test_empty_scan_result_is_undefined_not_zero():
    averages = recalculate((), {})
    assert math.isnan(averages.simple)
    assert math.isnan(averages.weighted)


def test_recalculate_is_idempotent():
    records = (rec("A", 13.37), rec("B", 7.1), rec("C", None), rec("D", 19.03))
    coefs = {"coef:a": 2.5, "coef:b": 0.3, "coef:d": "4"}
    first = recalculate(records, coefs)
    second = recalculate(records, dict(coefs))
    assert first == second
    assert first.weighted.hex() == second.weighted.hex()


def test_coefficients():
    assert coefficient_for({}, "Anglais") == 1
    assert coefficient_for({"coef:anglais": None}, "Anglais") == 1
    assert coefficient_for({"coef:anglais": 3}, "ANGLAIS") == 3
    assert coerce_coefficient("2.5") == 2.5
    assert math.isnan(coerce_coefficient("deux"))
    assert math.isnan(coerce_coefficient([2]))


# ------------------------
# Records and scans
# ------------------------
def test_build_records_normalizes_and_sorts():
    raw = [
        {"subject": "TRONC COMMUN > Physique-Chimie", "average_text": "15,00"},
        {"subject": "  éducation  physique ", "average_text": "17"},
        RawEntry("Anglais", "n.not"),
        {"subject": "", "average_text": "10,5"},
    ]
    assert build_records(raw) == (
        rec("Anglais", None),
        rec("éducation physique", 17.0),
        rec("Matière inconnue", 10.5),
        rec("Physique-Chimie", 15.0),
    )


def test_classify_scan():
    with pytest.raises(NotFoundError):
        classify_scan([], ())
    raw = [{"subject": "A", "average_text": "?"}]
    with pytest.raises(UnparseableDataError):
        classify_scan(raw, build_records(raw))
    classify_scan([{"subject": "A", "average_text": "12"}], (rec("A", 12.0),))


def test_scan_snapshot(pronote_page):
    records = scan_snapshot(pronote_page)
    assert [r.subject for r in records] == [
        "Anglais LV1",
        "Mathématiques",
        "Matière inconnue",
        "Physique-Chimie",
    ]
    assert recalculate(records, {}).simple == 12.8125


def test_scan_snapshot_without_averages():
    with pytest.raises(NotFoundError) as excinfo:
        scan_snapshot("<html><body><p>Cahier de textes</p></body></html>")
    assert "Notes/Moyennes" in excinfo.value.message


def test_scan_snapshot_refused():
    with pytest.raises(InjectionRefusedError):
        scan_snapshot("")


def test_coefficients_round_trip_through_store(store, pronote_page):
    records = scan_snapshot(pronote_page)
    save_coefficient(store, "PHYSIQUE-CHIMIE", 3)
    save_coefficient(store, "Anglais LV1", -1)

    coefs = load_coefficients(store, records)
    assert coefs == {"coef:physique-chimie": 3, "coef:anglais lv1": -1}

    # (9.75 + 14 + 15 * 3) / 5
    assert recalculate(records, coefs).weighted == 13.75
