import logging

import pytest

from core.case import Category, DVHStatistics, PrescriptionInfo, Severity, StructureStatistics
from qa.checks.prescription import (
    check_max_dose_ratio,
    get_max_plan_dose,
    run_prescription_checks,
)


def _stats(*max_doses):
    return DVHStatistics([StructureStatistics(f"S{i}", d) for i, d in enumerate(max_doses)])


def test_ratio_within_limit_is_info():
    r = check_max_dose_ratio(200.0, 230.0)
    assert r.passed
    assert r.severity is Severity.INFO
    assert r.actual_value == "1.150 (230.0 cGy / 200.0 cGy)"
    assert r.expected_value == "<= 1.17"


def test_ratio_above_limit_is_only_a_warning():
    r = check_max_dose_ratio(200.0, 240.0)
    assert r.passed is False
    assert r.severity is Severity.WARNING
    assert r.actual_value.startswith("1.200")


@pytest.mark.parametrize("rx, max_dose", [(200.0, 0.0), (0.0, 230.0), (-5.0, 230.0)])
def test_ratio_skipped_without_positive_doses(rx, max_dose):
    assert check_max_dose_ratio(rx, max_dose) is None


def test_max_plan_dose_over_structures():
    assert get_max_plan_dose(_stats(180.0, 240.0, 30.0)) == 240.0
    assert get_max_plan_dose(None) == 0.0
    assert get_max_plan_dose(DVHStatistics([])) == 0.0


def test_full_prescription_group():
    results = run_prescription_checks(PrescriptionInfo(200.0, 200.0), _stats(230.0))
    assert [r.item for r in results] == ["Prescribed dose", "Fraction dose", "Max dose ratio"]
    assert all(r.category is Category.PRESCRIPTION for r in results)
    assert results[0].actual_value == "200.00 cGy"
    assert results[0].expected_value == ">= 1.0 cGy"


def test_low_doses_are_errors():
    results = run_prescription_checks(PrescriptionInfo(0.5, 0.2), None)
    assert len(results) == 2
    assert all(not r.passed and r.severity is Severity.ERROR for r in results)


def test_missing_prescription_logs_and_emits_nothing(caplog):
    with caplog.at_level(logging.WARNING):
        assert run_prescription_checks(None, _stats(230.0)) == []
    assert "prescription" in caplog.text.lower()
