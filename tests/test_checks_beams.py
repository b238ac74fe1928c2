import logging

import pytest

from core.case import (
    ArcDirection,
    BeamGeneralProperty,
    BeamGeometryProperty,
    BeamsSpreadsheet,
    BeamTreatmentAidsProperty,
    Category,
    Isocenter,
    Severity,
)
from qa.checks.beams import (
    check_beam_general,
    check_isocenter_consistency,
    check_treatment_aids,
    is_valid_field_id,
    run_beam_checks,
)
from qa.checks.geometry import check_beam_angles, check_collimator_jaws


@pytest.mark.parametrize("field_id, valid", [
    ("0042", True),
    ("042", False),
    ("00420", False),
    ("ABCD", False),
    ("", False),
    (None, False),
])
def test_field_id_format(field_id, valid):
    assert is_valid_field_id(field_id) is valid
    r = check_beam_general(BeamGeneralProperty("3", field_id, 50.0))[0]
    assert r.item == "Field ID format (Beam 3)"
    assert r.passed is valid
    assert r.severity is (Severity.INFO if valid else Severity.ERROR)


def test_minimum_mu():
    ok = check_beam_general(BeamGeneralProperty("1", "0001", 10.0))[1]
    low = check_beam_general(BeamGeneralProperty("1", "0001", 9.99))[1]
    assert ok.passed and ok.actual_value == "10.00"
    assert not low.passed and low.severity is Severity.ERROR
    assert low.expected_value == ">= 10.0"


def test_optional_general_entries():
    bare = check_beam_general(BeamGeneralProperty("1", "0001", 100.0))
    assert [r.item for r in bare] == [
        "Field ID format (Beam 1)",
        "Minimum MU (Beam 1)",
        "Calculation algorithm (Beam 1)",
    ]
    assert bare[2].actual_value == "N/A"

    full = check_beam_general(
        BeamGeneralProperty("1", "0001", 100.0, "MonteCarlo", "6MV", Isocenter(1.234, -5.0, 0.0))
    )
    assert full[3].actual_value == "6MV"
    assert full[4].item == "Isocenter position (Beam 1)"
    assert full[4].actual_value == "(1.23, -5.00, 0.00)"


def test_isocenter_consistency():
    iso = Isocenter(0.0, 0.0, 0.0, "ISO1")
    same = [BeamGeneralProperty("1", "0001", 10, isocenter=iso), BeamGeneralProperty("2", "0002", 10, isocenter=iso)]
    r = check_isocenter_consistency(same)
    assert r.passed and r.severity is Severity.INFO

    other = Isocenter(0.0, 0.0, 0.0, "ISO2")
    mixed = same + [BeamGeneralProperty("3", "0003", 10, isocenter=other)]
    r = check_isocenter_consistency(mixed)
    assert not r.passed
    assert r.severity is Severity.WARNING


def test_isocenter_consistency_edge_cases():
    assert not check_isocenter_consistency([]).passed
    iso = Isocenter(1.0, 2.0, 3.0)
    missing = [BeamGeneralProperty("1", "0001", 10, isocenter=iso), BeamGeneralProperty("2", "0002", 10)]
    assert not check_isocenter_consistency(missing).passed
    coords_only = [BeamGeneralProperty("1", "0001", 10, isocenter=iso),
                   BeamGeneralProperty("2", "0002", 10, isocenter=Isocenter(1.0, 2.0, 3.0))]
    assert check_isocenter_consistency(coords_only).passed


def test_collimator_width_sum_below_threshold_is_warning():
    geom = BeamGeometryProperty("1", 0.0, 0.0, 0.0, width1=1.0, width2=1.5, length1=2.0, length2=2.0)
    r = check_collimator_jaws(geom)
    assert r.category is Category.COLLIMATOR
    assert r.passed is False
    assert r.severity is Severity.WARNING
    assert r.actual_value == "Width1: 1.0 cm, Width2: 1.5 cm, Length1: 2.0 cm, Length2: 2.0 cm"
    assert "Half-open" in r.expected_value


def test_collimator_threshold_is_strict():
    geom = BeamGeometryProperty("1", 0.0, 0.0, 0.0, width1=1.5, width2=1.5, length1=5.0, length2=5.0)
    assert not check_collimator_jaws(geom).passed
    geom = BeamGeometryProperty("1", 0.0, 0.0, 0.0, width1=0.0, width2=3.5, length1=0.0, length2=3.1)
    assert check_collimator_jaws(geom).passed


def test_arc_entries_only_for_arcs():
    static = check_beam_angles(BeamGeometryProperty("2", 90.0, 0.0, 270.0))
    assert len(static) == 1
    assert static[0].actual_value == "Gantry: 90.0, Collimator: 0.0, Couch: 270.0"

    arc = check_beam_angles(BeamGeometryProperty("1", 181.0, 30.0, 0.0, ArcDirection.CCW, 358.0))
    assert [r.item for r in arc] == ["Angles (Beam 1)", "Arc direction (Beam 1)", "Arc length (Beam 1)"]
    assert arc[1].actual_value == "CCW"
    assert arc[2].actual_value == "358.0°"


def test_treatment_aids():
    disabled = check_treatment_aids(BeamTreatmentAidsProperty("1", False))
    assert disabled[0].item == "Couch enabled (Beam 1)"
    assert disabled[0].severity is Severity.WARNING
    assert disabled[0].actual_value == "False"
    assert disabled[1].actual_value == "None"
    assert len(disabled) == 2

    full = check_treatment_aids(BeamTreatmentAidsProperty("2", True, "Bolus 5mm", "W60"))
    assert full[0].passed
    assert full[1].actual_value == "Bolus 5mm"
    assert full[2].item == "Wedge ID (Beam 2)"


def test_run_beam_checks(beams_sheet):
    results = run_beam_checks(beams_sheet)
    assert results[0].item == "Isocenter consistency"
    assert results[0].passed
    categories = {r.category for r in results}
    assert categories == {Category.BEAM, Category.GEOMETRY, Category.COLLIMATOR, Category.TREATMENT_AIDS}
    assert all(r.severity is Severity.INFO for r in results)


@pytest.mark.parametrize("sheet", [
    None,
    BeamsSpreadsheet(general=[], geometry=None, treatment_aids=[]),
])
def test_missing_beam_data_emits_nothing(sheet, caplog):
    with caplog.at_level(logging.WARNING):
        assert run_beam_checks(sheet) == []
    assert caplog.records
