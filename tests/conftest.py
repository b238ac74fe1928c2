import socket
import threading
from typing import List, Optional

import pytest

from core.case import (
    ArcDirection,
    BeamGeneralProperty,
    BeamGeometryProperty,
    BeamsSpreadsheet,
    BeamTreatmentAidsProperty,
    CalculationProperties,
    Category,
    CheckResult,
    DVHStatistics,
    Isocenter,
    PatientInfo,
    PrescriptionInfo,
    Severity,
    StructureStatistics,
)


class FakeSource:
    """PlanDataSource en memoria para tests; cada accessor es un atributo."""

    def __init__(
        self,
        patient=None,
        plan_id=None,
        prescription=None,
        beams=None,
        dvh=None,
        calculation=None,
        dvh_signal=None,
    ):
        self.patient = patient
        self.plan_id = plan_id
        self.prescription = prescription
        self.beams = beams
        self.dvh = dvh
        self.calculation = calculation
        self.dvh_signal = dvh_signal
        self.calls: List[str] = []
        self.fail_on: Optional[str] = None

    def _maybe_fail(self, name):
        self.calls.append(name)
        if self.fail_on == name:
            raise RuntimeError(f"host failure in {name}")

    def get_patient(self):
        self._maybe_fail("get_patient")
        return self.patient

    def get_active_plan_id(self):
        self._maybe_fail("get_active_plan_id")
        return self.plan_id

    def get_prescription(self):
        self._maybe_fail("get_prescription")
        return self.prescription

    def get_beams_spreadsheet(self):
        self._maybe_fail("get_beams_spreadsheet")
        return self.beams

    def request_dvh_statistics(self):
        self._maybe_fail("request_dvh_statistics")
        return self.dvh_signal

    def get_dvh_statistics(self):
        self._maybe_fail("get_dvh_statistics")
        return self.dvh

    def get_calculation_properties(self):
        self._maybe_fail("get_calculation_properties")
        return self.calculation


@pytest.fixture
def patient():
    return PatientInfo(id="12345", name="DOE^JOHN", clinic="Main Clinic")


@pytest.fixture
def beams_sheet():
    iso = Isocenter(x=0.0, y=1.5, z=-2.0, location="ISO1")
    return BeamsSpreadsheet(
        general=[
            BeamGeneralProperty("1", "0001", 250.0, "MonteCarlo", "6MV", iso),
            BeamGeneralProperty("2", "0002", 180.5, "MonteCarlo", "6MV", iso),
        ],
        geometry=[
            BeamGeometryProperty("1", 180.0, 45.0, 0.0, ArcDirection.CW, 358.0, 5.0, 5.0, 6.0, 6.0),
            BeamGeometryProperty("2", 90.0, 0.0, 0.0, ArcDirection.NONE, 0.0, 4.0, 4.0, 4.0, 4.0),
        ],
        treatment_aids=[
            BeamTreatmentAidsProperty("1", True, None, None),
            BeamTreatmentAidsProperty("2", True, "Bolus 5mm", "W60"),
        ],
    )


@pytest.fixture
def dvh_stats():
    return DVHStatistics(
        structures=[
            StructureStatistics("PTV_60", 230.0, 0.85, 1.07),
            StructureStatistics("Rectum", 180.0, 0.0, 0.0),
        ]
    )


@pytest.fixture
def calc_props():
    return CalculationProperties("Medium", "Monte Carlo", 0.3, 100000000)


@pytest.fixture
def ready_signal():
    ev = threading.Event()
    ev.set()
    return ev


@pytest.fixture
def full_source(patient, beams_sheet, dvh_stats, calc_props, ready_signal):
    return FakeSource(
        patient=patient,
        plan_id="VMAT001",
        prescription=PrescriptionInfo(200.0, 200.0),
        beams=beams_sheet,
        dvh=dvh_stats,
        calculation=calc_props,
        dvh_signal=ready_signal,
    )


@pytest.fixture
def no_sleep():
    calls = []

    def _sleep(seconds):
        calls.append(seconds)

    _sleep.calls = calls
    return _sleep


@pytest.fixture
def mixed_results():
    """Resultados sintéticos sin ordenar con las tres severidades."""
    return [
        CheckResult.info(Category.PATIENT, "Patient ID", "12345"),
        CheckResult.info(Category.BEAM, "Energy (Beam 1)", "6MV"),
        CheckResult.evaluate(Category.BEAM, "Minimum MU (Beam 2)", False, Severity.ERROR, "5.00", ">= 10.0"),
        CheckResult.evaluate(Category.COLLIMATOR, "Collimator jaws (Beam 1)", False, Severity.WARNING, "x", "y"),
        CheckResult.info(Category.PRESCRIPTION, "Prescribed dose", "200.00 cGy", ">= 1.0 cGy"),
        CheckResult.evaluate(Category.PRESCRIPTION, "Max dose ratio", False, Severity.WARNING, "1.200", "<= 1.17"),
        CheckResult.evaluate(Category.PLAN, "Plan ID format", False, Severity.ERROR, "XYZ001", "(3D|VMAT|DCAT) + 3 digits"),
        CheckResult.info(Category.BEAM, "Calculation algorithm (Beam 1)", "MonteCarlo"),
    ]


@pytest.fixture
def busy_port():
    """Puerto local ya ocupado por un socket en escucha."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen(1)
    yield sock.getsockname()[1]
    sock.close()
