# src/core/dicom_source.py

"""
Fuente de datos a partir de un RTPLAN DICOM (pydicom).

Mapeo (DICOM → hechos del host):

  - paciente:      PatientID, PatientName, InstitutionName
  - plan:          RTPlanLabel
  - prescripción:  DoseReferenceSequence[0].TargetPrescriptionDose (Gy → cGy),
                   dividido por NumberOfFractionsPlanned
  - beams:         BeamSequence (se omiten los beams SETUP), usando el
                   primer / último control point para ángulos, arco,
                   mordazas (mm → cm), energía e isocentro (mm → cm)
  - MU:            FractionGroupSequence[0].ReferencedBeamSequence.BeamMeterset

El RTPLAN no trae estadísticas DVH ni parámetros de cálculo: esos
accessors devuelven None y sus grupos de checks no aportan resultados.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pydicom
from pydicom.dataset import Dataset
from pydicom.errors import InvalidDicomError

from core.case import (
    ARC_DIRECTION_CODES,
    ArcDirection,
    BeamGeneralProperty,
    BeamGeometryProperty,
    BeamsSpreadsheet,
    BeamTreatmentAidsProperty,
    CalculationProperties,
    DVHStatistics,
    Isocenter,
    PatientInfo,
    PrescriptionInfo,
)
from core.errors import HostDataError

_ENERGY_UNITS: Dict[str, str] = {
    "PHOTON": "MV",
    "ELECTRON": "MeV",
}


# =====================================================
# Helpers internos
# =====================================================

def _first_control_point(beam_ds: Dataset) -> Optional[Dataset]:
    cps = getattr(beam_ds, "ControlPointSequence", None)
    if not cps:
        return None
    return cps[0]


def _float(ds: Optional[Dataset], keyword: str, default: float = 0.0) -> float:
    if ds is None:
        return default
    value = getattr(ds, keyword, None)
    if value is None or value == "":
        return default
    return float(value)


def _arc_length(direction: ArcDirection, start: float, end: float) -> float:
    """Longitud del arco (grados) recorrido en la dirección indicada."""
    if direction is ArcDirection.CW:
        length = (end - start) % 360.0
    elif direction is ArcDirection.CCW:
        length = (start - end) % 360.0
    else:
        return 0.0
    return length if length > 0.0 else 360.0


def _jaw_openings_cm(cp0: Optional[Dataset]) -> Tuple[float, float, float, float]:
    """
    (Width1, Width2, Length1, Length2) en cm a partir de las mordazas X/Y
    del primer control point. Width = X, Length = Y; la mordaza 1 es la
    negativa, por eso se invierte el signo.
    """
    widths = (0.0, 0.0)
    lengths = (0.0, 0.0)
    if cp0 is None:
        return widths + lengths

    for dev in getattr(cp0, "BeamLimitingDevicePositionSequence", []) or []:
        dev_type = str(getattr(dev, "RTBeamLimitingDeviceType", "")).upper()
        positions = getattr(dev, "LeafJawPositions", None)
        if positions is None or len(positions) != 2:
            continue
        pair = (-float(positions[0]) / 10.0, float(positions[1]) / 10.0)
        if dev_type in ("X", "ASYMX"):
            widths = pair
        elif dev_type in ("Y", "ASYMY"):
            lengths = pair

    return widths + lengths


def _energy(beam_ds: Dataset, cp0: Optional[Dataset]) -> Optional[str]:
    energy = getattr(cp0, "NominalBeamEnergy", None) if cp0 is not None else None
    if energy is None:
        return None
    unit = _ENERGY_UNITS.get(str(getattr(beam_ds, "RadiationType", "")).upper(), "")
    return f"{float(energy):g}{unit}"


def _couch_recorded(cp0: Optional[Dataset]) -> bool:
    """
    El RTPLAN no tiene un flag de "mesa activada"; se considera activada
    si el plan registra la posición de la mesa (vertical, longitudinal y
    lateral) en el primer control point.
    """
    if cp0 is None:
        return False
    keywords = (
        "TableTopVerticalPosition",
        "TableTopLongitudinalPosition",
        "TableTopLateralPosition",
    )
    return all(getattr(cp0, kw, None) not in (None, "") for kw in keywords)


# =====================================================
# Fuente de datos
# =====================================================

class DicomPlanSource:
    """
    Implementa core.host.PlanDataSource sobre un RTPLAN (pydicom Dataset).
    """

    def __init__(self, ds: Dataset):
        modality = str(getattr(ds, "Modality", "")).upper()
        if modality != "RTPLAN":
            raise HostDataError(f"Expected an RTPLAN dataset, got modality '{modality or 'N/A'}'.")
        self._ds = ds

    @classmethod
    def from_file(cls, path: str | Path) -> "DicomPlanSource":
        try:
            ds = pydicom.dcmread(str(path))
        except (OSError, InvalidDicomError) as e:
            raise HostDataError(f"Could not read RTPLAN {path}: {e}") from e
        return cls(ds)

    # ---------------------------------------------------------
    # Helpers de beams
    # ---------------------------------------------------------

    def _treatment_beams(self) -> List[Dataset]:
        beams = getattr(self._ds, "BeamSequence", None) or []
        return [
            b for b in beams
            if str(getattr(b, "TreatmentDeliveryType", "TREATMENT")).upper() != "SETUP"
        ]

    def _beam_meterset(self) -> Dict[int, float]:
        mu: Dict[int, float] = {}
        groups = getattr(self._ds, "FractionGroupSequence", None)
        if not groups:
            return mu
        for ref in getattr(groups[0], "ReferencedBeamSequence", []) or []:
            meterset = getattr(ref, "BeamMeterset", None)
            if meterset is not None:
                mu[int(ref.ReferencedBeamNumber)] = float(meterset)
        return mu

    # ---------------------------------------------------------
    # PlanDataSource
    # ---------------------------------------------------------

    def get_patient(self) -> Optional[PatientInfo]:
        pid = getattr(self._ds, "PatientID", None)
        name = getattr(self._ds, "PatientName", None)
        if pid is None and name is None:
            return None
        return PatientInfo(
            id=str(pid) if pid is not None else None,
            name=str(name) if name is not None else None,
            clinic=str(getattr(self._ds, "InstitutionName", "")) or None,
        )

    def get_active_plan_id(self) -> Optional[str]:
        label = getattr(self._ds, "RTPlanLabel", None)
        return str(label) if label is not None else None

    def get_prescription(self) -> Optional[PrescriptionInfo]:
        refs = getattr(self._ds, "DoseReferenceSequence", None)
        if not refs:
            return None
        total_gy = getattr(refs[0], "TargetPrescriptionDose", None)
        if total_gy is None:
            return None

        total_cgy = float(total_gy) * 100.0
        num_fx = 0
        groups = getattr(self._ds, "FractionGroupSequence", None)
        if groups:
            num_fx = int(getattr(groups[0], "NumberOfFractionsPlanned", 0) or 0)
        fractional = total_cgy / num_fx if num_fx > 0 else total_cgy

        return PrescriptionInfo(total_dose_cgy=total_cgy, fractional_dose_cgy=fractional)

    def get_beams_spreadsheet(self) -> Optional[BeamsSpreadsheet]:
        if not hasattr(self._ds, "BeamSequence"):
            return None

        meterset = self._beam_meterset()
        general: List[BeamGeneralProperty] = []
        geometry: List[BeamGeometryProperty] = []
        aids: List[BeamTreatmentAidsProperty] = []

        for beam_ds in self._treatment_beams():
            number = int(getattr(beam_ds, "BeamNumber", len(general) + 1))
            beam_id = str(number)
            cp0 = _first_control_point(beam_ds)
            cps = getattr(beam_ds, "ControlPointSequence", None) or []
            cp_last = cps[-1] if cps else None

            iso = None
            if cp0 is not None and getattr(cp0, "IsocenterPosition", None) is not None:
                x, y, z = (float(v) / 10.0 for v in cp0.IsocenterPosition)
                iso = Isocenter(x=x, y=y, z=z)

            general.append(
                BeamGeneralProperty(
                    beam_id=beam_id,
                    field_id=str(getattr(beam_ds, "BeamName", "")) or None,
                    mu_per_fraction=meterset.get(number, 0.0),
                    algorithm=None,
                    energy=_energy(beam_ds, cp0),
                    isocenter=iso,
                )
            )

            raw_dir = str(getattr(cp0, "GantryRotationDirection", "NONE") if cp0 is not None else "NONE")
            direction = ARC_DIRECTION_CODES.get(raw_dir.upper(), ArcDirection.NONE)
            gantry = _float(cp0, "GantryAngle")
            w1, w2, l1, l2 = _jaw_openings_cm(cp0)
            geometry.append(
                BeamGeometryProperty(
                    beam_id=beam_id,
                    gantry=gantry,
                    collimator=_float(cp0, "BeamLimitingDeviceAngle"),
                    couch=_float(cp0, "PatientSupportAngle"),
                    direction=direction,
                    arc_length=_arc_length(direction, gantry, _float(cp_last, "GantryAngle", gantry)),
                    width1=w1,
                    width2=w2,
                    length1=l1,
                    length2=l2,
                )
            )

            bolus_refs = getattr(beam_ds, "ReferencedBolusSequence", None) or []
            bolus = ", ".join(f"ROI {b.ReferencedROINumber}" for b in bolus_refs) or None
            wedges = getattr(beam_ds, "WedgeSequence", None) or []
            wedge_id = None
            if wedges:
                wedge_id = str(getattr(wedges[0], "WedgeID", "")) or None
            aids.append(
                BeamTreatmentAidsProperty(
                    beam_id=beam_id,
                    couch=_couch_recorded(cp0),
                    bolus=bolus,
                    wedge_id=wedge_id,
                )
            )

        return BeamsSpreadsheet(general=general, geometry=geometry, treatment_aids=aids)

    def request_dvh_statistics(self) -> Optional[threading.Event]:
        # Nada que calcular: el RTPLAN no lleva estadísticas DVH.
        ready = threading.Event()
        ready.set()
        return ready

    def get_dvh_statistics(self) -> Optional[DVHStatistics]:
        return None

    def get_calculation_properties(self) -> Optional[CalculationProperties]:
        return None
