# src/core/snapshot_source.py

"""
Fuente de datos a partir de un export JSON de los hechos del host.

Schema (todas las claves de primer nivel son opcionales salvo patient y
plan_id; una clave ausente o null se traduce en None en el accessor):

{
  "patient": {"id": "12345", "name": "DOE^JOHN", "clinic": "Main"},
  "plan_id": "VMAT001",
  "prescription": {"total_dose_cgy": 200.0, "fractional_dose_cgy": 200.0},
  "beams": {
    "general": [
      {"beam_id": "1", "field_id": "0001", "mu_per_fraction": 250.3,
       "algorithm": "MonteCarlo", "energy": "6MV",
       "isocenter": {"x": 0.0, "y": 1.5, "z": -2.0, "location": "ISO1"}}
    ],
    "geometry": [
      {"beam_id": "1", "gantry": 180.0, "collimator": 45.0, "couch": 0.0,
       "direction": "CW", "arc_length": 360.0,
       "width1": 5.0, "width2": 5.0, "length1": 6.0, "length2": 6.0}
    ],
    "treatment_aids": [
      {"beam_id": "1", "couch": true, "bolus": null, "wedge_id": null}
    ]
  },
  "dvh_statistics": {
    "structures": [
      {"structure_name": "PTV_60", "max_dose": 230.0,
       "conformity_index": 0.85, "heterogeneity_index": 1.07}
    ]
  },
  "calculation": {
    "dose_deposition": "Medium", "final_calculation_algorithm": "Monte Carlo",
    "grid_spacing": 0.3, "max_particles_per_beam": 100000000
  }
}

``direction`` acepta NONE, CW, CC o CCW; un código desconocido se toma
como NONE (con warning en el log).

Las secciones se convierten a dataclasses al pedirlas (no al cargar),
así un bloque mal formado solo afecta a su grupo de checks.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

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
    StructureStatistics,
)
from core.errors import HostDataError

logger = logging.getLogger("plan_check.core.snapshot")


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _parse_isocenter(raw: Optional[Dict[str, Any]]) -> Optional[Isocenter]:
    if raw is None:
        return None
    return Isocenter(
        x=float(raw["x"]),
        y=float(raw["y"]),
        z=float(raw["z"]),
        location=_opt_str(raw.get("location")),
    )


def _parse_list(raw: Optional[List[Dict[str, Any]]], parse) -> Optional[list]:
    if raw is None:
        return None
    return [parse(item) if item is not None else None for item in raw]


def _parse_general(raw: Dict[str, Any]) -> BeamGeneralProperty:
    return BeamGeneralProperty(
        beam_id=str(raw["beam_id"]),
        field_id=_opt_str(raw.get("field_id")),
        mu_per_fraction=float(raw.get("mu_per_fraction", 0.0)),
        algorithm=_opt_str(raw.get("algorithm")),
        energy=_opt_str(raw.get("energy")),
        isocenter=_parse_isocenter(raw.get("isocenter")),
    )


def _parse_direction(raw: Any) -> ArcDirection:
    """NONE / CW / CC / CCW (sin distinguir mayúsculas); otro valor → NONE."""
    if raw is None or raw == "":
        return ArcDirection.NONE
    direction = ARC_DIRECTION_CODES.get(str(raw).strip().upper())
    if direction is None:
        logger.warning("Unknown arc direction %r; treated as NONE.", raw)
        return ArcDirection.NONE
    return direction


def _parse_geometry(raw: Dict[str, Any]) -> BeamGeometryProperty:
    return BeamGeometryProperty(
        beam_id=str(raw["beam_id"]),
        gantry=float(raw.get("gantry", 0.0)),
        collimator=float(raw.get("collimator", 0.0)),
        couch=float(raw.get("couch", 0.0)),
        direction=_parse_direction(raw.get("direction")),
        arc_length=float(raw.get("arc_length", 0.0)),
        width1=float(raw.get("width1", 0.0)),
        width2=float(raw.get("width2", 0.0)),
        length1=float(raw.get("length1", 0.0)),
        length2=float(raw.get("length2", 0.0)),
    )


def _parse_treatment_aids(raw: Dict[str, Any]) -> BeamTreatmentAidsProperty:
    return BeamTreatmentAidsProperty(
        beam_id=str(raw["beam_id"]),
        couch=bool(raw.get("couch", False)),
        bolus=_opt_str(raw.get("bolus")),
        wedge_id=_opt_str(raw.get("wedge_id")),
    )


class SnapshotPlanSource:
    """
    Implementa core.host.PlanDataSource sobre un dict ya cargado.
    """

    def __init__(self, data: Dict[str, Any]):
        if not isinstance(data, dict):
            raise HostDataError("Snapshot must be a JSON object.")
        self._data = data

    @classmethod
    def from_file(cls, path: str | Path) -> "SnapshotPlanSource":
        p = Path(path)
        try:
            with p.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise HostDataError(f"Could not read snapshot {p}: {e}") from e
        return cls(data)

    # ---------------------------------------------------------
    # PlanDataSource
    # ---------------------------------------------------------

    def get_patient(self) -> Optional[PatientInfo]:
        raw = self._data.get("patient")
        if raw is None:
            return None
        return PatientInfo(
            id=_opt_str(raw.get("id")),
            name=_opt_str(raw.get("name")),
            clinic=_opt_str(raw.get("clinic")),
        )

    def get_active_plan_id(self) -> Optional[str]:
        return _opt_str(self._data.get("plan_id"))

    def get_prescription(self) -> Optional[PrescriptionInfo]:
        raw = self._data.get("prescription")
        if raw is None:
            return None
        return PrescriptionInfo(
            total_dose_cgy=float(raw["total_dose_cgy"]),
            fractional_dose_cgy=float(raw["fractional_dose_cgy"]),
        )

    def get_beams_spreadsheet(self) -> Optional[BeamsSpreadsheet]:
        raw = self._data.get("beams")
        if raw is None:
            return None
        return BeamsSpreadsheet(
            general=_parse_list(raw.get("general"), _parse_general),
            geometry=_parse_list(raw.get("geometry"), _parse_geometry),
            treatment_aids=_parse_list(raw.get("treatment_aids"), _parse_treatment_aids),
        )

    def request_dvh_statistics(self) -> Optional[threading.Event]:
        # Las estadísticas del snapshot ya están calculadas.
        ready = threading.Event()
        ready.set()
        return ready

    def get_dvh_statistics(self) -> Optional[DVHStatistics]:
        raw = self._data.get("dvh_statistics")
        if raw is None or raw.get("structures") is None:
            return None
        return DVHStatistics(
            structures=[
                StructureStatistics(
                    structure_name=str(s["structure_name"]),
                    max_dose=float(s.get("max_dose", 0.0)),
                    conformity_index=float(s.get("conformity_index", 0.0)),
                    heterogeneity_index=float(s.get("heterogeneity_index", 0.0)),
                )
                for s in raw["structures"]
            ]
        )

    def get_calculation_properties(self) -> Optional[CalculationProperties]:
        raw = self._data.get("calculation")
        if raw is None:
            return None
        return CalculationProperties(
            dose_deposition=_opt_str(raw.get("dose_deposition")),
            final_calculation_algorithm=_opt_str(raw.get("final_calculation_algorithm")),
            grid_spacing=float(raw.get("grid_spacing", 0.0)),
            max_particles_per_beam=float(raw.get("max_particles_per_beam", 0.0)),
        )
