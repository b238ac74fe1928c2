# src/core/host.py

"""
host.py
=======

Interfaz de solo lectura hacia la aplicación clínica (el "host").

Cada grupo de hechos tiene su propio accessor y todos devuelven
``Optional[...]``: la ausencia de datos es un resultado tipado (None),
nunca una excepción. Los grupos de checks deciden qué hacer con None
(normalmente: log de warning y cero resultados).

Implementaciones incluidas:

  - core.snapshot_source.SnapshotPlanSource → export JSON del host
  - core.dicom_source.DicomPlanSource       → RTPLAN DICOM (pydicom)
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from core.case import (
    BeamsSpreadsheet,
    CalculationProperties,
    DVHStatistics,
    PatientInfo,
    PrescriptionInfo,
)


@runtime_checkable
class CompletionSignal(Protocol):
    """Cualquier objeto tipo threading.Event."""

    def wait(self, timeout: Optional[float] = None) -> bool:
        ...


@runtime_checkable
class PlanDataSource(Protocol):
    def get_patient(self) -> Optional[PatientInfo]:
        ...

    def get_active_plan_id(self) -> Optional[str]:
        ...

    def get_prescription(self) -> Optional[PrescriptionInfo]:
        ...

    def get_beams_spreadsheet(self) -> Optional[BeamsSpreadsheet]:
        ...

    def request_dvh_statistics(self) -> Optional[CompletionSignal]:
        """
        Pide al host que (re)calcule las estadísticas DVH.

        El cálculo en el host es asíncrono. Si el host expone una señal
        de fin de cálculo se devuelve aquí; si no, None y el llamador
        espera el retardo fijo de asentamiento.
        """
        ...

    def get_dvh_statistics(self) -> Optional[DVHStatistics]:
        ...

    def get_calculation_properties(self) -> Optional[CalculationProperties]:
        ...
