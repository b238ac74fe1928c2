from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


# ---------------------------------------------------------
# Vocabulario cerrado: severidad y categoría
# ---------------------------------------------------------

class Severity(Enum):
    """
    Criticidad de un CheckResult.

    El orden total es explícito (``rank``) y NO depende del texto:
    Error < Warning < Info.
    """
    ERROR = "Error"
    WARNING = "Warning"
    INFO = "Info"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @property
    def label(self) -> str:
        return self.value


_SEVERITY_RANK: Dict[Severity, int] = {
    Severity.ERROR: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
}


class Category(Enum):
    """
    Grupo clínico de un check. Conjunto cerrado.

    El valor es la etiqueta que ve el usuario (grid y reporte) y también
    la clave de ordenación por nombre de categoría.
    """
    PATIENT = "Patient"
    PLAN = "Plan"
    PRESCRIPTION = "Prescription"
    BEAM = "Beam"
    GEOMETRY = "Geometry"
    COLLIMATOR = "Collimator"
    TREATMENT_AIDS = "Treatment Aids"
    DVH_STATISTICS = "DVH Statistics"
    CALCULATION_SETTINGS = "Calculation Settings"

    @property
    def label(self) -> str:
        return self.value


class ArcDirection(Enum):
    NONE = "NONE"
    CW = "CW"
    CCW = "CCW"

    @property
    def is_arc(self) -> bool:
        return self in (ArcDirection.CW, ArcDirection.CCW)


# Códigos aceptados en exports del host y en DICOM (GantryRotationDirection)
ARC_DIRECTION_CODES: Dict[str, ArcDirection] = {
    "NONE": ArcDirection.NONE,
    "CW": ArcDirection.CW,
    "CC": ArcDirection.CCW,
    "CCW": ArcDirection.CCW,
}


# ---------------------------------------------------------
# Resultados individuales de cada check
# ---------------------------------------------------------

@dataclass(frozen=True)
class CheckResult:
    """
    Resultado de un check individual de la plan check.

    - category: grupo clínico (Category)
    - item: nombre legible del check; si el check se repite por beam o
      por estructura lleva el identificador, p.ej. "Minimum MU (Beam 1)"
    - passed: True/False según el predicado del check
    - actual_value / expected_value: textos para mostrar (opcionales)
    - severity: Error / Warning / Info

    ``severity`` y ``passed`` se fijan juntos al construir el resultado y
    no se modifican después (dataclass congelada).
    """
    category: Category
    item: str
    passed: bool
    severity: Severity
    actual_value: Optional[str] = None
    expected_value: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.category, Category):
            raise TypeError(f"category debe ser Category, no {type(self.category).__name__}")
        if not isinstance(self.severity, Severity):
            raise TypeError(f"severity debe ser Severity, no {type(self.severity).__name__}")
        if not self.item:
            raise ValueError("item no puede estar vacío")
        if self.severity is Severity.INFO and not self.passed:
            raise ValueError(f"'{self.item}': un check fallido no puede tener severidad Info")
        if self.passed and self.severity is not Severity.INFO:
            raise ValueError(f"'{self.item}': un check que pasa siempre es Info")

    @classmethod
    def info(
        cls,
        category: Category,
        item: str,
        actual_value: Optional[str] = None,
        expected_value: Optional[str] = None,
    ) -> "CheckResult":
        """Entrada puramente informativa (siempre pasa)."""
        return cls(
            category=category,
            item=item,
            passed=True,
            severity=Severity.INFO,
            actual_value=actual_value,
            expected_value=expected_value,
        )

    @classmethod
    def evaluate(
        cls,
        category: Category,
        item: str,
        passed: bool,
        on_fail: Severity,
        actual_value: Optional[str] = None,
        expected_value: Optional[str] = None,
    ) -> "CheckResult":
        """
        Construye el resultado de un predicado: Info si pasa, ``on_fail``
        (Error o Warning, según la política del check) si no pasa.
        """
        if on_fail is Severity.INFO:
            raise ValueError("on_fail debe ser Error o Warning")
        return cls(
            category=category,
            item=item,
            passed=bool(passed),
            severity=Severity.INFO if passed else on_fail,
            actual_value=actual_value,
            expected_value=expected_value,
        )


# ---------------------------------------------------------
# Hechos del host (snapshots de solo lectura)
# ---------------------------------------------------------

@dataclass(frozen=True)
class PatientInfo:
    id: Optional[str]
    name: Optional[str]
    clinic: Optional[str] = None


@dataclass(frozen=True)
class PrescriptionInfo:
    """Prescripción activa. Ambas dosis en cGy."""
    total_dose_cgy: float
    fractional_dose_cgy: float


@dataclass(frozen=True)
class Isocenter:
    """
    Isocentro de un beam.

    ``location`` es el nombre/identificador de la ubicación en el host
    (p.ej. "ISO1"); si el host no lo da se usa la terna de coordenadas.
    """
    x: float
    y: float
    z: float
    location: Optional[str] = None

    @property
    def key(self) -> object:
        if self.location:
            return self.location
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class BeamGeneralProperty:
    beam_id: str
    field_id: Optional[str]
    mu_per_fraction: float
    algorithm: Optional[str] = None
    energy: Optional[str] = None
    isocenter: Optional[Isocenter] = None


@dataclass(frozen=True)
class BeamGeometryProperty:
    """
    Geometría de un beam. Ángulos en grados, mordazas en cm.

    Para arcos (CW / CCW) ``arc_length`` es la longitud del arco en grados.
    """
    beam_id: str
    gantry: float
    collimator: float
    couch: float
    direction: ArcDirection = ArcDirection.NONE
    arc_length: float = 0.0
    width1: float = 0.0
    width2: float = 0.0
    length1: float = 0.0
    length2: float = 0.0


@dataclass(frozen=True)
class BeamTreatmentAidsProperty:
    beam_id: str
    couch: bool
    bolus: Optional[str] = None
    wedge_id: Optional[str] = None


@dataclass(frozen=True)
class BeamsSpreadsheet:
    """
    Hoja de beams del host: propiedades generales, geométricas y de
    accesorios. Cada lista puede faltar (None) si el host no la entrega.
    """
    general: Optional[List[BeamGeneralProperty]]
    geometry: Optional[List[BeamGeometryProperty]]
    treatment_aids: Optional[List[BeamTreatmentAidsProperty]]


@dataclass(frozen=True)
class StructureStatistics:
    structure_name: str
    max_dose: float
    conformity_index: float = 0.0
    heterogeneity_index: float = 0.0


@dataclass(frozen=True)
class DVHStatistics:
    structures: List[StructureStatistics] = field(default_factory=list)


@dataclass(frozen=True)
class CalculationProperties:
    dose_deposition: Optional[str]
    final_calculation_algorithm: Optional[str]
    grid_spacing: float
    max_particles_per_beam: float


# ---------------------------------------------------------
# Resultado global de una corrida
# ---------------------------------------------------------

@dataclass
class PlanCheckReport:
    """
    Resultado de una corrida de plan check.

    Attributes
    ----------
    patient : PatientInfo
        Paciente actual tal como lo devolvió el host.
    plan_id : str
        Identificador del plan activo.
    checks : List[CheckResult]
        Todos los resultados, en orden de emisión (sin ordenar).
    """
    patient: PatientInfo
    plan_id: str
    checks: List[CheckResult] = field(default_factory=list)

    def count(self, severity: Severity) -> int:
        return sum(1 for c in self.checks if c.severity is severity)

    @property
    def num_errors(self) -> int:
        return self.count(Severity.ERROR)

    @property
    def num_warnings(self) -> int:
        return self.count(Severity.WARNING)

    @property
    def num_info(self) -> int:
        return self.count(Severity.INFO)

    @property
    def counts(self) -> Tuple[int, int, int]:
        return (self.num_errors, self.num_warnings, self.num_info)
