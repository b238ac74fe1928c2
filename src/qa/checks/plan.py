from __future__ import annotations

import re
from typing import List, Optional

from core.case import Category, CheckResult, PatientInfo, Severity
from qa.config import get_plan_check_limits

NOT_AVAILABLE = "N/A"


# =====================================================
# 1) Identificación del paciente (informativo)
# =====================================================

def check_patient_identity(patient: Optional[PatientInfo]) -> List[CheckResult]:
    """
    ID, nombre y clínica del paciente. Siempre pasan; si un dato es None
    se muestra "N/A" (un texto vacío se muestra tal cual).
    """
    pid = patient.id if patient is not None else None
    name = patient.name if patient is not None else None
    clinic = patient.clinic if patient is not None else None

    return [
        CheckResult.info(Category.PATIENT, "Patient ID", pid if pid is not None else NOT_AVAILABLE),
        CheckResult.info(Category.PATIENT, "Patient name", name if name is not None else NOT_AVAILABLE),
        CheckResult.info(Category.PATIENT, "Clinic", clinic if clinic is not None else NOT_AVAILABLE),
    ]


# =====================================================
# 2) Formato del ID de plan
# =====================================================

def is_valid_plan_id(plan_id: Optional[str]) -> bool:
    """
    Técnica (3D, VMAT o DCAT) seguida de exactamente tres dígitos.
    Sensible a mayúsculas: "vmat001" no es válido.
    """
    if not plan_id:
        return False
    pattern = get_plan_check_limits()["plan_id_pattern"]
    return re.fullmatch(pattern, plan_id) is not None


def check_plan_id_format(plan_id: Optional[str]) -> CheckResult:
    valid = is_valid_plan_id(plan_id)
    return CheckResult.evaluate(
        Category.PLAN,
        "Plan ID format",
        passed=valid,
        on_fail=Severity.ERROR,
        actual_value=plan_id if plan_id is not None else NOT_AVAILABLE,
        expected_value="(3D|VMAT|DCAT) + 3 digits",
    )


# =====================================================
# Punto de entrada de este módulo
# =====================================================

def run_identity_checks(patient: Optional[PatientInfo], plan_id: Optional[str]) -> List[CheckResult]:
    """
    Ejecuta los checks de identificación (paciente + plan).
    """
    results: List[CheckResult] = []
    results.extend(check_patient_identity(patient))
    results.append(check_plan_id_format(plan_id))
    return results
