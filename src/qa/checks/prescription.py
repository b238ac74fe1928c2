"""
checks/prescription.py
======================

Checks de prescripción y dosis:

  - check_prescribed_dose   → dosis total prescrita >= mínimo (Error)
  - check_fraction_dose     → dosis por fracción >= mínimo (Error)
  - check_max_dose_ratio    → Dmax del plan / dosis prescrita <= 1.17 (Warning)

La dosis máxima del plan es el máximo de las Dmax de todas las
estructuras en las estadísticas DVH del host (0 si no hay estadísticas).
El ratio solo se evalúa si ambas dosis son positivas: la falta de datos
no es un error, y un ratio alto es solo una advertencia.
"""

from __future__ import annotations

from typing import List, Optional

import numpy as np

from core.case import Category, CheckResult, DVHStatistics, PrescriptionInfo, Severity
from qa.config import get_plan_check_limits, get_qa_logger

logger = get_qa_logger("plan_check.qa.checks.prescription")


# =====================================================
# Utils internos
# =====================================================

def get_max_plan_dose(stats: Optional[DVHStatistics]) -> float:
    """
    Dmax del plan (cGy): máximo sobre todas las estructuras.
    Devuelve 0.0 si no hay estadísticas o no hay estructuras.
    """
    if stats is None or not stats.structures:
        return 0.0

    max_doses = np.array([s.max_dose for s in stats.structures], dtype=float)
    max_dose = float(np.nanmax(max_doses)) if not np.all(np.isnan(max_doses)) else 0.0
    return max(max_dose, 0.0)


# =====================================================
# Checks individuales
# =====================================================

def check_prescribed_dose(rx: PrescriptionInfo) -> CheckResult:
    min_dose = get_plan_check_limits()["min_dose_cgy"]
    return CheckResult.evaluate(
        Category.PRESCRIPTION,
        "Prescribed dose",
        passed=rx.total_dose_cgy >= min_dose,
        on_fail=Severity.ERROR,
        actual_value=f"{rx.total_dose_cgy:.2f} cGy",
        expected_value=f">= {min_dose:.1f} cGy",
    )


def check_fraction_dose(rx: PrescriptionInfo) -> CheckResult:
    min_dose = get_plan_check_limits()["min_dose_cgy"]
    return CheckResult.evaluate(
        Category.PRESCRIPTION,
        "Fraction dose",
        passed=rx.fractional_dose_cgy >= min_dose,
        on_fail=Severity.ERROR,
        actual_value=f"{rx.fractional_dose_cgy:.2f} cGy",
        expected_value=f">= {min_dose:.1f} cGy",
    )


def check_max_dose_ratio(rx_dose: float, max_dose: float) -> Optional[CheckResult]:
    """
    Dmax / Rx. Devuelve None (sin resultado) si alguna de las dos dosis
    no es positiva.
    """
    if not (max_dose > 0 and rx_dose > 0):
        return None

    max_ratio = get_plan_check_limits()["max_dose_ratio"]
    ratio = max_dose / rx_dose
    logger.info("Max dose check: plan max dose / prescribed dose <= %.2f", max_ratio)

    return CheckResult.evaluate(
        Category.PRESCRIPTION,
        "Max dose ratio",
        passed=ratio <= max_ratio,
        on_fail=Severity.WARNING,
        actual_value=f"{ratio:.3f} ({max_dose:.1f} cGy / {rx_dose:.1f} cGy)",
        expected_value=f"<= {max_ratio:.2f}",
    )


# =====================================================
# Punto de entrada de este módulo
# =====================================================

def run_prescription_checks(
    rx: Optional[PrescriptionInfo],
    stats: Optional[DVHStatistics],
) -> List[CheckResult]:
    if rx is None:
        logger.warning("Could not retrieve prescription information.")
        return []

    results: List[CheckResult] = [
        check_prescribed_dose(rx),
        check_fraction_dose(rx),
    ]

    ratio_result = check_max_dose_ratio(rx.total_dose_cgy, get_max_plan_dose(stats))
    if ratio_result is not None:
        results.append(ratio_result)

    return results
