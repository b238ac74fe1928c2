# src/qa/checks/__init__.py

from __future__ import annotations

import time
from typing import Callable, List, Optional

from core.case import CheckResult, PatientInfo
from core.host import PlanDataSource
from qa.config import get_qa_logger

from . import beams, calculation, dvh, plan, prescription

logger = get_qa_logger("plan_check.qa.checks")


def run_check_group(name: str, group: Callable[[], List[CheckResult]]) -> List[CheckResult]:
    """
    Ejecuta un grupo de checks dentro de su propia frontera de fallo.

    Si el grupo lanza una excepción se registra (con stack trace) y el
    grupo aporta cero resultados; los grupos siguientes se ejecutan igual.
    """
    logger.info("-> %s checks...", name)
    try:
        results = list(group())
    except Exception:
        logger.exception("Error while checking %s; group skipped.", name)
        return []
    logger.info("-> %s checks OK. Num=%d", name, len(results))
    return results


def run_all_checks(
    source: PlanDataSource,
    patient: Optional[PatientInfo],
    plan_id: Optional[str],
    sleep: Callable[[float], None] = time.sleep,
) -> List[CheckResult]:
    """
    Llama, en orden fijo, a cada grupo de checks y concatena sus listas:

        identidad (paciente/plan) → prescripción y dosis → beams
        → estadísticas DVH → parámetros de cálculo

    Cada grupo obtiene sus propios hechos del host dentro de su frontera,
    así un fallo de lectura también queda aislado.
    """
    results: List[CheckResult] = []

    results.extend(run_check_group(
        "Patient/Plan identity",
        lambda: plan.run_identity_checks(patient, plan_id),
    ))
    results.extend(run_check_group(
        "Prescription and dose",
        lambda: prescription.run_prescription_checks(
            source.get_prescription(), source.get_dvh_statistics()
        ),
    ))
    results.extend(run_check_group(
        "Beam properties",
        lambda: beams.run_beam_checks(source.get_beams_spreadsheet()),
    ))
    results.extend(run_check_group(
        "DVH statistics",
        lambda: dvh.run_dvh_checks(source, sleep=sleep),
    ))
    results.extend(run_check_group(
        "Calculation settings",
        lambda: calculation.run_calculation_checks(source.get_calculation_properties()),
    ))

    return results
