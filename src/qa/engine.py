# src/qa/engine.py

from __future__ import annotations

import time
from typing import Callable, List, Optional

from core.case import CheckResult, PlanCheckReport
from core.errors import HostDataError
from core.host import PlanDataSource
from qa.config import get_qa_logger
from .checks import run_all_checks

logger = get_qa_logger("plan_check.qa.engine")


def evaluate_plan(
    source: Optional[PlanDataSource],
    sleep: Callable[[float], None] = time.sleep,
) -> PlanCheckReport:
    """
    Interfaz de alto nivel de la plan check.

    Toma una fuente de datos del host y devuelve un PlanCheckReport con
    todos los CheckResult de la corrida (en orden de emisión).

    Sin host, sin paciente actual o sin plan activo no hay corrida:
    se lanza HostDataError antes de producir ningún resultado. Cualquier
    otro problema queda aislado dentro de su grupo de checks.
    """
    if source is None:
        raise HostDataError("Failed to initialize the host application connection.")

    patient = source.get_patient()
    if patient is None:
        raise HostDataError("Failed to retrieve the current patient.")

    plan_id = source.get_active_plan_id()
    if plan_id is None:
        raise HostDataError("Failed to retrieve the active treatment plan.")

    logger.info("Plan check started: patient=%s plan=%s", patient.id, plan_id)

    # 1) Correr todos los grupos de checks
    checks: List[CheckResult] = run_all_checks(source, patient, plan_id, sleep=sleep)

    # 2) Empaquetar
    report = PlanCheckReport(patient=patient, plan_id=plan_id, checks=checks)
    logger.info(
        "Plan check evaluated: %d errors, %d warnings, %d info items",
        report.num_errors, report.num_warnings, report.num_info,
    )
    return report
