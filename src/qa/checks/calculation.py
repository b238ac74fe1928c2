from __future__ import annotations

from typing import List, Optional

from core.case import CalculationProperties, Category, CheckResult
from qa.config import get_plan_check_limits, get_qa_logger
from .plan import NOT_AVAILABLE

logger = get_qa_logger("plan_check.qa.checks.calculation")


def run_calculation_checks(props: Optional[CalculationProperties]) -> List[CheckResult]:
    """
    Parámetros de cálculo, todos informativos. El rango de grid spacing
    solo aparece en el texto esperado; no se evalúa.
    """
    if props is None:
        logger.warning("Could not retrieve calculation properties.")
        return []

    grid_range = get_plan_check_limits()["grid_spacing_range"]
    return [
        CheckResult.info(
            Category.CALCULATION_SETTINGS,
            "Dose deposition algorithm",
            props.dose_deposition or NOT_AVAILABLE,
            "Calculate dose deposition to",
        ),
        CheckResult.info(
            Category.CALCULATION_SETTINGS,
            "Final calculation algorithm",
            props.final_calculation_algorithm or NOT_AVAILABLE,
        ),
        CheckResult.info(
            Category.CALCULATION_SETTINGS,
            "Grid spacing",
            f"{props.grid_spacing:.2f}",
            grid_range,
        ),
        CheckResult.info(
            Category.CALCULATION_SETTINGS,
            "Max particles per beam",
            f"{props.max_particles_per_beam:.0f}",
            "Configured",
        ),
    ]
