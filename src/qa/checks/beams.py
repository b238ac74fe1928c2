"""
checks/beams.py
===============

Checks de la hoja de beams del host. Un beam se identifica por su
``beam_id``, que aparece en el nombre de cada check repetido
("Minimum MU (Beam 2)", ...).

  - check_isocenter_consistency → todos los beams con el mismo isocentro (Warning)
  - check_beam_general          → formato de Field ID (Error), MU mínimas (Error),
                                  algoritmo / energía / isocentro (info)
  - geometry.*                  → ángulos, arco y mordazas
  - check_treatment_aids        → mesa activada (Warning), bolus, cuña (info)
"""

from __future__ import annotations

import re
from typing import List, Optional

from core.case import (
    BeamGeneralProperty,
    BeamsSpreadsheet,
    BeamTreatmentAidsProperty,
    Category,
    CheckResult,
    Severity,
)
from qa.config import get_plan_check_limits, get_qa_logger
from .geometry import check_beam_angles, check_collimator_jaws
from .plan import NOT_AVAILABLE

logger = get_qa_logger("plan_check.qa.checks.beams")


# =====================================================
# Helpers internos
# =====================================================

def is_valid_field_id(field_id: Optional[str]) -> bool:
    """Exactamente cuatro dígitos ASCII."""
    if not field_id:
        return False
    return re.fullmatch(get_plan_check_limits()["field_id_pattern"], field_id) is not None


# =====================================================
# 1) Consistencia del isocentro
# =====================================================

def check_isocenter_consistency(general: List[BeamGeneralProperty]) -> CheckResult:
    """
    Pasa solo si hay exactamente una ubicación de isocentro distinta entre
    todos los beams. Un beam sin isocentro cuenta como un valor distinto
    más, y una lista vacía no pasa. Planes multi-isocentro son válidos
    clínicamente, por eso es Warning.
    """
    locations = {
        p.isocenter.key if p.isocenter is not None else None
        for p in general
        if p is not None
    }
    same = len(locations) == 1

    return CheckResult.evaluate(
        Category.BEAM,
        "Isocenter consistency",
        passed=same,
        on_fail=Severity.WARNING,
        actual_value="All beams share the same isocenter" if same else "Isocenters do not match",
        expected_value="All beams should share the same isocenter",
    )


# =====================================================
# 2) Propiedades generales por beam
# =====================================================

def check_beam_general(prop: BeamGeneralProperty) -> List[CheckResult]:
    limits = get_plan_check_limits()
    min_mu = limits["min_mu"]
    bid = prop.beam_id

    results: List[CheckResult] = [
        CheckResult.evaluate(
            Category.BEAM,
            f"Field ID format (Beam {bid})",
            passed=is_valid_field_id(prop.field_id),
            on_fail=Severity.ERROR,
            actual_value=prop.field_id or NOT_AVAILABLE,
            expected_value="4 digits",
        ),
        CheckResult.evaluate(
            Category.BEAM,
            f"Minimum MU (Beam {bid})",
            passed=prop.mu_per_fraction >= min_mu,
            on_fail=Severity.ERROR,
            actual_value=f"{prop.mu_per_fraction:.2f}",
            expected_value=f">= {min_mu:.1f}",
        ),
        CheckResult.info(
            Category.BEAM,
            f"Calculation algorithm (Beam {bid})",
            str(prop.algorithm) if prop.algorithm is not None else NOT_AVAILABLE,
        ),
    ]

    if prop.energy:
        results.append(CheckResult.info(Category.BEAM, f"Energy (Beam {bid})", prop.energy))

    if prop.isocenter is not None:
        iso = prop.isocenter
        results.append(
            CheckResult.info(
                Category.BEAM,
                f"Isocenter position (Beam {bid})",
                f"({iso.x:.2f}, {iso.y:.2f}, {iso.z:.2f})",
                "Center of PTV",
            )
        )

    return results


# =====================================================
# 3) Accesorios de tratamiento
# =====================================================

def check_treatment_aids(aid: BeamTreatmentAidsProperty) -> List[CheckResult]:
    bid = aid.beam_id
    results: List[CheckResult] = [
        # mesa desactivada es precaución, no bloqueo
        CheckResult.evaluate(
            Category.TREATMENT_AIDS,
            f"Couch enabled (Beam {bid})",
            passed=aid.couch,
            on_fail=Severity.WARNING,
            actual_value=str(bool(aid.couch)),
            expected_value="True",
        ),
        CheckResult.info(
            Category.TREATMENT_AIDS,
            f"Bolus (Beam {bid})",
            aid.bolus if aid.bolus else "None",
        ),
    ]

    if aid.wedge_id:
        results.append(CheckResult.info(Category.TREATMENT_AIDS, f"Wedge ID (Beam {bid})", aid.wedge_id))

    return results


# =====================================================
# Punto de entrada de este módulo
# =====================================================

def run_beam_checks(sheet: Optional[BeamsSpreadsheet]) -> List[CheckResult]:
    """
    Ejecuta todos los checks de beams. Si falta la hoja o alguna de sus
    tres listas no se evalúa nada (warning en el log).
    """
    if sheet is None:
        logger.warning("Could not retrieve the beams spreadsheet.")
        return []

    if sheet.general is None or sheet.geometry is None or sheet.treatment_aids is None:
        logger.warning("Some or all beam properties could not be retrieved.")
        return []

    results: List[CheckResult] = [check_isocenter_consistency(sheet.general)]

    for prop in sheet.general:
        if prop is not None:
            results.extend(check_beam_general(prop))

    for geom in sheet.geometry:
        if geom is not None:
            results.extend(check_beam_angles(geom))
            results.append(check_collimator_jaws(geom))

    for aid in sheet.treatment_aids:
        if aid is not None:
            results.extend(check_treatment_aids(aid))

    return results
