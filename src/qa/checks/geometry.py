from __future__ import annotations

from typing import List

from core.case import BeamGeometryProperty, Category, CheckResult, Severity
from qa.config import get_plan_check_limits


# =====================================================
# 1) Ángulos y arco (informativo)
# =====================================================

def check_beam_angles(geom: BeamGeometryProperty) -> List[CheckResult]:
    """
    Gantry / colimador / mesa del beam y, para arcos CW/CCW, dirección y
    longitud del arco.
    """
    results: List[CheckResult] = [
        CheckResult.info(
            Category.GEOMETRY,
            f"Angles (Beam {geom.beam_id})",
            f"Gantry: {geom.gantry:.1f}, Collimator: {geom.collimator:.1f}, Couch: {geom.couch:.1f}",
        )
    ]

    if geom.direction.is_arc:
        results.append(
            CheckResult.info(
                Category.GEOMETRY,
                f"Arc direction (Beam {geom.beam_id})",
                geom.direction.value,
            )
        )
        results.append(
            CheckResult.info(
                Category.GEOMETRY,
                f"Arc length (Beam {geom.beam_id})",
                f"{geom.arc_length:.1f}°",
            )
        )

    return results


# =====================================================
# 2) Mordazas del colimador
# =====================================================

def check_collimator_jaws(geom: BeamGeometryProperty) -> CheckResult:
    """
    Cada par de mordazas opuestas debe sumar más del mínimo:
    Width1+Width2 > 3.0 cm y Length1+Length2 > 3.0 cm.

    Con campos semiabiertos (una mordaza en 0.0) el umbral se aplica
    igual; la advertencia va en el texto esperado.
    """
    min_size = get_plan_check_limits()["min_jaw_pair_cm"]
    width_sum = geom.width1 + geom.width2
    length_sum = geom.length1 + geom.length2
    passed = width_sum > min_size and length_sum > min_size

    return CheckResult.evaluate(
        Category.COLLIMATOR,
        f"Collimator jaws (Beam {geom.beam_id})",
        passed=passed,
        on_fail=Severity.WARNING,
        actual_value=(
            f"Width1: {geom.width1:.1f} cm, Width2: {geom.width2:.1f} cm, "
            f"Length1: {geom.length1:.1f} cm, Length2: {geom.length2:.1f} cm"
        ),
        expected_value=(
            f"Width1 + Width2 > {min_size:.1f} cm, Length1 + Length2 > {min_size:.1f} cm. "
            "Half-open: Lower Length1=Y2=0.0 cm, Upper Length2=Y1=0.0 cm"
        ),
    )
