from __future__ import annotations

import time
from typing import Callable, List, Optional

from core.case import Category, CheckResult, DVHStatistics
from core.host import PlanDataSource
from qa.config import get_dvh_config, get_plan_check_limits, get_qa_logger

logger = get_qa_logger("plan_check.qa.checks.dvh")


def wait_for_dvh_statistics(
    source: PlanDataSource,
    sleep: Callable[[float], None] = time.sleep,
) -> Optional[DVHStatistics]:
    """
    Pide las estadísticas DVH al host, espera una vez y las lee una vez.

    El host las calcula de forma asíncrona. Si devuelve una señal de fin
    se espera en ella con timeout = settle_seconds; si no, se duerme el
    retardo fijo. No hay reintentos: si tras la espera no hay datos, el
    resultado es None.
    """
    settle = float(get_dvh_config()["settle_seconds"])
    signal = source.request_dvh_statistics()

    if signal is not None:
        if not signal.wait(timeout=settle):
            logger.warning("DVH statistics not signalled as ready after %.2f s; reading anyway.", settle)
    else:
        sleep(settle)

    return source.get_dvh_statistics()


def check_dvh_statistics(stats: Optional[DVHStatistics]) -> List[CheckResult]:
    """
    CI y HI (2 decimales) para cada estructura cuyo nombre contiene "PTV"
    (sensible a mayúsculas).
    """
    if stats is None:
        logger.warning("Could not retrieve DVH statistics.")
        return []

    marker = get_plan_check_limits()["ptv_marker"]
    results: List[CheckResult] = []
    for st in stats.structures:
        if marker not in (st.structure_name or ""):
            continue
        results.append(
            CheckResult.info(
                Category.DVH_STATISTICS,
                f"CI ({st.structure_name})",
                f"{st.conformity_index:.2f}",
                "Conformity Index (CI)",
            )
        )
        results.append(
            CheckResult.info(
                Category.DVH_STATISTICS,
                f"HI ({st.structure_name})",
                f"{st.heterogeneity_index:.2f}",
                "Heterogeneity Index (HI)",
            )
        )
    return results


def run_dvh_checks(
    source: PlanDataSource,
    sleep: Callable[[float], None] = time.sleep,
) -> List[CheckResult]:
    return check_dvh_statistics(wait_for_dvh_statistics(source, sleep=sleep))
