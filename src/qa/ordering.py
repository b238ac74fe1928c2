# src/qa/ordering.py

"""
Orden y agrupación de resultados.

Única fuente de verdad del orden que usan TODOS los renderers (grid,
consola y archivo de texto). Ningún renderer reordena por su cuenta.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from core.case import Category, CheckResult

GroupedResults = List[Tuple[Category, List[CheckResult]]]


def result_sort_key(chk: CheckResult) -> Tuple[int, int, str, str, str, str]:
    """
    Clave de orden:
      1) severidad (Error < Warning < Info)
      2) Prescription antes que cualquier otra categoría
      3) nombre de categoría
      4) nombre del item
      5) valores actual / esperado, para que el orden sea total
    """
    return (
        chk.severity.rank,
        0 if chk.category is Category.PRESCRIPTION else 1,
        chk.category.label,
        chk.item,
        chk.actual_value or "",
        chk.expected_value or "",
    )


def order_results(results: Iterable[CheckResult]) -> List[CheckResult]:
    """Orden estable e idempotente; no modifica la entrada."""
    return sorted(results, key=result_sort_key)


def group_results(ordered: Iterable[CheckResult]) -> GroupedResults:
    """
    Agrupa por categoría. Los grupos aparecen en el orden de la primera
    aparición de su categoría y dentro de cada grupo se conserva el orden
    recibido.
    """
    grouped: Dict[Category, List[CheckResult]] = {}
    for chk in ordered:
        grouped.setdefault(chk.category, []).append(chk)
    return list(grouped.items())


def grouped_view(results: Iterable[CheckResult]) -> GroupedResults:
    """order_results + group_results: lo que consumen los renderers."""
    return group_results(order_results(results))


def flatten_groups(grouped: GroupedResults) -> List[CheckResult]:
    return [chk for _, checks in grouped for chk in checks]
