# src/qa/reporting.py

"""
reporting.py
============

Renderers de la plan check que no necesitan servidor:

  - build_grid_rows     → filas para el grid interactivo (app.ui_fastapi)
  - print_results       → el mismo grid en consola, con colores ANSI
  - format_report_text  → reporte de texto plano por categoría
  - save_report         → escribe el reporte en disco (UTF-8)

Todos consumen la vista agrupada de qa.ordering.grouped_view y calculan
los mismos tres contadores (Error / Warning / Info). Ninguno modifica
los resultados.

Controlado vía qa.config.get_reporting_config().
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from core.case import CheckResult, PlanCheckReport, Severity
from core.errors import ReportWriteError
from qa.config import get_default_output_dir, get_qa_logger, get_reporting_config
from qa.ordering import GroupedResults, flatten_groups, grouped_view

logger = get_qa_logger("plan_check.qa.reporting")

_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\r\n\t]')


# ------------------------------------------------------------
# Contadores y resumen
# ------------------------------------------------------------

def count_by_severity(results: Iterable[CheckResult]) -> Tuple[int, int, int]:
    """(errores, warnings, info)."""
    errors = warnings = info = 0
    for chk in results:
        if chk.severity is Severity.ERROR:
            errors += 1
        elif chk.severity is Severity.WARNING:
            warnings += 1
        else:
            info += 1
    return errors, warnings, info


def format_summary(counts: Tuple[int, int, int]) -> str:
    errors, warnings, info = counts
    template = get_reporting_config()["labels"]["summary"]
    return template.format(errors=errors, warnings=warnings, info=info)


def _result_mark(chk: CheckResult) -> str:
    """✓/✗ más [E] o [W] según severidad; Info no lleva etiqueta."""
    cfg = get_reporting_config()
    mark = cfg["pass_mark"] if chk.passed else cfg["fail_mark"]
    return mark + cfg["severity_tags"].get(chk.severity.label, "")


# ------------------------------------------------------------
# Grid (HTML / consola)
# ------------------------------------------------------------

def build_grid_rows(grouped: GroupedResults) -> List[Dict[str, Any]]:
    """
    Una fila por resultado, grupo tras grupo, con la clase CSS de su
    severidad. El orden de filas es exactamente el del reporte de texto.
    """
    row_classes = get_reporting_config()["row_classes"]
    rows: List[Dict[str, Any]] = []
    for category, checks in grouped:
        for chk in checks:
            rows.append(
                {
                    "category": category.label,
                    "item": chk.item,
                    "passed": chk.passed,
                    "actual_value": chk.actual_value or "",
                    "expected_value": chk.expected_value or "",
                    "severity": chk.severity.label,
                    "row_class": row_classes[chk.severity.label],
                }
            )
    return rows


def _color(text: str, severity: Severity) -> str:
    cfg = get_reporting_config()
    if not cfg.get("use_colors", True):
        return text

    if severity is Severity.ERROR:
        c = cfg["color_error"]
    elif severity is Severity.WARNING:
        c = cfg["color_warning"]
    else:
        c = cfg["color_info"]

    if not c:
        return text
    return f"{c}{text}{cfg['color_reset']}"


def print_results(report: PlanCheckReport) -> None:
    """
    Versión de consola del grid interactivo (para --no-ui).
    """
    cfg = get_reporting_config()
    grouped = grouped_view(report.checks)
    width = int(cfg["title_rule_width"])

    print("\n" + "=" * width)
    print(f" {cfg['labels']['title']} - {report.patient.id} / {report.plan_id}")
    print("=" * width)

    for category, checks in grouped:
        print(f"\n[{category.label}]")
        for chk in checks:
            line = f"{_result_mark(chk):<5} {chk.item}: {chk.actual_value or ''}"
            if chk.expected_value:
                line += f"  (expected: {chk.expected_value})"
            print(_color(line, chk.severity))

    print("\n" + "=" * width)
    print(format_summary(count_by_severity(flatten_groups(grouped))))
    print("=" * width + "\n")


# ------------------------------------------------------------
# Reporte de texto
# ------------------------------------------------------------

def _table_row(values: List[str]) -> str:
    widths = get_reporting_config()["column_widths"]
    cells = [f"{v:<{w}}" for v, w in zip(values, widths)]
    return " ".join(cells).rstrip()


def format_report_text(grouped: GroupedResults, generated_at: datetime) -> str:
    """
    Reporte plano:

        ====...====
                PLAN CHECK RESULTS
        ====...====

        Summary: E errors, W warnings, I info items

        [Category]
        ----...----
        Item  Result  Actual  Expected
        ----...----
        ...

        ====...====
        Generated: YYYY-MM-DD HH:MM:SS
    """
    cfg = get_reporting_config()
    labels = cfg["labels"]
    title_rule = "=" * int(cfg["title_rule_width"])
    section_rule = "-" * int(cfg["section_rule_width"])

    lines: List[str] = [
        title_rule,
        labels["title"].center(int(cfg["title_rule_width"])).rstrip(),
        title_rule,
        "",
        format_summary(count_by_severity(flatten_groups(grouped))),
        "",
    ]

    for category, checks in grouped:
        lines.append(f"[{category.label}]")
        lines.append(section_rule)
        lines.append(_table_row(labels["columns"]))
        lines.append(section_rule)
        for chk in checks:
            lines.append(
                _table_row([
                    chk.item,
                    _result_mark(chk),
                    chk.actual_value or "",
                    chk.expected_value or "",
                ])
            )
        lines.append("")

    lines.append(title_rule)
    lines.append(labels["generated"].format(timestamp=generated_at.strftime(cfg["timestamp_format"])))
    return "\n".join(lines) + "\n"


def build_report_filename(report: PlanCheckReport, run_time: datetime) -> str:
    cfg = get_reporting_config()
    name = cfg["filename_template"].format(
        patient_id=report.patient.id or "",
        patient_name=report.patient.name or "",
        plan_id=report.plan_id,
        timestamp=run_time.strftime(cfg["filename_timestamp_format"]),
    )
    return _UNSAFE_FILENAME_CHARS.sub("_", name)


def save_report(
    report: PlanCheckReport,
    output_dir: Optional[Path] = None,
    run_time: Optional[datetime] = None,
) -> Path:
    """
    Escribe el reporte en <output_dir>/<PlanCheck_...>.txt y devuelve la ruta.
    Crea la carpeta si no existe. Lanza ReportWriteError si no se puede escribir.
    """
    run_time = run_time or datetime.now()
    output_dir = Path(output_dir) if output_dir is not None else get_default_output_dir()
    path = output_dir / build_report_filename(report, run_time)

    text = format_report_text(grouped_view(report.checks), generated_at=run_time)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding=get_reporting_config()["encoding"])
    except OSError as e:
        raise ReportWriteError(f"Could not write report to {path}: {e}") from e

    logger.info("Report saved: %s", path)
    return path
