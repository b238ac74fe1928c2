# src/app/cli.py

"""
CLI de la plan check.

Uso típico desde la raíz del repo (con el paquete instalado):

    plan-check --snapshot ./exports/plan_snapshot.json
    plan-check --rtplan ./data_raw/patient_001/RTPLAN.dcm --no-ui

Qué hace:
  1) Abre la fuente de datos del host (snapshot JSON o RTPLAN DICOM).
  2) Ejecuta evaluate_plan (todos los grupos de checks).
  3) Muestra el grid interactivo (FastAPI local) o, con --no-ui, el
     mismo grid en consola.
  4) Al cerrar la sesión interactiva guarda el reporte de texto.
"""

import argparse
import logging.config
import sys
from pathlib import Path
from typing import Callable, Optional

from core.case import PlanCheckReport
from core.dicom_source import DicomPlanSource
from core.host import PlanDataSource
from core.snapshot_source import SnapshotPlanSource
from qa.config import get_logging_config, get_qa_logger, get_reporting_config, get_ui_config
from qa.engine import evaluate_plan
from qa.reporting import print_results, save_report

logger = get_qa_logger("plan_check.app")

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_SAVE_FAILED = 2


def _log_failure(message: str, exc: BaseException) -> None:
    """
    Log de un fallo visible para el usuario: mensaje, excepción interna
    (si la hay) y stack trace.
    """
    logger.error(message)
    inner = exc.__cause__ or exc.__context__
    if inner is not None:
        logger.error("Inner exception: %s", inner)
    logger.error("Stack trace:", exc_info=exc)


def run_plan_check(
    open_source: Callable[[], Optional[PlanDataSource]],
    present: Callable[[PlanCheckReport], None],
    output_dir: Optional[Path] = None,
) -> int:
    """
    Frontera de más alto nivel de una corrida.

      - Fallo al abrir el host o al obtener paciente/plan → error
        bloqueante al usuario + log, sin resultados. EXIT_FATAL.
      - Si no, se muestran los resultados (``present``) y, al terminar
        la sesión interactiva, se guarda el reporte con los mismos
        resultados.

    Ninguna excepción sale de esta función.
    """
    labels = get_reporting_config()["labels"]

    try:
        report = evaluate_plan(open_source())
    except Exception as e:
        msg = labels["run_failed"].format(error=e)
        print(f"[ERROR] {msg}", file=sys.stderr)
        _log_failure(msg, e)
        return EXIT_FATAL

    try:
        present(report)
    except KeyboardInterrupt:
        logger.info("Interactive session interrupted; saving report.")
    except Exception as e:
        _log_failure(f"Could not display results: {e}", e)

    try:
        path = save_report(report, output_dir=output_dir)
    except Exception as e:
        msg = labels["save_failed"].format(error=e)
        print(f"[ERROR] {msg}", file=sys.stderr)
        _log_failure(msg, e)
        return EXIT_SAVE_FAILED

    print(labels["saved"].format(path=path))
    logger.info("Plan check completed successfully.")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    ui = get_ui_config()
    parser = argparse.ArgumentParser(
        prog="plan-check",
        description="Plan check: evalúa un plan de radioterapia contra el catálogo fijo de reglas.",
    )
    src = parser.add_mutually_exclusive_group(required=True)
    src.add_argument(
        "--snapshot",
        type=Path,
        help="Export JSON con los hechos del host (paciente, plan, beams, DVH, cálculo).",
    )
    src.add_argument(
        "--rtplan",
        type=Path,
        help="RTPLAN DICOM (sin estadísticas DVH ni parámetros de cálculo).",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Carpeta del reporte (por defecto ~/Desktop/PlanCheck).",
    )
    parser.add_argument(
        "--no-ui",
        action="store_true",
        help="Mostrar el grid en consola en lugar de la UI web local.",
    )
    parser.add_argument("--host", default=ui["host"], help="Host de la UI local.")
    parser.add_argument("--port", type=int, default=ui["port"], help="Puerto de la UI local.")
    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="No abrir el navegador automáticamente.",
    )
    parser.add_argument("--log-level", default="INFO", help="Nivel de logging (INFO, DEBUG, ...).")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.config.dictConfig(get_logging_config(args.log_level))

    if args.snapshot is not None:
        def open_source():
            return SnapshotPlanSource.from_file(args.snapshot)
    else:
        def open_source():
            return DicomPlanSource.from_file(args.rtplan)

    if args.no_ui:
        present = print_results
    else:
        # import local: solo la UI web necesita fastapi/uvicorn
        from app.ui_fastapi.main import serve_results

        def present(report: PlanCheckReport) -> None:
            serve_results(report, host=args.host, port=args.port, open_browser=not args.no_browser)

    return run_plan_check(open_source, present, output_dir=args.output_dir)


if __name__ == "__main__":
    sys.exit(main())
