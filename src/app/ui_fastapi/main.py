from pathlib import Path
import threading
import webbrowser
from typing import Any, Callable, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from core.case import PlanCheckReport
from core.errors import UIStartError
from qa.config import get_qa_logger, get_reporting_config, get_ui_config
from qa.ordering import flatten_groups, grouped_view
from qa.reporting import build_grid_rows, count_by_severity, format_summary

BASE_DIR = Path(__file__).resolve().parent          # .../app/ui_fastapi

logger = get_qa_logger("plan_check.app.ui")

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


# ==========================================================
# Helpers
# ==========================================================

def build_grid_context(report: PlanCheckReport) -> Dict[str, Any]:
    """
    Todo lo que necesita la plantilla: filas ya ordenadas/agrupadas,
    contadores y línea de resumen.
    """
    grouped = grouped_view(report.checks)
    errors, warnings, info = count_by_severity(flatten_groups(grouped))

    return {
        "title": get_ui_config()["title"],
        "patient": report.patient,
        "plan_id": report.plan_id,
        "columns": get_reporting_config()["labels"]["grid_columns"],
        "rows": build_grid_rows(grouped),
        "summary": {
            "errors": errors,
            "warnings": warnings,
            "info": info,
            "text": format_summary((errors, warnings, info)),
        },
    }


# ==========================================================
# FASTAPI APP
# ==========================================================

def create_app(
    report: PlanCheckReport,
    on_close: Optional[Callable[[], None]] = None,
) -> FastAPI:
    """
    App de solo lectura para un único PlanCheckReport.

    POST /close termina la sesión interactiva (llama a ``on_close``).
    """
    app = FastAPI(title=get_ui_config()["title"])

    app.mount(
        "/static",
        StaticFiles(directory=str(BASE_DIR / "static")),
        name="static",
    )

    context = build_grid_context(report)
    closed = threading.Event()
    app.state.closed = closed

    # ------------------------------------------------------
    # GET /  → grid de resultados
    # ------------------------------------------------------
    @app.get("/", response_class=HTMLResponse)
    async def home(request: Request):
        return templates.TemplateResponse(
            request,
            "index.html",
            {**context, "closed": closed.is_set()},
        )

    # ------------------------------------------------------
    # GET /api/results → mismas filas en JSON
    # ------------------------------------------------------
    @app.get("/api/results")
    async def api_results():
        return JSONResponse(
            {
                "patient_id": report.patient.id,
                "plan_id": report.plan_id,
                "summary": context["summary"],
                "rows": context["rows"],
            }
        )

    # ------------------------------------------------------
    # POST /close → fin de la sesión interactiva
    # ------------------------------------------------------
    @app.post("/close", response_class=HTMLResponse)
    async def close(request: Request):
        if not closed.is_set():
            closed.set()
            logger.info("Interactive session closed by user.")
            if on_close is not None:
                on_close()
        return templates.TemplateResponse(
            request,
            "index.html",
            {**context, "closed": True},
        )

    return app


def serve_results(
    report: PlanCheckReport,
    host: Optional[str] = None,
    port: Optional[int] = None,
    open_browser: Optional[bool] = None,
) -> None:
    """
    Sirve el grid en local y BLOQUEA hasta que el usuario cierra la
    sesión (botón "Close") o se interrumpe el servidor (Ctrl+C).

    Si el servidor no llega a arrancar (puerto ocupado, host inválido)
    lanza UIStartError y el navegador no se abre.
    """
    cfg = get_ui_config()
    host = host or cfg["host"]
    port = int(port if port is not None else cfg["port"])
    open_browser = cfg["open_browser"] if open_browser is None else open_browser

    server: Optional[uvicorn.Server] = None

    def _stop() -> None:
        if server is not None:
            server.should_exit = True

    app = create_app(report, on_close=_stop)
    server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level="warning"))

    url = f"http://{host}:{port}/"
    logger.info("Plan check results available at %s", url)
    print(f"[UI] Results: {url}  (press 'Close' in the page or Ctrl+C to finish)")

    def _open_browser() -> None:
        # solo si uvicorn ya terminó el arranque
        if server is not None and server.started and not server.should_exit:
            webbrowser.open(url)

    timer: Optional[threading.Timer] = None
    if open_browser:
        timer = threading.Timer(0.5, _open_browser)
        timer.daemon = True
        timer.start()

    try:
        server.run()
    except SystemExit as e:
        # uvicorn termina con sys.exit(...) si no puede hacer bind
        raise UIStartError(f"Could not start the results UI at {url} (exit code {e.code}).") from e
    finally:
        if timer is not None:
            timer.cancel()

    if not server.started:
        raise UIStartError(f"Could not start the results UI at {url}.")
