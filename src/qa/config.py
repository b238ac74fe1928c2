from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, TypedDict


# ============================================================
# 1) LÍMITES DE LOS CHECKS
#    El catálogo de reglas es fijo: estos valores NO se
#    sobreescriben en tiempo de ejecución.
# ============================================================

class PlanCheckLimits(TypedDict):
    min_mu: float                 # MU mínimas por beam/fracción
    min_dose_cgy: float           # dosis total y por fracción mínimas (cGy)
    max_dose_ratio: float         # Dmax plan / dosis prescrita
    min_jaw_pair_cm: float        # Width1+Width2 y Length1+Length2 (cm)
    plan_id_pattern: str          # prefijo de técnica + 3 dígitos
    field_id_pattern: str         # 4 dígitos
    ptv_marker: str               # substring (case-sensitive) de estructuras objetivo
    grid_spacing_range: str       # rango orientativo, solo texto


PLAN_CHECK_LIMITS: PlanCheckLimits = {
    "min_mu": 10.0,
    "min_dose_cgy": 1.0,
    "max_dose_ratio": 1.17,
    "min_jaw_pair_cm": 3.0,
    "plan_id_pattern": r"(3D|VMAT|DCAT)[0-9]{3}",
    "field_id_pattern": r"[0-9]{4}",
    "ptv_marker": "PTV",
    "grid_spacing_range": "0.1 ~ 0.8",
}


def get_plan_check_limits() -> PlanCheckLimits:
    return PLAN_CHECK_LIMITS


# ============================================================
# 2) DVH
# ============================================================

DVH_CONFIG: Dict[str, Any] = {
    # Tiempo de asentamiento tras pedir las estadísticas DVH al host.
    # Se usa como retardo fijo cuando el host no da señal de fin, y como
    # timeout máximo de espera cuando sí la da. 0.5 s es el valor con el
    # que se ha usado en clínica; no está verificado que baste siempre.
    "settle_seconds": 0.5,
}


def get_dvh_config() -> Dict[str, Any]:
    return DVH_CONFIG


# ============================================================
# 3) REPORTING (grid interactivo, consola y archivo de texto)
# ============================================================

REPORTING_CONFIG: Dict[str, Any] = {
    "labels": {
        "title": "PLAN CHECK RESULTS",
        "summary": "Summary: {errors} errors, {warnings} warnings, {info} info items",
        "generated": "Generated: {timestamp}",
        "columns": ["Item", "Result", "Actual", "Expected"],
        "grid_columns": ["Category", "Item", "Pass", "Actual value", "Expected value", "Severity"],
        "saved": "Plan check finished. Results saved to:\n{path}",
        "save_failed": "Error while saving the results file: {error}",
        "run_failed": "Error during plan check: {error}",
    },
    # Reporte de texto
    "title_rule_width": 82,
    "section_rule_width": 80,
    "column_widths": [30, 7, 20, 20],
    "pass_mark": "✓",
    "fail_mark": "✗",
    "severity_tags": {"Error": "[E]", "Warning": "[W]", "Info": ""},
    "timestamp_format": "%Y-%m-%d %H:%M:%S",
    # Archivo
    "output_subfolder": "PlanCheck",
    "filename_template": "PlanCheck_{patient_id}_{patient_name}_{plan_id}_{timestamp}.txt",
    "filename_timestamp_format": "%Y%m%d_%H%M%S",
    "encoding": "utf-8",
    # Colores (grid HTML y consola)
    "row_classes": {"Error": "row-error", "Warning": "row-warning", "Info": "row-info"},
    "use_colors": True,
    "color_error": "\033[91m",
    "color_warning": "\033[93m",
    "color_info": "",
    "color_reset": "\033[0m",
}


def get_reporting_config() -> Dict[str, Any]:
    """
    Config de la capa de reporting/UI.
    """
    return REPORTING_CONFIG


def get_default_output_dir() -> Path:
    """
    Carpeta por defecto del reporte: <home>/Desktop/<output_subfolder>.
    """
    return Path.home() / "Desktop" / REPORTING_CONFIG["output_subfolder"]


# ============================================================
# 4) UI INTERACTIVA (FastAPI local)
# ============================================================

UI_CONFIG: Dict[str, Any] = {
    "title": "Plan Check",
    "host": "127.0.0.1",
    "port": 8765,
    "open_browser": True,
}


def get_ui_config() -> Dict[str, Any]:
    return UI_CONFIG


# ============================================================
# 5) LOGGING CONFIG
# ============================================================

# Esta sección NO configura el logging de Python por sí sola,
# solo define un dict estilo logging.config.dictConfig que la
# aplicación pasa a logging.config.dictConfig(LOGGING_CONFIG).

LOGGING_CONFIG: Dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "root": {
        "level": "INFO",
        "handlers": ["console"],
    },
    "formatters": {
        "simple": {
            "format": "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
            "level": "INFO",
        },
    },
    "loggers": {
        # Logger principal del motor
        "plan_check": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
        "plan_check.qa.checks": {
            "level": "INFO",
        },
    },
}


def get_logging_config(level: str | None = None) -> Dict[str, Any]:
    """
    Devuelve la configuración de logging para
    logging.config.dictConfig(...). Si se pasa ``level`` se aplica al
    logger principal y al handler de consola (copia, no modifica el dict base).
    """
    if level is None:
        return LOGGING_CONFIG

    level = level.upper()
    cfg = {
        **LOGGING_CONFIG,
        "handlers": {
            name: {**h, "level": level} for name, h in LOGGING_CONFIG["handlers"].items()
        },
        "loggers": {
            name: {**lg, "level": level} for name, lg in LOGGING_CONFIG["loggers"].items()
        },
    }
    return cfg


def get_qa_logger(name: str = "plan_check.qa") -> logging.Logger:
    """
    Helper simple para obtener un logger consistente en todo el proyecto.
    No llama a dictConfig; se asume que la app lo hará en el arranque.
    """
    return logging.getLogger(name)
