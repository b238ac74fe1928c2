# src/core/errors.py


class PlanCheckError(Exception):
    """Error base de la plan check."""


class HostDataError(PlanCheckError):
    """
    Fallo fatal al obtener del host los datos mínimos de la corrida
    (conexión, paciente actual o plan activo). Aborta la corrida.
    """


class ReportWriteError(PlanCheckError):
    """No se pudo persistir el reporte de texto."""


class UIStartError(PlanCheckError):
    """No se pudo levantar la UI interactiva (p.ej. puerto ocupado)."""
