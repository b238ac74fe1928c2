# src/qa/__init__.py

"""
Paquete principal de la plan check.

La lógica de checks individuales vive en `qa.checks`.
El motor de evaluación está en `qa.engine`, el orden/agrupación en
`qa.ordering` y los renderers de texto/consola en `qa.reporting`.
"""

from .checks import run_all_checks  # noqa: F401
