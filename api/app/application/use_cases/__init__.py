"""
Casos de uso de la aplicacion.
"""
from .report_use_cases import ReportUseCases
from .sync_use_cases import SyncUseCases

__all__ = ["ReportUseCases", "SyncUseCases"]
