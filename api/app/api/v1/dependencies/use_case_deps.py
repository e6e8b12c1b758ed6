"""
Dependencias para inyeccion de casos de uso.
"""
from fastapi import Depends, Request

from app.application.use_cases.report_use_cases import ReportUseCases
from app.application.use_cases.sync_use_cases import SyncUseCases
from app.infrastructure.external.firestore_sync.sync_context import SyncContext
from app.shared.exceptions.base import AppException


def get_sync_context(request: Request) -> SyncContext:
    """
    Retorna el contexto de sync creado en el startup de la aplicacion.

    Raises:
        AppException: 503 si el startup no pudo construirlo
    """
    context = getattr(request.app.state, "sync_context", None)
    if context is None:
        raise AppException(
            message="El contexto de sincronizacion no esta inicializado",
            status_code=503,
            error_code="SYNC_NOT_READY",
        )
    return context


def get_sync_use_cases(
    context: SyncContext = Depends(get_sync_context)
) -> SyncUseCases:
    """
    Dependencia para obtener los casos de uso de sincronizacion.

    Returns:
        SyncUseCases: Orquestador pull / push / export
    """
    return SyncUseCases(context)


def get_report_use_cases(
    context: SyncContext = Depends(get_sync_context)
) -> ReportUseCases:
    """Dependencia para obtener los casos de uso de reportes."""
    return ReportUseCases(context.query)
