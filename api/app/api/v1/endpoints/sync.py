"""
Endpoints para sincronizacion Firestore <-> base local.
Permite disparar pull / push y descargar exportaciones desde la UI.
"""
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from loguru import logger

from app.api.v1.dependencies.use_case_deps import get_sync_use_cases
from app.application.dto.sync_dto import CleanupResponseDTO, SyncRunReportDTO, TableStatsDTO
from app.application.use_cases.sync_use_cases import SyncUseCases
from app.core.config import settings


router = APIRouter(prefix="/sync", tags=["Sync"])

_ENTITY_QUERY = Query(
    default=None,
    description="Entidad, coleccion o tabla. Si se omite se procesan todas.",
)


@router.post(
    "/pull",
    response_model=SyncRunReportDTO,
    status_code=status.HTTP_200_OK,
    summary="Importar Firestore a la base local"
)
async def pull_from_firestore(
    entity: Optional[str] = _ENTITY_QUERY,
    use_cases: SyncUseCases = Depends(get_sync_use_cases),
) -> SyncRunReportDTO:
    """
    Copia las colecciones de Firestore a las tablas locales.

    - Firestore gana en los campos que trae
    - isSynced local se conserva; las filas nuevas entran como sincronizadas
    - Un error en una entidad no corta las siguientes (ver reporte)
    """
    logger.info(f"Pull solicitado desde API (entidad={entity or 'todas'})")
    report = await use_cases.pull(entity)
    return SyncRunReportDTO.from_report(report)


@router.post(
    "/push",
    response_model=SyncRunReportDTO,
    status_code=status.HTTP_200_OK,
    summary="Enviar registros pendientes a Firestore"
)
async def push_to_firestore(
    entity: Optional[str] = _ENTITY_QUERY,
    use_cases: SyncUseCases = Depends(get_sync_use_cases),
) -> SyncRunReportDTO:
    """
    Envia a Firestore los registros locales con isSynced = false.

    Los registros se marcan como sincronizados solo despues de que su
    batch fue confirmado por Firestore.
    """
    logger.info(f"Push solicitado desde API (entidad={entity or 'todas'})")
    report = await use_cases.push(entity)
    return SyncRunReportDTO.from_report(report)


@router.get(
    "/stats",
    response_model=Dict[str, TableStatsDTO],
    summary="Estado de sincronizacion por tabla"
)
async def sync_stats(
    use_cases: SyncUseCases = Depends(get_sync_use_cases),
) -> Dict[str, TableStatsDTO]:
    stats = await use_cases.statistics()
    return {table: TableStatsDTO(**values) for table, values in stats.items()}


@router.get(
    "/export/{entity}.csv",
    summary="Descargar una coleccion como CSV"
)
async def export_collection_csv(
    entity: str,
    use_cases: SyncUseCases = Depends(get_sync_use_cases),
) -> Response:
    filename, content = await use_cases.export_entity_csv(entity)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post(
    "/cleanup",
    response_model=CleanupResponseDTO,
    summary="Borrar entradas antiguas de SYNC_LOG"
)
async def cleanup_sync_logs(
    days_to_keep: int = Query(
        default=settings.SYNC_LOG_RETENTION_DAYS,
        ge=1,
        description="Se conservan las entradas de los ultimos N dias"
    ),
    use_cases: SyncUseCases = Depends(get_sync_use_cases),
) -> CleanupResponseDTO:
    deleted = await use_cases.cleanup_sync_logs(days_to_keep)
    return CleanupResponseDTO(deleted=deleted, days_to_keep=days_to_keep)
