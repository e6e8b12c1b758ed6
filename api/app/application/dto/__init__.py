"""
Data Transfer Objects (DTOs) para la capa de aplicacion.
"""
from .sync_dto import (
    CleanupResponseDTO,
    EntitySyncReportDTO,
    MonthlySummaryDTO,
    RemediationDTO,
    SyncRunReportDTO,
    TableStatsDTO,
    TransactionsResponseDTO,
)

__all__ = [
    "CleanupResponseDTO",
    "EntitySyncReportDTO",
    "MonthlySummaryDTO",
    "RemediationDTO",
    "SyncRunReportDTO",
    "TableStatsDTO",
    "TransactionsResponseDTO",
]
