"""
DTOs de la API de sincronización y reportes.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from app.infrastructure.external.firestore_sync.types import (
    QueryFallbackResult,
    RemediationDescriptor,
    SyncRunReport,
)


class EntitySyncReportDTO(BaseModel):
    entity: str
    status: str
    count: int = 0
    error: Optional[str] = None
    details: dict[str, Any] = Field(default_factory=dict)


class SyncRunReportDTO(BaseModel):
    """Resultado agregado por entidad de una corrida de sync."""

    operation: str
    succeeded: int
    failed: int
    total_records: int
    entities: list[EntitySyncReportDTO]

    @classmethod
    def from_report(cls, report: SyncRunReport) -> "SyncRunReportDTO":
        return cls(
            operation=report.operation,
            succeeded=report.succeeded,
            failed=report.failed,
            total_records=report.total_records,
            entities=[
                EntitySyncReportDTO(
                    entity=e.entity_type.value,
                    status=e.status,
                    count=e.count,
                    error=e.error,
                    details=e.details,
                )
                for e in report.entities
            ],
        )


class TableStatsDTO(BaseModel):
    total: int = 0
    synced: int = 0
    unsynced: int = 0
    sync_percentage: float = 0.0
    error: Optional[str] = None


class RemediationDTO(BaseModel):
    message: str
    url: Optional[str] = None

    @classmethod
    def from_descriptor(cls, descriptor: Optional[RemediationDescriptor]) -> Optional["RemediationDTO"]:
        if descriptor is None:
            return None
        return cls(message=descriptor.message, url=descriptor.url)


class TransactionsResponseDTO(BaseModel):
    records: list[dict[str, Any]]
    count: int
    state: str
    remediation: Optional[RemediationDTO] = None

    @classmethod
    def from_result(cls, result: QueryFallbackResult) -> "TransactionsResponseDTO":
        return cls(
            records=result.records,
            count=len(result.records),
            state=result.state.value,
            remediation=RemediationDTO.from_descriptor(result.remediation),
        )


class MonthlySummaryDTO(BaseModel):
    user_id: str
    year: int
    month: int = Field(ge=1, le=12)
    total_income: float
    total_expense: float
    balance: float
    income_count: int
    expense_count: int
    total_transactions: int
    average_income: float
    average_expense: float
    remediation: Optional[RemediationDTO] = None


class CleanupResponseDTO(BaseModel):
    deleted: int
    days_to_keep: int
