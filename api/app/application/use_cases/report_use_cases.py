"""
Casos de uso de reportes sobre transacciones.

Todas las consultas pasan por el ejecutor resiliente: si Firestore no
tiene el índice compuesto, el resultado llega igual (filtrado y ordenado en
memoria) junto con la sugerencia de índice.
"""
from datetime import datetime
from typing import Any, Optional

from loguru import logger

from app.infrastructure.external.firestore_sync.range_query import ResilientRangeQuery
from app.infrastructure.external.firestore_sync.types import (
    QueryFallbackResult,
    RangeFilter,
    RangeQuery,
    SortSpec,
)
from app.shared.constants.entity_types import EntityType, SortDirection
from app.shared.utils.datetime_utils import DateTimeUtils

INCOME = "INCOME"
EXPENSE = "EXPENSE"


def _amount(record: dict[str, Any]) -> float:
    try:
        return float(record.get("amount") or 0)
    except (TypeError, ValueError):
        return 0.0


class ReportUseCases:
    def __init__(self, query: ResilientRangeQuery):
        self.query = query

    async def transactions_by_date_range(
        self,
        start: datetime,
        end: datetime,
        *,
        transaction_type: Optional[str] = None,
        user_id: Optional[str] = None,
        category_id: Optional[str] = None,
    ) -> QueryFallbackResult:
        """Transacciones con date en [start, end], más recientes primero."""
        filters = (("type", transaction_type), ("userID", user_id), ("categoryID", category_id))
        query = RangeQuery(
            entity_type=EntityType.TRANSACTION,
            range_filter=RangeFilter(
                field="date",
                start=DateTimeUtils.ensure_utc(start),
                end=DateTimeUtils.ensure_utc(end),
            ),
            equality=tuple((name, value) for name, value in filters if value),
            sort=SortSpec(field="date", direction=SortDirection.DESCENDING),
        )
        return await self.query.execute(query)

    async def monthly_summary(self, user_id: str, year: int, month: int) -> dict[str, Any]:
        """Totales de ingresos y gastos de un usuario en un mes."""
        start, end = DateTimeUtils.month_bounds(year, month)
        result = await self.transactions_by_date_range(start, end, user_id=user_id)

        total_income = 0.0
        total_expense = 0.0
        income_count = 0
        expense_count = 0
        for record in result.records:
            if record.get("type") == INCOME:
                total_income += _amount(record)
                income_count += 1
            elif record.get("type") == EXPENSE:
                total_expense += _amount(record)
                expense_count += 1

        logger.info(f"Resumen {year}-{month:02d} de {user_id}: {len(result.records)} transacciones")
        return {
            "user_id": user_id,
            "year": year,
            "month": month,
            "total_income": total_income,
            "total_expense": total_expense,
            "balance": total_income - total_expense,
            "income_count": income_count,
            "expense_count": expense_count,
            "total_transactions": len(result.records),
            "average_income": total_income / income_count if income_count else 0.0,
            "average_expense": total_expense / expense_count if expense_count else 0.0,
            "remediation": result.remediation,
        }
