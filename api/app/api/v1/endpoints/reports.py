"""
Endpoints de reportes de transacciones.

Si Firestore no tiene el indice compuesto para la consulta, la respuesta
llega igual con state=RANGE_ONLY y la URL para crear el indice en
"remediation".
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.v1.dependencies.use_case_deps import get_report_use_cases
from app.application.dto.sync_dto import MonthlySummaryDTO, RemediationDTO, TransactionsResponseDTO
from app.application.use_cases.report_use_cases import ReportUseCases
from app.shared.exceptions.domain import DomainException
from app.shared.utils.datetime_utils import DateTimeUtils


router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get(
    "/transactions",
    response_model=TransactionsResponseDTO,
    summary="Transacciones por rango de fechas"
)
async def transactions_by_date_range(
    start: datetime = Query(..., description="Inicio del rango (ISO-8601, inclusive)"),
    end: datetime = Query(..., description="Fin del rango (ISO-8601, inclusive)"),
    type: Optional[str] = Query(default=None, description="INCOME / EXPENSE"),
    userID: Optional[str] = Query(default=None),
    categoryID: Optional[str] = Query(default=None),
    use_cases: ReportUseCases = Depends(get_report_use_cases),
) -> TransactionsResponseDTO:
    # naive se toma como UTC; así se pueden mezclar con bounds aware
    start, end = DateTimeUtils.ensure_utc(start), DateTimeUtils.ensure_utc(end)
    if start > end:
        raise DomainException("start debe ser anterior o igual a end", error_code="INVALID_RANGE")
    result = await use_cases.transactions_by_date_range(
        start, end, transaction_type=type, user_id=userID, category_id=categoryID
    )
    return TransactionsResponseDTO.from_result(result)


@router.get(
    "/monthly-summary",
    response_model=MonthlySummaryDTO,
    summary="Resumen mensual de ingresos y gastos"
)
async def monthly_summary(
    user_id: str = Query(...),
    year: int = Query(..., ge=1970, le=9999),
    month: int = Query(..., ge=1, le=12),
    use_cases: ReportUseCases = Depends(get_report_use_cases),
) -> MonthlySummaryDTO:
    summary = await use_cases.monthly_summary(user_id, year, month)
    summary["remediation"] = RemediationDTO.from_descriptor(summary["remediation"])
    return MonthlySummaryDTO(**summary)
