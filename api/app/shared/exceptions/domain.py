"""
Excepciones del dominio de sincronización Firestore <-> SQL.

Taxonomía:
- RecordValidationError: un registro no trae un campo requerido. Se lanza
  antes de tocar cualquier store y no se reintenta.
- IndexMissingError: Firestore no puede resolver rango + orden sin índice
  compuesto. El ejecutor de consultas la recupera solo.
- BatchLimitViolation: error de programación; un batch superó el límite.
- PartialSyncFailure: falló un chunk a mitad de la secuencia.
- TransientStoreError: red/disponibilidad; la política de reintento es del caller.
"""
from typing import Any, Optional

from app.shared.exceptions.base import AppException


class DomainException(AppException):
    """Excepción base para errores de dominio."""

    def __init__(self, message: str, error_code: str = "DOMAIN_ERROR", details=None):
        super().__init__(
            message=message,
            status_code=400,
            error_code=error_code,
            details=details
        )


class UnknownEntityException(DomainException):
    """Excepción cuando el nombre recibido no corresponde a ninguna entidad."""

    def __init__(self, entity_name: str, valid_entities: list[str]):
        super().__init__(
            message=f"La entidad '{entity_name}' no es válida",
            error_code="UNKNOWN_ENTITY",
            details={
                "entity_provided": entity_name,
                "valid_entities": valid_entities
            }
        )
        self.status_code = 404


class SyncError(AppException):
    """Excepción base del pipeline de sincronización."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "SYNC_ERROR",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=status_code,
            error_code=error_code,
            details=details,
        )


class RecordValidationError(SyncError):
    """Un registro no contiene un campo requerido por su tipo de entidad."""

    def __init__(self, entity_type: str, field: str, record_id: Any = None):
        super().__init__(
            message=(
                f"Falta el campo requerido '{field}' en un registro de {entity_type}"
                + (f" (id={record_id})" if record_id else "")
            ),
            status_code=422,
            error_code="VALIDATION_ERROR",
            details={"entity": entity_type, "field": field, "record_id": record_id},
        )
        self.entity_type = entity_type
        self.field = field
        self.record_id = record_id


class IndexMissingError(SyncError):
    """La consulta requiere un índice compuesto que no existe."""

    def __init__(self, message: str, remediation_url: Optional[str] = None):
        super().__init__(
            message=message,
            status_code=409,
            error_code="INDEX_REQUIRED",
            details={"index_url": remediation_url} if remediation_url else None,
        )
        self.remediation_url = remediation_url


class BatchLimitViolation(SyncError):
    """Un batch superó el límite de operaciones por commit (error de programación)."""

    def __init__(self, size: int, limit: int):
        super().__init__(
            message=f"Batch de {size} operaciones supera el límite de {limit}",
            status_code=500,
            error_code="BATCH_LIMIT_VIOLATION",
            details={"size": size, "limit": limit},
        )
        self.size = size
        self.limit = limit


class PartialSyncFailure(SyncError):
    """
    Falló el commit de un chunk. Los chunks previos quedaron confirmados:
    el caller debe tratarlo como éxito parcial.
    """

    def __init__(
        self,
        entity_type: str,
        committed_chunks: int,
        committed_records: int,
        cause: BaseException,
    ):
        super().__init__(
            message=(
                f"Sync parcial de {entity_type}: {committed_chunks} chunk(s) "
                f"({committed_records} registros) confirmados antes del error: {cause}"
            ),
            status_code=502,
            error_code="PARTIAL_SYNC_FAILURE",
            details={
                "entity": entity_type,
                "committed_chunks": committed_chunks,
                "committed_records": committed_records,
            },
        )
        self.entity_type = entity_type
        self.committed_chunks = committed_chunks
        self.committed_records = committed_records
        self.cause = cause


class TransientStoreError(SyncError):
    """Error de red o disponibilidad de un store."""

    def __init__(self, store: str, message: str):
        super().__init__(
            message=f"Error transitorio en {store}: {message}",
            status_code=503,
            error_code="STORE_UNAVAILABLE",
            details={"store": store},
        )
        self.store = store
