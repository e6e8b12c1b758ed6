"""
Tipos y utilidades puras para el pipeline Firestore <-> SQL.

Se mantienen libres de I/O para poder testearlos fácilmente.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional

from app.shared.constants.entity_types import (
    WRITE_BATCH_LIMIT,
    EntityType,
    QueryState,
    SortDirection,
    WriteKind,
)
from app.shared.exceptions.domain import BatchLimitViolation

Record = dict[str, Any]


class FieldType(str, Enum):
    """Tipo declarado de un campo en el esquema de una entidad."""
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    JSON = "json"


@dataclass(frozen=True)
class WriteOperation:
    """Una operación set/delete sobre un documento de Firestore."""

    entity_type: EntityType
    collection: str
    doc_id: str
    kind: WriteKind = WriteKind.SET
    data: Optional[Record] = None


class BatchOperation:
    """
    Lista ordenada de operaciones que se confirma en un único commit.

    El límite de WRITE_BATCH_LIMIT se valida al agregar: un batch nunca
    puede contener más operaciones de las que Firestore acepta.
    """

    def __init__(self, limit: int = WRITE_BATCH_LIMIT) -> None:
        if limit > WRITE_BATCH_LIMIT:
            raise BatchLimitViolation(limit, WRITE_BATCH_LIMIT)
        self._limit = limit
        self._operations: list[WriteOperation] = []

    def add(self, operation: WriteOperation) -> None:
        if len(self._operations) >= self._limit:
            raise BatchLimitViolation(len(self._operations) + 1, self._limit)
        self._operations.append(operation)

    def set(self, entity_type: EntityType, collection: str, doc_id: str, data: Record) -> None:
        self.add(WriteOperation(
            entity_type=entity_type, collection=collection, doc_id=doc_id,
            kind=WriteKind.SET, data=data,
        ))

    def delete(self, entity_type: EntityType, collection: str, doc_id: str) -> None:
        self.add(WriteOperation(
            entity_type=entity_type, collection=collection, doc_id=doc_id,
            kind=WriteKind.DELETE,
        ))

    @property
    def operations(self) -> tuple[WriteOperation, ...]:
        return tuple(self._operations)

    @property
    def doc_ids(self) -> list[str]:
        return [op.doc_id for op in self._operations]

    def __len__(self) -> int:
        return len(self._operations)

    def __iter__(self) -> Iterator[WriteOperation]:
        return iter(self._operations)


@dataclass(frozen=True)
class FieldChange:
    """Valor anterior (local) y nuevo (remoto) de un campo."""

    old: Any
    new: Any


MergeDiff = dict[str, FieldChange]


@dataclass(frozen=True)
class RemediationDescriptor:
    """
    Acción de configuración que mejoraría la consulta (crear un índice).

    Se adjunta al resultado, nunca bloquea: el caller decide si mostrarla.
    """

    message: str
    url: Optional[str] = None


@dataclass(frozen=True)
class RangeFilter:
    """Filtro de rango inclusivo sobre un campo (p.ej. date entre start y end)."""

    field: str
    start: Any
    end: Any


@dataclass(frozen=True)
class SortSpec:
    field: str
    direction: SortDirection = SortDirection.DESCENDING


@dataclass(frozen=True)
class RangeQuery:
    """
    Consulta compuesta: igualdades + rango + orden explícito.

    equality: pares (campo, valor) que deben coincidir exactamente.
    """

    entity_type: EntityType
    range_filter: RangeFilter
    equality: tuple[tuple[str, Any], ...] = ()
    sort: Optional[SortSpec] = None


@dataclass
class QueryFallbackResult:
    """Registros de una consulta más la sugerencia de índice, si hubo fallback."""

    records: list[Record]
    remediation: Optional[RemediationDescriptor] = None
    state: QueryState = QueryState.COMPOSITE

    @property
    def used_fallback(self) -> bool:
        return self.state == QueryState.RANGE_ONLY


@dataclass(frozen=True)
class UpsertResult:
    committed: int
    chunks: int
    skipped: int = 0


@dataclass(frozen=True)
class DeltaSyncResult:
    pushed: int
    skipped: int = 0


@dataclass(frozen=True)
class ExportResult:
    entity_type: EntityType
    table_name: str
    count: int
    inserted: int = 0
    updated: int = 0


@dataclass
class EntitySyncReport:
    """Resultado de una entidad dentro de una corrida del orquestador."""

    entity_type: EntityType
    status: str
    count: int = 0
    error: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class SyncRunReport:
    """Agregado por entidad de una corrida completa."""

    operation: str
    entities: list[EntitySyncReport] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for e in self.entities if e.status == "success")

    @property
    def failed(self) -> int:
        return sum(1 for e in self.entities if e.status == "error")

    @property
    def total_records(self) -> int:
        return sum(e.count for e in self.entities)
