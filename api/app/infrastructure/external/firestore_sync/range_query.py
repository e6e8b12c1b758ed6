"""
Consulta resiliente: rango + igualdades + orden explícito.

Firestore necesita un índice compuesto para combinar igualdades con un rango
y un orden. Si el índice no existe:

    COMPOSITE --(índice faltante)--> RANGE_ONLY --(éxito)--> resultado + remediación
                                                 --(error)--> FAILED (se propaga)

En RANGE_ONLY se pide solo el rango (servible con índices simples) y las
igualdades y el orden se aplican en memoria, con el mismo criterio que usaría
Firestore: valores ausentes al final y desempate por ID de documento.
"""

from __future__ import annotations

import json
from datetime import date, datetime, time
from numbers import Number
from typing import Any, Optional, Sequence

from loguru import logger

from app.shared.constants.entity_types import QueryState, SortDirection
from app.shared.utils.datetime_utils import DateTimeUtils
from .document_store import DocumentSnapshot, DocumentStore, detect_index_requirement
from .schema_registry import SchemaRegistry
from .type_normalizer import TypeNormalizer
from .types import QueryFallbackResult, RangeQuery, SortSpec

# Orden entre tipos distintos (mismo que Firestore)
_TYPE_RANK_BOOL = 1
_TYPE_RANK_NUMBER = 2
_TYPE_RANK_TIMESTAMP = 3
_TYPE_RANK_STRING = 4
_TYPE_RANK_BYTES = 5
_TYPE_RANK_OTHER = 9


def _sort_key(value: Any) -> tuple[int, Any]:
    if isinstance(value, bool):
        return _TYPE_RANK_BOOL, value
    if isinstance(value, Number):
        return _TYPE_RANK_NUMBER, value
    if isinstance(value, datetime):
        return _TYPE_RANK_TIMESTAMP, DateTimeUtils.ensure_utc(value)
    if isinstance(value, date):
        return _TYPE_RANK_TIMESTAMP, DateTimeUtils.ensure_utc(datetime.combine(value, time.min))
    if isinstance(value, str):
        return _TYPE_RANK_STRING, value
    if isinstance(value, bytes):
        return _TYPE_RANK_BYTES, value
    return _TYPE_RANK_OTHER, json.dumps(value, sort_keys=True, default=str)


def apply_equality(docs: Sequence[DocumentSnapshot], equality: Sequence[tuple[str, Any]]) -> list[DocumentSnapshot]:
    return [
        (doc_id, fields) for doc_id, fields in docs
        if all(fields.get(name) == value for name, value in equality)
    ]


def sort_documents(docs: Sequence[DocumentSnapshot], sort: Optional[SortSpec]) -> list[DocumentSnapshot]:
    """
    Ordena por sort.field. Los documentos sin valor van siempre al final
    (en ambas direcciones); los empates se resuelven por ID en la misma dirección.
    """
    if sort is None:
        return list(docs)

    reverse = sort.direction == SortDirection.DESCENDING
    present = [d for d in docs if d[1].get(sort.field) is not None]
    missing = [d for d in docs if d[1].get(sort.field) is None]
    present.sort(key=lambda d: (_sort_key(d[1][sort.field]), d[0]), reverse=reverse)
    missing.sort(key=lambda d: d[0], reverse=reverse)
    return present + missing


class ResilientRangeQuery:
    """
    Uso:
        executor = ResilientRangeQuery(store=store, registry=registry, normalizer=normalizer)
        result = await executor.execute(query)
        if result.remediation:
            logger.info(result.remediation.message)
    """

    def __init__(
        self,
        *,
        store: DocumentStore,
        registry: SchemaRegistry,
        normalizer: TypeNormalizer,
        push_down_equality: bool = False,
    ) -> None:
        self._store = store
        self._registry = registry
        self._normalizer = normalizer
        # True: en RANGE_ONLY las igualdades también se envían a Firestore
        self._push_down_equality = push_down_equality

    async def execute(self, query: RangeQuery) -> QueryFallbackResult:
        collection = self._registry.collection_name_of(query.entity_type)

        try:
            docs = await self._store.query(
                collection,
                range_filter=query.range_filter,
                equality=query.equality,
                sort=query.sort,
            )
            return QueryFallbackResult(
                records=self._to_records(query, docs),
                state=QueryState.COMPOSITE,
            )
        except Exception as e:
            remediation = detect_index_requirement(e)
            if remediation is None:
                raise
            logger.warning(
                f"{collection}: falta índice compuesto, reintentando solo con el rango "
                f"(índice sugerido: {remediation.url or 'sin URL'})"
            )

        try:
            docs = await self._store.query(
                collection,
                range_filter=query.range_filter,
                equality=query.equality if self._push_down_equality else (),
                sort=None,
            )
        except Exception as e:
            logger.error(f"{collection}: consulta degradada falló (estado {QueryState.FAILED.value}): {e}")
            raise

        docs = apply_equality(docs, query.equality)
        docs = sort_documents(docs, query.sort)
        logger.info(f"{collection}: {len(docs)} documentos filtrados y ordenados en memoria")
        return QueryFallbackResult(
            records=self._to_records(query, docs),
            remediation=remediation,
            state=QueryState.RANGE_ONLY,
        )

    def _to_records(self, query: RangeQuery, docs: Sequence[DocumentSnapshot]):
        return [
            self._normalizer.document_to_record(query.entity_type, doc_id, fields)
            for doc_id, fields in docs
        ]
