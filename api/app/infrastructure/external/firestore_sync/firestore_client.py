"""
Adaptador de Firestore (google-cloud-firestore, cliente async).

Responsabilidades:
- stream de colecciones completas
- consultas rango + igualdad + orden
- commit de BatchOperation como WriteBatch de Firestore (set con merge)

Los errores de la API se traducen al vocabulario del dominio:
- índice compuesto faltante -> IndexMissingError (con URL de remediación)
- indisponibilidad / timeouts / cuota -> TransientStoreError
"""

from __future__ import annotations

from typing import Any, AsyncIterator, Optional, Sequence

from google.api_core import exceptions as google_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from loguru import logger

from app.shared.constants.entity_types import SortDirection, WriteKind
from app.shared.exceptions.domain import IndexMissingError, TransientStoreError
from .document_store import DocumentSnapshot, detect_index_requirement
from .types import BatchOperation, RangeFilter, SortSpec

STORE_NAME = "firestore"

_TRANSIENT_ERRORS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.InternalServerError,
    google_exceptions.TooManyRequests,
)


def translate_firestore_error(error: Exception) -> Optional[Exception]:
    """Mapea excepciones de google-api-core a excepciones de dominio (None si no aplica)."""
    if isinstance(error, google_exceptions.FailedPrecondition):
        remediation = detect_index_requirement(error)
        if remediation is not None:
            return IndexMissingError(remediation.message, remediation_url=remediation.url)
    if isinstance(error, _TRANSIENT_ERRORS):
        return TransientStoreError(STORE_NAME, str(error))
    return None


def _reraise(error: Exception) -> None:
    translated = translate_firestore_error(error)
    if translated is None:
        raise error
    raise translated from error


class FirestoreDocumentStore:
    """
    Implementación de DocumentStore sobre firestore.AsyncClient.

    Uso:
        store = FirestoreDocumentStore.from_project("mi-proyecto")
        async for doc_id, fields in store.stream("TRANSACTIONS"):
            ...
    """

    def __init__(self, client: firestore.AsyncClient) -> None:
        self._client = client

    @classmethod
    def from_project(
        cls,
        project_id: Optional[str] = None,
        database: Optional[str] = None,
    ) -> "FirestoreDocumentStore":
        # Sin project_id se usan las credenciales por defecto (GOOGLE_APPLICATION_CREDENTIALS)
        kwargs: dict[str, Any] = {}
        if project_id:
            kwargs["project"] = project_id
        if database:
            kwargs["database"] = database
        return cls(firestore.AsyncClient(**kwargs))

    async def stream(self, collection: str) -> AsyncIterator[DocumentSnapshot]:
        try:
            async for snapshot in self._client.collection(collection).stream():
                yield snapshot.id, snapshot.to_dict() or {}
        except google_exceptions.GoogleAPICallError as e:
            _reraise(e)

    async def query(
        self,
        collection: str,
        *,
        range_filter: RangeFilter,
        equality: Sequence[tuple[str, Any]] = (),
        sort: Optional[SortSpec] = None,
    ) -> list[DocumentSnapshot]:
        query = self._client.collection(collection)
        for field_name, value in equality:
            query = query.where(filter=FieldFilter(field_name, "==", value))
        query = query.where(filter=FieldFilter(range_filter.field, ">=", range_filter.start))
        query = query.where(filter=FieldFilter(range_filter.field, "<=", range_filter.end))
        if sort is not None:
            direction = (
                firestore.Query.DESCENDING
                if sort.direction == SortDirection.DESCENDING
                else firestore.Query.ASCENDING
            )
            query = query.order_by(sort.field, direction=direction)

        try:
            return [(s.id, s.to_dict() or {}) async for s in query.stream()]
        except google_exceptions.GoogleAPICallError as e:
            _reraise(e)

    async def commit(self, batch: BatchOperation) -> None:
        write_batch = self._client.batch()
        for op in batch:
            ref = self._client.collection(op.collection).document(op.doc_id)
            if op.kind == WriteKind.DELETE:
                write_batch.delete(ref)
            else:
                # merge=True: los campos que no viajan en el payload se conservan
                write_batch.set(ref, op.data or {}, merge=True)

        try:
            await write_batch.commit()
        except google_exceptions.GoogleAPICallError as e:
            logger.error(f"Commit de Firestore falló ({len(batch)} operaciones): {e}")
            _reraise(e)
