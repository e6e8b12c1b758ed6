"""
Upsert por batches: registros de tabla -> documentos de Firestore.

Reglas:
- Chunks de a lo sumo WRITE_BATCH_LIMIT operaciones, confirmados en orden.
- Los commits son secuenciales: si el chunk k falla, los chunks < k quedan
  confirmados y los > k no se intentan (PartialSyncFailure).
- Un registro sin PK se omite con warning; no invalida al resto del chunk.
- La validación de campos requeridos ocurre antes de tocar Firestore.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Iterator, Optional, Sequence, TypeVar

from loguru import logger

from app.shared.constants.entity_types import SYNC_MARKER_FIELD, WRITE_BATCH_LIMIT, EntityType
from app.shared.exceptions.domain import PartialSyncFailure, RecordValidationError
from app.shared.utils.datetime_utils import DateTimeUtils
from .document_store import DocumentStore
from .schema_registry import SchemaRegistry
from .type_normalizer import TypeNormalizer
from .types import BatchOperation, Record, UpsertResult

T = TypeVar("T")

ChunkCommittedCallback = Callable[[EntityType, list[str]], Awaitable[None]]

UPDATED_AT_FIELD = "updatedAt"


def chunked(items: Sequence[T], size: int = WRITE_BATCH_LIMIT) -> Iterator[list[T]]:
    """
    Particiona en chunks consecutivos de tamaño <= size (y <= WRITE_BATCH_LIMIT).

    chunked(range(1200)) -> 500, 500, 200
    """
    if size < 1:
        raise ValueError("size debe ser >= 1")
    size = min(size, WRITE_BATCH_LIMIT)
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class BatchUpsertPipeline:
    def __init__(
        self,
        *,
        store: DocumentStore,
        registry: SchemaRegistry,
        normalizer: TypeNormalizer,
        chunk_size: int = WRITE_BATCH_LIMIT,
        stamp_updated_at: bool = True,
        clock: Callable = DateTimeUtils.now_utc,
    ) -> None:
        self._store = store
        self._registry = registry
        self._normalizer = normalizer
        self._chunk_size = min(chunk_size, WRITE_BATCH_LIMIT)
        self._stamp_updated_at = stamp_updated_at
        self._clock = clock

    def validate(self, entity_type: EntityType, records: Sequence[Record]) -> None:
        """
        Verifica campos requeridos. Los registros sin PK no se validan:
        se omiten más adelante.
        """
        schema = self._registry.require_schema(entity_type)
        for record in records:
            record_id = record.get(schema.primary_key)
            if _is_blank(record_id):
                continue
            for field_name in sorted(schema.required):
                if _is_blank(record.get(field_name)):
                    raise RecordValidationError(entity_type.value, field_name, record_id=str(record_id))

    def build_payload(self, entity_type: EntityType, record: Record) -> tuple[Optional[str], Record]:
        """
        Registro de tabla -> (doc_id, payload de Firestore).

        El PK viaja como ID del documento y la columna isSynced es solo local:
        ninguno de los dos se escribe como campo. Los valores None son columnas
        que el documento no traía y tampoco se envían. doc_id=None si falta el PK.
        """
        pk = self._registry.primary_key_of(entity_type)
        doc_id = record.get(pk)
        if _is_blank(doc_id):
            return None, {}

        fields = {
            k: v for k, v in record.items()
            if k not in (pk, SYNC_MARKER_FIELD) and v is not None
        }
        payload = self._normalizer.record_to_native(fields, entity_type)
        if self._stamp_updated_at:
            payload[UPDATED_AT_FIELD] = self._clock()
        return str(doc_id), payload

    def _build_batch(
        self,
        entity_type: EntityType,
        collection: str,
        chunk: Sequence[Record],
    ) -> tuple[BatchOperation, int]:
        batch = BatchOperation(limit=self._chunk_size)
        skipped = 0
        for record in chunk:
            doc_id, payload = self.build_payload(entity_type, record)
            if doc_id is None:
                skipped += 1
                logger.warning(f"{collection}: registro sin PK omitido")
                continue
            batch.set(entity_type, collection, doc_id, payload)
        return batch, skipped

    async def upsert_all(
        self,
        entity_type: EntityType,
        records: Sequence[Record],
        on_chunk_committed: Optional[ChunkCommittedCallback] = None,
    ) -> UpsertResult:
        """
        Escribe todos los registros en Firestore.

        on_chunk_committed(entity_type, doc_ids) se invoca después de cada
        commit confirmado, antes de intentar el chunk siguiente.
        """
        self.validate(entity_type, records)
        collection = self._registry.collection_name_of(entity_type)
        total_chunks = -(-len(records) // self._chunk_size) if records else 0

        committed_records = 0
        committed_chunks = 0
        skipped = 0
        for index, chunk in enumerate(chunked(records, self._chunk_size), start=1):
            batch, chunk_skipped = self._build_batch(entity_type, collection, chunk)
            skipped += chunk_skipped
            if not len(batch):
                continue

            try:
                await self._store.commit(batch)
            except Exception as e:
                logger.error(
                    f"{collection}: chunk {index}/{total_chunks} falló tras "
                    f"{committed_chunks} chunks confirmados: {e}"
                )
                raise PartialSyncFailure(entity_type.value, committed_chunks, committed_records, e) from e

            committed_chunks += 1
            committed_records += len(batch)
            logger.info(f"{collection}: chunk {index}/{total_chunks} confirmado ({len(batch)} operaciones)")
            if on_chunk_committed is not None:
                await on_chunk_committed(entity_type, batch.doc_ids)

        if skipped:
            logger.warning(f"{collection}: {skipped} registros omitidos por no tener PK")
        return UpsertResult(committed=committed_records, chunks=committed_chunks, skipped=skipped)

    async def delete_all(self, entity_type: EntityType, doc_ids: Sequence[str]) -> UpsertResult:
        """Borrado explícito de documentos, con la misma política de chunks."""
        collection = self._registry.collection_name_of(entity_type)
        committed_records = 0
        committed_chunks = 0
        for chunk in chunked([d for d in doc_ids if not _is_blank(d)], self._chunk_size):
            batch = BatchOperation(limit=self._chunk_size)
            for doc_id in chunk:
                batch.delete(entity_type, collection, str(doc_id))
            try:
                await self._store.commit(batch)
            except Exception as e:
                raise PartialSyncFailure(entity_type.value, committed_chunks, committed_records, e) from e
            committed_chunks += 1
            committed_records += len(batch)
        logger.info(f"{collection}: {committed_records} documentos borrados")
        return UpsertResult(committed=committed_records, chunks=committed_chunks)
