"""
Export: colección de Firestore -> registros listos para tabla.

Cada documento pasa por el normalizador (Timestamp -> ISO-8601) y recibe
su PK desde el ID del documento si no lo trae como campo. No escribe en
la base local: eso lo hace el delta sync al combinar con las filas
existentes.
"""

from __future__ import annotations

from loguru import logger

from .document_store import DocumentStore
from .schema_registry import EntityRef, SchemaRegistry
from .type_normalizer import TypeNormalizer
from .types import Record


class ExportPipeline:
    def __init__(
        self,
        *,
        store: DocumentStore,
        registry: SchemaRegistry,
        normalizer: TypeNormalizer,
    ) -> None:
        self._store = store
        self._registry = registry
        self._normalizer = normalizer

    async def export_all(self, entity_type: EntityRef) -> list[Record]:
        collection = self._registry.collection_name_of(entity_type)
        logger.info(f"Exportando colección {collection}")

        records: list[Record] = []
        async for doc_id, fields in self._store.stream(collection):
            records.append(self._normalizer.document_to_record(entity_type, doc_id, fields))

        logger.info(f"Exportados {len(records)} documentos de {collection}")
        return records
