"""
Delta sync entre la base local y Firestore.

push (local -> Firestore):
- Solo filas con isSynced = false o NULL.
- isSynced pasa a true únicamente para los registros de un chunk cuyo
  commit en Firestore fue confirmado. Si un chunk falla, sus registros y
  los de los chunks siguientes quedan pendientes para la próxima corrida
  (entrega al-menos-una-vez).

pull (Firestore -> local):
- Export de la colección + merge con la fila local ("Firestore gana").
- Las filas nuevas se insertan como sincronizadas: vienen de la fuente de verdad.
- Este es el único módulo que cambia isSynced.
"""

from __future__ import annotations

from loguru import logger

from app.shared.constants.entity_types import SYNC_MARKER_FIELD, WRITE_BATCH_LIMIT, EntityType
from app.shared.exceptions.domain import PartialSyncFailure
from .batch_upsert import BatchUpsertPipeline, chunked
from .export_pipeline import ExportPipeline
from .merge_resolver import MergeResolver
from .schema_registry import SchemaRegistry
from .sql_repository import SqlMirrorRepository
from .types import DeltaSyncResult, ExportResult, Record


class DeltaSync:
    def __init__(
        self,
        *,
        repository: SqlMirrorRepository,
        upsert: BatchUpsertPipeline,
        export: ExportPipeline,
        merge: MergeResolver,
        registry: SchemaRegistry,
        chunk_size: int = WRITE_BATCH_LIMIT,
    ) -> None:
        self._repository = repository
        self._upsert = upsert
        self._export = export
        self._merge = merge
        self._registry = registry
        self._chunk_size = min(chunk_size, WRITE_BATCH_LIMIT)

    async def sync_unsynced(self, entity_type: EntityType) -> DeltaSyncResult:
        table = self._registry.table_name_of(entity_type)
        pending = await self._repository.select_unsynced(entity_type)
        if not pending:
            logger.info(f"{table}: sin registros pendientes de sincronizar")
            return DeltaSyncResult(pushed=0)

        logger.info(f"{table}: {len(pending)} registros pendientes")
        marked = 0

        async def _mark_committed(committed_type: EntityType, doc_ids: list[str]) -> None:
            nonlocal marked
            async with self._repository.transaction() as conn:
                await self._repository.mark_synced(conn, committed_type, doc_ids)
            marked += len(doc_ids)

        try:
            result = await self._upsert.upsert_all(entity_type, pending, on_chunk_committed=_mark_committed)
        except PartialSyncFailure:
            logger.warning(f"{table}: {marked} registros marcados como sincronizados antes del fallo")
            raise

        logger.info(f"{table}: {marked} registros enviados a Firestore")
        return DeltaSyncResult(pushed=marked, skipped=result.skipped)

    async def pull_from_primary(self, entity_type: EntityType) -> ExportResult:
        table = self._registry.table_name_of(entity_type)
        pk = self._registry.primary_key_of(entity_type)
        remote_records = await self._export.export_all(entity_type)

        inserted = 0
        updated = 0
        for chunk in chunked(remote_records, self._chunk_size):
            async with self._repository.transaction() as conn:
                ids = [str(r[pk]) for r in chunk]
                existing = {
                    str(row[pk]): row
                    for row in await self._repository.fetch_rows(conn, entity_type, ids)
                }

                rows: list[Record] = []
                for remote in chunk:
                    local = existing.get(str(remote[pk]))
                    if local is None:
                        rows.append({**remote, SYNC_MARKER_FIELD: True})
                        inserted += 1
                        continue
                    # Solo se comparan los campos que trae Firestore, con la
                    # misma coerción que aplica la tabla al guardarlos
                    stored = self._repository.as_stored(entity_type, remote)
                    if not self._merge.diff({k: local.get(k) for k in stored}, stored):
                        continue
                    rows.append(self._merge.merge(local, remote, prefer_remote=True))
                    updated += 1

                await self._repository.upsert_rows(conn, entity_type, rows)

        logger.info(
            f"{table}: {len(remote_records)} documentos importados "
            f"(nuevos={inserted}, actualizados={updated})"
        )
        return ExportResult(
            entity_type=entity_type,
            table_name=table,
            count=len(remote_records),
            inserted=inserted,
            updated=updated,
        )
