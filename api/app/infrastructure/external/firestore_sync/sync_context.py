"""
Construcción del grafo de componentes del pipeline a partir de Settings.

Cada componente recibe sus dependencias por constructor; este módulo es
el único punto que decide qué implementación concreta se usa.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from app.core.config import Settings
from .batch_upsert import BatchUpsertPipeline
from .delta_sync import DeltaSync
from .document_store import DocumentStore
from .export_pipeline import ExportPipeline
from .firestore_client import FirestoreDocumentStore
from .merge_resolver import MergeResolver
from .range_query import ResilientRangeQuery
from .schema_registry import SchemaRegistry, build_default_registry
from .sql_repository import SqlMirrorRepository
from .type_normalizer import TypeNormalizer


@dataclass
class SyncContext:
    registry: SchemaRegistry
    normalizer: TypeNormalizer
    store: DocumentStore
    repository: SqlMirrorRepository
    export: ExportPipeline
    upsert: BatchUpsertPipeline
    merge: MergeResolver
    delta: DeltaSync
    query: ResilientRangeQuery

    async def close(self) -> None:
        await self.repository.dispose()


def build_sync_context(
    settings: Settings,
    *,
    store: Optional[DocumentStore] = None,
    repository: Optional[SqlMirrorRepository] = None,
    registry: Optional[SchemaRegistry] = None,
) -> SyncContext:
    """
    Constructor "oficial" del pipeline.

    store / repository / registry permiten inyectar implementaciones
    alternativas (tests, scripts); por defecto se usan Firestore y la URL
    SECONDARY_DATABASE_URL.
    """
    registry = registry or build_default_registry()
    normalizer = TypeNormalizer(registry, strict_schema=settings.SYNC_STRICT_SCHEMA)

    if store is None:
        store = FirestoreDocumentStore.from_project(
            settings.FIRESTORE_PROJECT_ID or None,
            settings.FIRESTORE_DATABASE or None,
        )
    if repository is None:
        repository = SqlMirrorRepository.from_url(
            settings.SECONDARY_DATABASE_URL, registry, echo=settings.DB_ECHO
        )

    export = ExportPipeline(store=store, registry=registry, normalizer=normalizer)
    upsert = BatchUpsertPipeline(
        store=store,
        registry=registry,
        normalizer=normalizer,
        chunk_size=settings.SYNC_CHUNK_SIZE,
        stamp_updated_at=settings.SYNC_STAMP_UPDATED_AT,
    )
    merge = MergeResolver(settings.merge_ignore_fields)
    delta = DeltaSync(
        repository=repository,
        upsert=upsert,
        export=export,
        merge=merge,
        registry=registry,
        chunk_size=settings.SYNC_CHUNK_SIZE,
    )
    query = ResilientRangeQuery(store=store, registry=registry, normalizer=normalizer)

    logger.debug(
        f"Contexto de sync construido (chunk={settings.SYNC_CHUNK_SIZE}, "
        f"strict_schema={settings.SYNC_STRICT_SCHEMA})"
    )
    return SyncContext(
        registry=registry,
        normalizer=normalizer,
        store=store,
        repository=repository,
        export=export,
        upsert=upsert,
        merge=merge,
        delta=delta,
        query=query,
    )
