"""
Configuración de fixtures para pytest.

- InMemoryDocumentStore: reemplazo de Firestore con inyección de fallos
  (commits numerados) y simulación de índice compuesto faltante.
- sql_repository: base SQLite en memoria (aiosqlite) por test.
"""
from typing import Any, AsyncGenerator, Iterable, Optional, Sequence

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.config import Settings
from app.infrastructure.external.firestore_sync.schema_registry import SchemaRegistry, build_default_registry
from app.infrastructure.external.firestore_sync.sql_repository import SqlMirrorRepository
from app.infrastructure.external.firestore_sync.sync_context import SyncContext, build_sync_context
from app.infrastructure.external.firestore_sync.type_normalizer import TypeNormalizer
from app.infrastructure.external.firestore_sync.types import BatchOperation, RangeFilter, SortSpec
from app.shared.constants.entity_types import WRITE_BATCH_LIMIT, SortDirection, WriteKind
from app.shared.exceptions.domain import TransientStoreError


# URL de base de datos de prueba
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

INDEX_URL = (
    "https://console.firebase.google.com/v1/r/project/demo/firestore/indexes"
    "?create_composite=ClBwcm9qZWN0cy9kZW1v"
)


class InMemoryDocumentStore:
    """
    Store de documentos en memoria con la semántica relevante de Firestore:
    - commit atómico por batch, con set en modo merge
    - consultas con igualdad requieren índice compuesto si require_composite_index
    - orden por valor y desempate por ID en la misma dirección
    """

    def __init__(
        self,
        *,
        require_composite_index: bool = False,
        fail_commit_numbers: Iterable[int] = (),
        fail_degraded_query: bool = False,
    ) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.require_composite_index = require_composite_index
        self.fail_commit_numbers = set(fail_commit_numbers)
        self.fail_degraded_query = fail_degraded_query
        self.commit_attempts = 0
        self.committed_batches: list[BatchOperation] = []
        self.queries: list[dict[str, Any]] = []

    def seed(self, collection: str, docs: dict[str, dict[str, Any]]) -> None:
        self.collections.setdefault(collection, {}).update({k: dict(v) for k, v in docs.items()})

    def docs(self, collection: str) -> dict[str, dict[str, Any]]:
        return self.collections.get(collection, {})

    async def stream(self, collection: str):
        for doc_id in sorted(self.docs(collection)):
            yield doc_id, dict(self.docs(collection)[doc_id])

    async def query(
        self,
        collection: str,
        *,
        range_filter: RangeFilter,
        equality: Sequence[tuple[str, Any]] = (),
        sort: Optional[SortSpec] = None,
    ):
        self.queries.append({"collection": collection, "equality": tuple(equality), "sort": sort})
        if self.require_composite_index and equality:
            raise RuntimeError(
                "400 The query requires an index. You can create it here: " + INDEX_URL
            )
        if self.fail_degraded_query and sort is None:
            raise TransientStoreError("firestore", "deadline exceeded")

        matches = []
        for doc_id in sorted(self.docs(collection)):
            fields = self.docs(collection)[doc_id]
            value = fields.get(range_filter.field)
            if value is None or not (range_filter.start <= value <= range_filter.end):
                continue
            if any(fields.get(name) != expected for name, expected in equality):
                continue
            matches.append((doc_id, dict(fields)))

        if sort is not None:
            matches.sort(
                key=lambda d: (d[1][sort.field], d[0]),
                reverse=sort.direction == SortDirection.DESCENDING,
            )
        return matches

    async def commit(self, batch: BatchOperation) -> None:
        self.commit_attempts += 1
        assert len(batch) <= WRITE_BATCH_LIMIT
        if self.commit_attempts in self.fail_commit_numbers:
            raise TransientStoreError("firestore", f"commit {self.commit_attempts} rechazado")
        for op in batch:
            target = self.collections.setdefault(op.collection, {})
            if op.kind == WriteKind.DELETE:
                target.pop(op.doc_id, None)
            else:
                # set(..., merge=True) de Firestore
                target[op.doc_id] = {**target.get(op.doc_id, {}), **(op.data or {})}
        self.committed_batches.append(batch)


@pytest.fixture
def registry() -> SchemaRegistry:
    return build_default_registry()


@pytest.fixture
def normalizer(registry: SchemaRegistry) -> TypeNormalizer:
    return TypeNormalizer(registry)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture(scope="function")
async def sql_repository(registry: SchemaRegistry) -> AsyncGenerator[SqlMirrorRepository, None]:
    """
    Repositorio sobre una base SQLite en memoria para cada test.
    StaticPool: todas las conexiones comparten la misma base.
    """
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    repository = SqlMirrorRepository(engine, registry)
    await repository.ensure_tables()
    yield repository
    await repository.dispose()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(SECONDARY_DATABASE_URL=TEST_DATABASE_URL, LOG_FILE="logs/test.log")


@pytest.fixture
def sync_context(
    test_settings: Settings,
    store: InMemoryDocumentStore,
    sql_repository: SqlMirrorRepository,
    registry: SchemaRegistry,
) -> SyncContext:
    return build_sync_context(test_settings, store=store, repository=sql_repository, registry=registry)


@pytest.fixture
def make_store():
    """Fábrica para tests que necesitan un store con fallos configurados."""
    return InMemoryDocumentStore
