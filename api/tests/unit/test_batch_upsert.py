"""
Tests del upsert por batches hacia el store primario.

Escenario central: 1.200 registros -> chunks de 500, 500 y 200 confirmados
en orden; un registro sin PK se omite sin afectar al resto.
"""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.infrastructure.external.firestore_sync.batch_upsert import BatchUpsertPipeline, chunked
from app.infrastructure.external.firestore_sync.types import BatchOperation
from app.shared.constants.entity_types import WRITE_BATCH_LIMIT, EntityType
from app.shared.exceptions.domain import (
    BatchLimitViolation,
    PartialSyncFailure,
    RecordValidationError,
)

FIXED_NOW = datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc)


def _transactions(count: int) -> list[dict]:
    return [
        {
            "transactionID": f"tx-{i:05d}",
            "userID": "u1",
            "amount": float(i),
            "type": "EXPENSE",
            "date": "2025-04-01T00:00:00.000000Z",
            "isSynced": False,
        }
        for i in range(count)
    ]


def _pipeline(store, registry, normalizer, **kwargs) -> BatchUpsertPipeline:
    return BatchUpsertPipeline(
        store=store, registry=registry, normalizer=normalizer, clock=lambda: FIXED_NOW, **kwargs
    )


def test_chunked_respects_limit_and_order() -> None:
    items = list(range(1200))
    chunks = list(chunked(items))
    assert [len(c) for c in chunks] == [500, 500, 200]
    assert [x for c in chunks for x in c] == items


def test_chunked_clamps_size_above_limit_and_rejects_zero() -> None:
    assert [len(c) for c in chunked(list(range(1001)), size=2000)] == [500, 500, 1]
    assert list(chunked([], size=10)) == []
    with pytest.raises(ValueError):
        list(chunked([1, 2], size=0))


def test_batch_operation_refuses_more_than_limit() -> None:
    batch = BatchOperation()
    for i in range(WRITE_BATCH_LIMIT):
        batch.set(EntityType.TAG, "TAG", f"t{i}", {})
    with pytest.raises(BatchLimitViolation):
        batch.set(EntityType.TAG, "TAG", "overflow", {})
    with pytest.raises(BatchLimitViolation):
        BatchOperation(limit=WRITE_BATCH_LIMIT + 1)


@pytest.mark.asyncio
async def test_1200_records_commit_in_three_ordered_chunks(store, registry, normalizer) -> None:
    records = _transactions(1200)
    result = await _pipeline(store, registry, normalizer).upsert_all(EntityType.TRANSACTION, records)

    assert result.committed == 1200
    assert result.chunks == 3
    assert [len(b) for b in store.committed_batches] == [500, 500, 200]
    assert store.committed_batches[0].doc_ids[0] == "tx-00000"
    assert store.committed_batches[2].doc_ids[-1] == "tx-01199"
    assert len(store.docs("TRANSACTIONS")) == 1200


@pytest.mark.asyncio
async def test_record_without_primary_key_is_skipped(store, registry, normalizer) -> None:
    records = _transactions(1200)
    del records[500]["transactionID"]

    result = await _pipeline(store, registry, normalizer).upsert_all(EntityType.TRANSACTION, records)

    assert result.committed == 1199
    assert result.skipped == 1
    assert [len(b) for b in store.committed_batches] == [500, 499, 200]
    assert "tx-00500" not in store.docs("TRANSACTIONS")


@pytest.mark.asyncio
async def test_payload_strips_pk_and_marker_and_converts_timestamps(store, registry, normalizer) -> None:
    records = [{**_transactions(1)[0], "description": None}]
    await _pipeline(store, registry, normalizer).upsert_all(EntityType.TRANSACTION, records)

    doc = store.docs("TRANSACTIONS")["tx-00000"]
    assert "transactionID" not in doc
    assert "isSynced" not in doc
    assert "description" not in doc
    assert doc["date"] == datetime(2025, 4, 1, tzinfo=timezone.utc)
    assert doc["updatedAt"] == FIXED_NOW


@pytest.mark.asyncio
async def test_updated_at_stamp_can_be_disabled(store, registry, normalizer) -> None:
    pipeline = _pipeline(store, registry, normalizer, stamp_updated_at=False)
    await pipeline.upsert_all(EntityType.TRANSACTION, _transactions(1))
    assert "updatedAt" not in store.docs("TRANSACTIONS")["tx-00000"]


@pytest.mark.asyncio
async def test_missing_required_field_fails_before_any_commit(store, registry, normalizer) -> None:
    records = _transactions(10)
    records[7]["amount"] = None

    with pytest.raises(RecordValidationError) as exc_info:
        await _pipeline(store, registry, normalizer).upsert_all(EntityType.TRANSACTION, records)

    assert exc_info.value.field == "amount"
    assert exc_info.value.record_id == "tx-00007"
    assert store.commit_attempts == 0


@pytest.mark.asyncio
async def test_failed_chunk_stops_the_sequence(make_store, registry, normalizer) -> None:
    store = make_store(fail_commit_numbers={2})
    committed_chunks: list[list[str]] = []

    async def on_commit(entity_type, doc_ids):
        committed_chunks.append(doc_ids)

    with pytest.raises(PartialSyncFailure) as exc_info:
        await _pipeline(store, registry, normalizer).upsert_all(
            EntityType.TRANSACTION, _transactions(1200), on_chunk_committed=on_commit
        )

    assert exc_info.value.committed_chunks == 1
    assert exc_info.value.committed_records == 500
    # El tercer chunk nunca se intenta
    assert store.commit_attempts == 2
    assert len(committed_chunks) == 1
    assert len(store.docs("TRANSACTIONS")) == 500


@pytest.mark.asyncio
async def test_smaller_chunk_size_is_honored(store, registry, normalizer) -> None:
    pipeline = _pipeline(store, registry, normalizer, chunk_size=100)
    result = await pipeline.upsert_all(EntityType.TRANSACTION, _transactions(250))
    assert result.chunks == 3
    assert [len(b) for b in store.committed_batches] == [100, 100, 50]


@pytest.mark.asyncio
async def test_delete_all_removes_documents(store, registry, normalizer) -> None:
    store.seed("TAG", {"t1": {"name": "a"}, "t2": {"name": "b"}, "t3": {"name": "c"}})

    result = await _pipeline(store, registry, normalizer).delete_all(EntityType.TAG, ["t1", "t3", ""])

    assert result.committed == 2
    assert set(store.docs("TAG")) == {"t2"}
