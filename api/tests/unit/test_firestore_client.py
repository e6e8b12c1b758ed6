from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from google.api_core import exceptions as google_exceptions

from app.infrastructure.external.firestore_sync.firestore_client import (
    FirestoreDocumentStore,
    translate_firestore_error,
)
from app.infrastructure.external.firestore_sync.types import BatchOperation
from app.shared.constants.entity_types import EntityType
from app.shared.exceptions.domain import IndexMissingError, TransientStoreError

from conftest import INDEX_URL


def test_missing_index_becomes_index_missing_error() -> None:
    error = google_exceptions.FailedPrecondition(
        f"The query requires an index. You can create it here: {INDEX_URL}"
    )

    translated = translate_firestore_error(error)

    assert isinstance(translated, IndexMissingError)
    assert translated.remediation_url == INDEX_URL


def test_other_precondition_errors_are_not_translated() -> None:
    assert translate_firestore_error(google_exceptions.FailedPrecondition("document too large")) is None


@pytest.mark.parametrize(
    "error_cls",
    [
        google_exceptions.ServiceUnavailable,
        google_exceptions.DeadlineExceeded,
        google_exceptions.InternalServerError,
        google_exceptions.TooManyRequests,
    ],
)
def test_transient_errors(error_cls) -> None:
    assert isinstance(translate_firestore_error(error_cls("caído")), TransientStoreError)


def test_permission_errors_are_not_translated() -> None:
    assert translate_firestore_error(google_exceptions.PermissionDenied("sin acceso")) is None


def _mock_client() -> MagicMock:
    client = MagicMock()
    write_batch = MagicMock()
    write_batch.commit = AsyncMock()
    client.batch.return_value = write_batch
    return client


@pytest.mark.asyncio
async def test_commit_maps_operations_to_write_batch() -> None:
    client = _mock_client()
    batch = BatchOperation()
    batch.set(EntityType.BUDGET, "BUDGET", "b1", {"userID": "u1"})
    batch.delete(EntityType.BUDGET, "BUDGET", "b2")

    await FirestoreDocumentStore(client).commit(batch)

    write_batch = client.batch.return_value
    assert write_batch.set.call_count == 1
    assert write_batch.set.call_args.args[1] == {"userID": "u1"}
    assert write_batch.set.call_args.kwargs == {"merge": True}
    assert write_batch.delete.call_count == 1
    write_batch.commit.assert_awaited_once()
    client.collection.return_value.document.assert_any_call("b2")


@pytest.mark.asyncio
async def test_commit_translates_transient_failure() -> None:
    client = _mock_client()
    client.batch.return_value.commit.side_effect = google_exceptions.ServiceUnavailable("unavailable")
    batch = BatchOperation()
    batch.set(EntityType.BUDGET, "BUDGET", "b1", {"userID": "u1"})

    with pytest.raises(TransientStoreError) as exc_info:
        await FirestoreDocumentStore(client).commit(batch)

    assert isinstance(exc_info.value.__cause__, google_exceptions.ServiceUnavailable)
