"""
Tests del normalizador de tipos (Timestamp nativo <-> ISO-8601).
"""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from app.infrastructure.external.firestore_sync.type_normalizer import (
    TypeNormalizer,
    looks_like_timestamp_field,
)
from app.shared.constants.entity_types import EntityType


def test_native_timestamp_becomes_iso_string_with_z(normalizer) -> None:
    ts = datetime(2025, 3, 14, 9, 26, 53, 589000, tzinfo=timezone.utc)
    assert normalizer.to_portable(ts, "createdAt") == "2025-03-14T09:26:53.589000Z"


def test_non_utc_timestamp_is_converted_to_utc(normalizer) -> None:
    ts = datetime(2025, 3, 14, 4, 0, tzinfo=timezone(timedelta(hours=-5)))
    assert normalizer.to_portable(ts) == "2025-03-14T09:00:00.000000Z"


def test_round_trip_on_declared_timestamp_field(normalizer) -> None:
    ts = datetime(2024, 12, 31, 23, 59, 59, 123456, tzinfo=timezone.utc)
    portable = normalizer.to_portable(ts, "date")
    assert normalizer.to_native(portable, "date", EntityType.TRANSACTION) == ts


def test_nested_values_are_converted(normalizer) -> None:
    ts = datetime(2025, 1, 1, tzinfo=timezone.utc)
    record = {"meta": {"seenAt": ts, "tags": ["a", ts]}, "amount": 10}
    portable = normalizer.record_to_portable(record)
    assert portable["meta"]["seenAt"] == "2025-01-01T00:00:00.000000Z"
    assert portable["meta"]["tags"][1] == "2025-01-01T00:00:00.000000Z"
    assert portable["amount"] == 10


def test_date_is_treated_as_midnight_utc(normalizer) -> None:
    assert normalizer.to_portable(date(2025, 6, 1)) == "2025-06-01T00:00:00.000000Z"


def test_date_round_trip_returns_midnight_utc_datetime(normalizer) -> None:
    portable = normalizer.to_portable(date(2025, 6, 1))
    native = normalizer.to_native(portable, "date", EntityType.TRANSACTION)
    assert native == datetime(2025, 6, 1, tzinfo=timezone.utc)
    assert isinstance(native, datetime)


def test_unparseable_string_is_returned_unchanged(normalizer) -> None:
    assert normalizer.to_native("not-a-date", "createdAt", EntityType.USER) == "not-a-date"


def test_declared_type_wins_over_name_heuristic(normalizer) -> None:
    # notificationTime se declara como string ("08:30"), aunque el nombre contenga "Time"
    assert looks_like_timestamp_field("notificationTime")
    assert normalizer.to_native("2025-01-01", "notificationTime", EntityType.APP_SETTINGS) == "2025-01-01"


def test_undeclared_field_uses_heuristic(normalizer) -> None:
    parsed = normalizer.to_native("2025-01-01T10:00:00Z", "archivedAt", EntityType.USER)
    assert parsed == datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)


def test_strict_schema_disables_heuristic(registry) -> None:
    strict = TypeNormalizer(registry, strict_schema=True)
    assert strict.to_native("2025-01-01T10:00:00Z", "archivedAt", EntityType.USER) == "2025-01-01T10:00:00Z"
    assert isinstance(strict.to_native("2025-01-01T10:00:00Z", "createdAt", EntityType.USER), datetime)


def test_non_string_values_pass_through_to_native(normalizer) -> None:
    assert normalizer.to_native(12.5, "amount", EntityType.TRANSACTION) == 12.5
    assert normalizer.to_native(None, "date", EntityType.TRANSACTION) is None


def test_document_to_record_backfills_primary_key(normalizer) -> None:
    record = normalizer.document_to_record(EntityType.TRANSACTION, "tx-1", {"amount": 5})
    assert record == {"amount": 5, "transactionID": "tx-1"}

    kept = normalizer.document_to_record(EntityType.TRANSACTION, "doc-9", {"transactionID": "tx-9"})
    assert kept["transactionID"] == "tx-9"
