"""
Tests del registro de esquemas: biyección colección <-> tabla, PKs
declarados y fallback identidad para nombres desconocidos.
"""
from __future__ import annotations

import pytest

from app.infrastructure.external.firestore_sync.schema_registry import (
    EntitySchema,
    SchemaRegistry,
    default_schemas,
)
from app.infrastructure.external.firestore_sync.types import FieldType
from app.shared.constants.entity_types import EntityType


def test_every_entity_type_has_a_schema(registry) -> None:
    assert set(registry.entity_types()) == set(EntityType)


def test_collection_and_table_names_round_trip(registry) -> None:
    for entity_type in EntityType:
        table = registry.table_name_of(entity_type)
        collection = registry.collection_name_of(entity_type)
        assert registry.entity_type_of_table(table) == entity_type
        assert registry.collection_name_of_table(table) == collection


def test_historical_collection_typos_are_kept(registry) -> None:
    assert registry.collection_name_of(EntityType.PAYMENT_METHOD) == "PAYMENT_METHHOD"
    assert registry.collection_name_of(EntityType.MERCHANT) == "MERCHART"
    assert registry.collection_name_of(EntityType.TRANSACTION) == "TRANSACTIONS"
    assert registry.collection_name_of(EntityType.EXPENSES) == "expenses"


def test_primary_keys_are_declared_per_entity(registry) -> None:
    assert registry.primary_key_of(EntityType.TRANSACTION) == "transactionID"
    assert registry.primary_key_of(EntityType.PAYMENT_METHOD) == "methodID"
    assert registry.primary_key_of(EntityType.TRANSACTION_TAG) == "id"
    assert registry.primary_key_of("TRANSACTIONS") == "transactionID"


def test_unknown_names_fall_back_to_identity(registry) -> None:
    assert registry.resolve("AUDIT_TRAIL") is None
    assert registry.table_name_of("AUDIT_TRAIL") == "AUDIT_TRAIL"
    assert registry.collection_name_of("AUDIT_TRAIL") == "AUDIT_TRAIL"
    assert registry.entity_type_of_table("AUDIT_TRAIL") == "AUDIT_TRAIL"
    assert registry.primary_key_of("AUDIT_TRAIL") == "id"


def test_resolve_accepts_collection_table_and_value(registry) -> None:
    assert registry.resolve("MERCHART") == EntityType.MERCHANT
    assert registry.resolve("MERCHANT") == EntityType.MERCHANT
    assert registry.resolve(EntityType.MERCHANT) == EntityType.MERCHANT


def test_primary_key_is_first_and_typed_as_string(registry) -> None:
    schema = registry.require_schema(EntityType.TRANSACTION)
    assert schema.field_names[0] == "transactionID"
    assert schema.field_type("transactionID") == FieldType.STRING
    assert schema.field_type("date") == FieldType.TIMESTAMP
    assert schema.field_type("amount") == FieldType.NUMBER
    assert schema.required == frozenset({"userID", "amount", "type", "date"})


def test_duplicate_entity_is_rejected() -> None:
    schemas = default_schemas()
    duplicate = EntitySchema(
        entity_type=EntityType.TAG,
        collection_name="TAG_COPY",
        table_name="TAG_COPY",
        primary_key="tagID",
    )
    with pytest.raises(ValueError):
        SchemaRegistry(schemas + [duplicate])


def test_missing_entity_is_rejected() -> None:
    schemas = [s for s in default_schemas() if s.entity_type != EntityType.TAG]
    with pytest.raises(ValueError, match="TAG"):
        SchemaRegistry(schemas)
