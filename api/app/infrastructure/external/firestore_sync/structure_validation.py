"""
Validación de estructura: columnas de un CSV exportado vs esquema declarado.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from .schema_registry import EntityRef, SchemaRegistry


@dataclass(frozen=True)
class StructureReport:
    valid: bool
    expected_fields: list[str]
    actual_fields: list[str]
    missing_fields: list[str] = field(default_factory=list)
    extra_fields: list[str] = field(default_factory=list)


def parse_csv_headers(content: str, delimiter: str = ",") -> list[str]:
    reader = csv.reader(io.StringIO(content), delimiter=delimiter)
    first = next(reader, None)
    return [h.strip() for h in first] if first else []


def validate_structure(
    headers: Sequence[str],
    entity_type: EntityRef,
    registry: SchemaRegistry,
) -> StructureReport:
    """
    Un export es válido si contiene todas las columnas declaradas.
    Las columnas extra no invalidan (documentos con campos nuevos).
    """
    expected = registry.require_schema(entity_type).field_names
    actual = list(headers)
    actual_set = set(actual)
    expected_set = set(expected)
    missing = [f for f in expected if f not in actual_set]
    extra = [f for f in actual if f not in expected_set]
    return StructureReport(
        valid=not missing,
        expected_fields=expected,
        actual_fields=actual,
        missing_fields=missing,
        extra_fields=extra,
    )


def summarize(reports: Mapping[str, StructureReport]) -> dict:
    invalid = {name: r for name, r in reports.items() if not r.valid}
    return {
        "total": len(reports),
        "valid": len(reports) - len(invalid),
        "invalid": len(invalid),
        "details": {
            name: {"missing_fields": r.missing_fields, "extra_fields": r.extra_fields}
            for name, r in invalid.items()
        },
    }
