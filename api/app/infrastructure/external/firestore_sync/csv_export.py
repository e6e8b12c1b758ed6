"""
Serialización de registros a CSV (artefacto de respaldo / intercambio).

Reglas de valor:
- None -> celda vacía
- dict / list -> JSON
- bool -> "true" / "false"
- datetime -> ISO-8601 UTC
El quoting (delimitador, comillas, saltos de línea) lo resuelve el módulo csv.
"""

from __future__ import annotations

import csv
import io
import json
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

from loguru import logger

from app.shared.utils.datetime_utils import DateTimeUtils
from .schema_registry import EntityRef, SchemaRegistry
from .types import Record


def format_csv_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return DateTimeUtils.to_iso_string(value)
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def collect_headers(records: Iterable[Record], preferred: Sequence[str] = ()) -> list[str]:
    """Columnas preferidas primero; después las claves extra en orden de aparición."""
    headers = list(preferred)
    seen = set(headers)
    for record in records:
        for key in record:
            if key not in seen:
                seen.add(key)
                headers.append(key)
    return headers


def records_to_csv(
    records: Sequence[Record],
    headers: Optional[Sequence[str]] = None,
    delimiter: str = ",",
) -> str:
    if headers is None:
        headers = collect_headers(records)
    if not headers:
        return ""

    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=delimiter, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(headers)
    for record in records:
        writer.writerow([format_csv_value(record.get(h)) for h in headers])
    return buffer.getvalue()


def entity_csv_headers(registry: SchemaRegistry, entity_type: EntityRef, records: Sequence[Record]) -> list[str]:
    schema = registry.schema_of(entity_type)
    preferred = schema.field_names if schema else ()
    return collect_headers(records, preferred)


def write_entity_csv(
    directory: Path,
    registry: SchemaRegistry,
    entity_type: EntityRef,
    records: Sequence[Record],
) -> Path:
    """Escribe <COLECCION>.csv en directory y retorna la ruta."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{registry.collection_name_of(entity_type)}.csv"

    content = records_to_csv(records, entity_csv_headers(registry, entity_type, records))
    path.write_text(content, encoding="utf-8")
    logger.info(f"CSV generado: {path} ({len(records)} filas)")
    return path
