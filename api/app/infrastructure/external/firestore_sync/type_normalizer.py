"""
Normalizador de tipos Firestore <-> representación portable.

- Firestore devuelve Timestamps como datetime aware
  (DatetimeWithNanoseconds de google-api-core).
- La base local y los CSV guardan strings ISO-8601 en UTC con sufijo 'Z'.

El tipo de cada campo sale del esquema declarado en el registro. Solo para
campos no declarados se usa la heurística por nombre (contiene "At" o "Time",
o se llama "date"); con strict_schema=True la heurística se desactiva.

El ida y vuelta native -> portable -> native conserva el instante, no la
forma: un datetime con otra zona vuelve en UTC y un date sin hora vuelve
como datetime UTC a medianoche (Firestore tampoco guarda date sin hora).
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from app.shared.constants.entity_types import EntityType
from app.shared.utils.datetime_utils import DateTimeUtils
from .schema_registry import EntityRef, SchemaRegistry
from .types import FieldType, Record


def looks_like_timestamp_field(field_name: str) -> bool:
    """Heurística histórica para campos sin tipo declarado."""
    return "At" in field_name or "Time" in field_name or field_name == "date"


class TypeNormalizer:
    """
    Conversión bidireccional de timestamps.

    Uso:
        normalizer = TypeNormalizer(registry)
        row = normalizer.record_to_portable(doc_fields)
        payload = normalizer.record_to_native(row, EntityType.TRANSACTION)
    """

    def __init__(self, registry: SchemaRegistry, *, strict_schema: bool = False) -> None:
        self._registry = registry
        self._strict_schema = strict_schema

    @staticmethod
    def is_native_timestamp(value: Any) -> bool:
        # datetime es subclase de date: ambos cubren Timestamp de Firestore
        return isinstance(value, (datetime, date))

    def is_timestamp_field(self, field_name: str, entity_type: Optional[EntityRef] = None) -> bool:
        if entity_type is not None:
            schema = self._registry.schema_of(entity_type)
            if schema is not None:
                declared = schema.field_type(field_name)
                if declared is not None:
                    return declared == FieldType.TIMESTAMP
        if self._strict_schema:
            return False
        return looks_like_timestamp_field(field_name)

    def to_portable(self, value: Any, field_name: Optional[str] = None) -> Any:
        """
        Timestamp nativo -> string ISO-8601. Cualquier otro valor pasa sin cambios;
        listas y mapas se recorren en profundidad.
        """
        if self.is_native_timestamp(value):
            return DateTimeUtils.to_iso_string(value)
        if isinstance(value, dict):
            return {k: self.to_portable(v, k) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self.to_portable(v, field_name) for v in value]
        return value

    def to_native(
        self,
        value: Any,
        field_name: str,
        entity_type: Optional[EntityRef] = None,
    ) -> Any:
        """
        String ISO-8601 -> datetime UTC si el campo es de tipo timestamp.

        Si el parseo falla se devuelve el string original: los callers
        deben tolerar strings con forma de fecha sin convertir.
        """
        if not isinstance(value, str):
            return value
        if not self.is_timestamp_field(field_name, entity_type):
            return value
        parsed = DateTimeUtils.from_iso_string(value)
        return parsed if parsed is not None else value

    def record_to_portable(self, record: Record) -> Record:
        return {k: self.to_portable(v, k) for k, v in record.items()}

    def record_to_native(self, record: Record, entity_type: Optional[EntityType] = None) -> Record:
        return {k: self.to_native(v, k, entity_type) for k, v in record.items()}

    def document_to_record(self, entity_type: EntityRef, doc_id: str, fields: Record) -> Record:
        """
        Documento de Firestore -> registro listo para tabla.

        Los documentos antiguos a veces no guardan su PK como campo: se
        completa con el id del documento.
        """
        record = self.record_to_portable(fields)
        primary_key = self._registry.primary_key_of(entity_type)
        if record.get(primary_key) in (None, ""):
            record[primary_key] = doc_id
        return record
