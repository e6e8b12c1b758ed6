"""
Comparación y merge de un mismo registro en sus dos versiones.

- local: fila de la base SQL
- remote: documento de Firestore ya normalizado

Por defecto gana Firestore (fuente de verdad), pero la marca isSynced
es estado local: se conserva la de la fila local.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Iterable, Optional

from app.shared.constants.entity_types import DEFAULT_MERGE_IGNORE_FIELDS, SYNC_MARKER_FIELD
from app.shared.utils.datetime_utils import DateTimeUtils
from .types import FieldChange, MergeDiff, Record

_ABSENT = object()


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return DateTimeUtils.to_iso_string(value)
    return str(value)


def _normalize_numbers(value: Any) -> Any:
    # 50 y 50.0 son el mismo valor numérico
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, dict):
        return {k: _normalize_numbers(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_numbers(v) for v in value]
    return value


def _canonical(value: Any) -> Any:
    """Forma comparable: serialización JSON estable (claves ordenadas)."""
    if value is _ABSENT:
        return _ABSENT
    return json.dumps(_normalize_numbers(value), sort_keys=True, default=_json_default)


class MergeResolver:
    def __init__(self, ignore_fields: Iterable[str] = DEFAULT_MERGE_IGNORE_FIELDS) -> None:
        self._ignore_fields = frozenset(ignore_fields)

    @property
    def ignore_fields(self) -> frozenset[str]:
        return self._ignore_fields

    def diff(
        self,
        local: Record,
        remote: Record,
        ignore_fields: Optional[Iterable[str]] = None,
    ) -> MergeDiff:
        """
        Campos cuyo valor difiere entre local y remote.

        Un campo presente en un lado y ausente en el otro cuenta como diferencia
        (None explícito != ausente). isSynced nunca se compara.
        """
        ignored = self._ignore_fields if ignore_fields is None else frozenset(ignore_fields)
        ignored = ignored | {SYNC_MARKER_FIELD}

        changes: MergeDiff = {}
        for key in sorted(set(local) | set(remote)):
            if key in ignored:
                continue
            old = local.get(key, _ABSENT)
            new = remote.get(key, _ABSENT)
            if _canonical(old) != _canonical(new):
                changes[key] = FieldChange(
                    old=None if old is _ABSENT else old,
                    new=None if new is _ABSENT else new,
                )
        return changes

    def merge(self, local: Record, remote: Record, prefer_remote: bool = True) -> Record:
        if not prefer_remote:
            return {**remote, **local}

        merged = {**local, **remote}
        merged[SYNC_MARKER_FIELD] = bool(local.get(SYNC_MARKER_FIELD))
        return merged
