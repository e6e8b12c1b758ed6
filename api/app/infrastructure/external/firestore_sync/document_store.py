"""
Contrato del store primario (documentos) que consumen los pipelines.

La implementación real vive en firestore_client.py; los tests usan un store
en memoria que cumple el mismo Protocol.
"""

from __future__ import annotations

import re
from typing import Any, AsyncIterator, Optional, Protocol, Sequence

from app.shared.exceptions.domain import IndexMissingError
from .types import BatchOperation, RangeFilter, Record, RemediationDescriptor, SortSpec

DocumentSnapshot = tuple[str, Record]

_INDEX_URL_RE = re.compile(r"https://[^\s)]+")
_PRECONDITION_MARKERS = ("failed_precondition", "failed-precondition", "failed precondition")


class DocumentStore(Protocol):
    def stream(self, collection: str) -> AsyncIterator[DocumentSnapshot]:
        """Itera (doc_id, campos) de toda la colección."""
        ...

    async def query(
        self,
        collection: str,
        *,
        range_filter: RangeFilter,
        equality: Sequence[tuple[str, Any]] = (),
        sort: Optional[SortSpec] = None,
    ) -> list[DocumentSnapshot]:
        ...

    async def commit(self, batch: BatchOperation) -> None:
        """Confirma el batch de forma atómica: todo o nada."""
        ...


def extract_index_url(message: str) -> Optional[str]:
    match = _INDEX_URL_RE.search(message or "")
    return match.group(0) if match else None


def detect_index_requirement(error: BaseException) -> Optional[RemediationDescriptor]:
    """
    Decide si un error de consulta significa "falta un índice compuesto".

    Firestore responde FAILED_PRECONDITION con un texto tipo
    "The query requires an index. You can create it here: https://...".
    Retorna None si el error es de otra naturaleza.
    """
    if isinstance(error, IndexMissingError):
        return RemediationDescriptor(message=error.message, url=error.remediation_url)

    message = str(error)
    lowered = message.lower()
    is_precondition = any(marker in lowered for marker in _PRECONDITION_MARKERS)
    if "requires an index" not in lowered and not (is_precondition and "index" in lowered):
        return None

    url = extract_index_url(message)
    text = "La consulta requiere un índice compuesto"
    if url:
        text = f"{text}. Créalo aquí: {url}"
    return RemediationDescriptor(message=text, url=url)
