"""
Casos de uso de sincronización Firestore <-> base local.

Política del orquestador: cada tipo de entidad se procesa por separado.
Un error en una entidad se registra en el reporte y la corrida continúa
con la siguiente; el resultado final es un SyncRunReport por entidad.
"""
from pathlib import Path
from typing import Awaitable, Callable, Optional

from loguru import logger

from app.infrastructure.external.firestore_sync.csv_export import (
    entity_csv_headers,
    records_to_csv,
    write_entity_csv,
)
from app.infrastructure.external.firestore_sync.structure_validation import (
    StructureReport,
    parse_csv_headers,
    summarize,
    validate_structure,
)
from app.infrastructure.external.firestore_sync.sync_context import SyncContext
from app.infrastructure.external.firestore_sync.types import EntitySyncReport, SyncRunReport
from app.shared.constants.entity_types import EntityType
from app.shared.exceptions.base import AppException
from app.shared.exceptions.domain import PartialSyncFailure, UnknownEntityException

EntityAction = Callable[[EntityType], Awaitable[tuple[int, dict]]]


def _escape(text: str) -> str:
    # loguru interpreta llaves como placeholders
    return text.replace("{", "{{").replace("}", "}}")


class SyncUseCases:
    """Orquestador de pull / push / export CSV sobre todas las entidades."""

    def __init__(self, context: SyncContext):
        self.context = context

    def resolve_entities(self, entity: Optional[str] = None) -> list[EntityType]:
        """
        Sin entidad -> todas las declaradas. Acepta nombre de entidad,
        colección o tabla.
        """
        registry = self.context.registry
        if not entity:
            return registry.entity_types()
        resolved = registry.resolve(entity)
        if resolved is None:
            raise UnknownEntityException(entity, [e.value for e in registry.entity_types()])
        return [resolved]

    async def _run(self, operation: str, entities: list[EntityType], action: EntityAction) -> SyncRunReport:
        report = SyncRunReport(operation=operation)
        logger.info(f"Iniciando {operation} de {len(entities)} entidad(es)")

        for entity_type in entities:
            try:
                count, details = await action(entity_type)
                report.entities.append(
                    EntitySyncReport(entity_type=entity_type, status="success", count=count, details=details)
                )
            except PartialSyncFailure as e:
                logger.warning(f"{operation} parcial de {entity_type.value}: {_escape(e.message)}")
                report.entities.append(EntitySyncReport(
                    entity_type=entity_type,
                    status="partial",
                    count=e.committed_records,
                    error=e.message,
                    details=e.details,
                ))
            except AppException as e:
                logger.error(f"{operation} de {entity_type.value} falló: {_escape(e.message)}")
                report.entities.append(EntitySyncReport(
                    entity_type=entity_type, status="error", error=e.message, details=e.to_payload(),
                ))
            except Exception as e:
                logger.error(f"{operation} de {entity_type.value} falló: {_escape(str(e))}")
                report.entities.append(
                    EntitySyncReport(entity_type=entity_type, status="error", error=str(e))
                )

        logger.info(
            f"{operation} finalizado: {report.succeeded} ok, {report.failed} con error, "
            f"{report.total_records} registros"
        )
        return report

    async def pull(self, entity: Optional[str] = None) -> SyncRunReport:
        """Firestore -> base local."""
        async def action(entity_type: EntityType) -> tuple[int, dict]:
            result = await self.context.delta.pull_from_primary(entity_type)
            return result.count, {"inserted": result.inserted, "updated": result.updated}

        return await self._run("pull", self.resolve_entities(entity), action)

    async def push(self, entity: Optional[str] = None) -> SyncRunReport:
        """Registros locales pendientes (isSynced = false) -> Firestore."""
        async def action(entity_type: EntityType) -> tuple[int, dict]:
            result = await self.context.delta.sync_unsynced(entity_type)
            return result.pushed, {"skipped": result.skipped}

        return await self._run("push", self.resolve_entities(entity), action)

    async def export_csv(self, directory: str, entity: Optional[str] = None) -> tuple[SyncRunReport, dict]:
        """
        Exporta cada colección a <directorio>/<COLECCION>.csv y valida que
        las columnas escritas cubran el esquema declarado.
        """
        structures: dict[str, StructureReport] = {}

        async def action(entity_type: EntityType) -> tuple[int, dict]:
            records = await self.context.export.export_all(entity_type)
            path = write_entity_csv(Path(directory), self.context.registry, entity_type, records)
            structure = validate_structure(
                parse_csv_headers(path.read_text(encoding="utf-8")), entity_type, self.context.registry
            )
            structures[entity_type.value] = structure
            if not structure.valid:
                logger.warning(f"{path.name}: faltan columnas {structure.missing_fields}")
            return len(records), {"path": str(path), "structure_valid": structure.valid}

        report = await self._run("export_csv", self.resolve_entities(entity), action)
        return report, summarize(structures)

    async def export_entity_csv(self, entity: str) -> tuple[str, str]:
        """Retorna (nombre de archivo, contenido CSV) de una colección."""
        entity_type = self.resolve_entities(entity)[0]
        registry = self.context.registry
        records = await self.context.export.export_all(entity_type)
        content = records_to_csv(records, entity_csv_headers(registry, entity_type, records))
        return f"{registry.collection_name_of(entity_type)}.csv", content

    async def statistics(self) -> dict:
        return await self.context.repository.sync_statistics()

    async def cleanup_sync_logs(self, days_to_keep: int) -> int:
        return await self.context.repository.cleanup_sync_logs(days_to_keep)
