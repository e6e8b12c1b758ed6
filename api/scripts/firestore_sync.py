"""
CLI: Firestore <-> base local.

Uso recomendado:
  - Ejecutar como job (cron/systemd timer) para corridas completas.
  - El API expone lo mismo para disparos puntuales desde la UI.

Variables de entorno (ver app/core/config.py):
  - FIRESTORE_PROJECT_ID (opcional; por defecto el de las credenciales)
  - GOOGLE_APPLICATION_CREDENTIALS
  - SECONDARY_DATABASE_URL (sqlite:///... o postgresql://...)

Ejecución:
  python scripts/firestore_sync.py --pull
  python scripts/firestore_sync.py --push --entity TRANSACTION
  python scripts/firestore_sync.py --csv exports/
  python scripts/firestore_sync.py --stats
  python scripts/firestore_sync.py --cleanup 30
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from loguru import logger
from dotenv import load_dotenv

# Permite ejecutar este script desde cualquier cwd sin configurar PYTHONPATH.
# La carpeta "api" contiene el paquete raíz `app/`.
_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))

# Cargar variables desde .env si existe (antes de importar Settings).
_REPO_ROOT = _API_ROOT.parent
load_dotenv(_API_ROOT / ".env", override=False)
load_dotenv(_REPO_ROOT / ".env", override=False)

from app.application.use_cases.sync_use_cases import SyncUseCases
from app.core.config import settings
from app.infrastructure.external.firestore_sync.sync_context import build_sync_context
from app.infrastructure.external.firestore_sync.types import SyncRunReport


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sincronización Firestore <-> base local")
    parser.add_argument("--pull", action="store_true", help="Importa Firestore a la base local.")
    parser.add_argument("--push", action="store_true", help="Envía a Firestore los registros con isSynced = false.")
    parser.add_argument(
        "--csv",
        metavar="DIR",
        nargs="?",
        const=settings.CSV_EXPORT_DIR,
        help="Exporta cada colección a DIR/<COLECCION>.csv (por defecto CSV_EXPORT_DIR).",
    )
    parser.add_argument("--stats", action="store_true", help="Muestra el estado de sincronización por tabla.")
    parser.add_argument(
        "--cleanup",
        metavar="DAYS",
        type=int,
        nargs="?",
        const=settings.SYNC_LOG_RETENTION_DAYS,
        help="Borra entradas de SYNC_LOG más antiguas que DAYS días.",
    )
    parser.add_argument("--entity", help="Limita la operación a una entidad (nombre, colección o tabla).")
    return parser


def _log_report(report: SyncRunReport) -> None:
    for entry in report.entities:
        line = f"  {entry.entity_type.value:<26} {entry.status:<8} {entry.count:>7}"
        if entry.error:
            logger.warning(f"{line}  {entry.error}")
        else:
            logger.info(line)
    logger.info(
        f"{report.operation}: {report.succeeded} ok / {report.failed} con error, "
        f"{report.total_records} registros"
    )


async def _run(args: argparse.Namespace) -> int:
    context = build_sync_context(settings)
    use_cases = SyncUseCases(context)
    exit_code = 0
    try:
        await context.repository.ensure_tables()

        if args.pull:
            report = await use_cases.pull(args.entity)
            _log_report(report)
            exit_code = exit_code or (1 if report.failed else 0)

        if args.push:
            report = await use_cases.push(args.entity)
            _log_report(report)
            exit_code = exit_code or (1 if report.failed else 0)

        if args.csv:
            report, structure = await use_cases.export_csv(args.csv, args.entity)
            _log_report(report)
            logger.info(f"Estructura: {structure['valid']}/{structure['total']} válidas")
            for name, detail in structure["details"].items():
                logger.warning(f"  {name}: faltan {detail['missing_fields']}")
            exit_code = exit_code or (1 if report.failed else 0)

        if args.stats:
            stats = await use_cases.statistics()
            print(json.dumps(stats, indent=2, ensure_ascii=False))

        if args.cleanup is not None:
            deleted = await use_cases.cleanup_sync_logs(args.cleanup)
            logger.info(f"SYNC_LOG: {deleted} entradas borradas")
    finally:
        await context.close()

    return exit_code


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()
    if not (args.pull or args.push or args.csv or args.stats or args.cleanup is not None):
        parser.print_help()
        return 2

    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
