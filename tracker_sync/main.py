"""
CLI: GitHub Projects -> Postgres (one-way sync).

Uso recomendado:
  - Ejecutar como job (cron/systemd timer/GitHub Actions schedule).

Variables de entorno requeridas:
  - GITHUB_TOKEN (o PAT)
  - GITHUB_ORG
  - GITHUB_PROJECT_NUMBERS (p.ej. "7,12,18")
  - DATABASE_URL (debe ser postgresql://... o postgres://...)

Ejecución:
  tracker-sync
  tracker-sync --project 7 --project 12
  tracker-sync --schema-only

Códigos de salida:
  0 = ok, 1 = error de configuración,
  2 = error fatal de sync o falló el primer proyecto configurado
"""

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv
from loguru import logger
from pydantic import ValidationError

from tracker_sync.core.config import Settings
from tracker_sync.core.events import startup
from tracker_sync.infrastructure.external.github_projects.sync_service import build_from_settings
from tracker_sync.shared.exceptions.sync import ConfigurationError

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_SYNC_ERROR = 2

SCHEMA_SQL_PATH = Path(__file__).resolve().parent / "infrastructure" / "external" / "github_projects" / "schema.sql"


def _read_schema_sql() -> str:
    return SCHEMA_SQL_PATH.read_text(encoding="utf-8")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tracker-sync",
        description="Sincroniza items de GitHub Projects hacia la tabla de issues en Postgres.",
    )
    parser.add_argument(
        "--schema-only",
        action="store_true",
        help="Solo imprime el DDL recomendado (no ejecuta sync).",
    )
    parser.add_argument(
        "--project",
        type=int,
        action="append",
        dest="projects",
        metavar="NUMBER",
        help="Número de proyecto a sincronizar (repetible). Reemplaza GITHUB_PROJECT_NUMBERS.",
    )
    parser.add_argument("--log-level", help="Reemplaza LOG_LEVEL.")
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Construye Settings desde el entorno, aplicando overrides de la CLI."""
    overrides: dict[str, object] = {}
    if not os.getenv("GITHUB_TOKEN") and os.getenv("PAT"):
        overrides["GITHUB_TOKEN"] = os.environ["PAT"]
    if args.projects:
        overrides["GITHUB_PROJECT_NUMBERS"] = ",".join(str(p) for p in args.projects)
    if args.log_level:
        overrides["LOG_LEVEL"] = args.log_level
    return Settings(**overrides)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    if args.schema_only:
        print(_read_schema_sql())
        return EXIT_OK

    # Cargar variables desde .env si existe (no pisa el entorno)
    load_dotenv(Path.cwd() / ".env", override=False)

    try:
        settings = load_settings(args)
        startup(settings)
        service = build_from_settings(settings)
    except ConfigurationError as e:
        logger.error(f"Configuración inválida: {e.message}")
        return EXIT_CONFIG_ERROR
    except ValidationError as e:
        logger.error(f"Configuración inválida: {e}")
        return EXIT_CONFIG_ERROR

    logger.info("Iniciando GitHub Projects -> Postgres sync...")
    try:
        result = service.run(settings.project_numbers)
    except Exception as e:
        logger.error(f"Sync abortado: {e}")
        logger.exception("Detalle del error:")
        return EXIT_SYNC_ERROR

    if result.primary_failed:
        logger.error(
            f"Sync con errores: falló el proyecto principal {result.projects[0].project_number} "
            f"(proyectos_con_error={result.failed_projects})"
        )
        return EXIT_SYNC_ERROR

    total_written = sum(p.summary.written for p in result.projects)
    logger.success(
        f"Sync OK: proyectos={len(result.projects)}, escritos={total_written}, "
        f"proyectos_con_error={result.failed_projects}"
    )
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
