"""
Arranque del proceso de sync: logging y validación de configuración.
"""
import sys

from loguru import logger

from tracker_sync import __version__
from tracker_sync.core.config import Settings


def configure_logging(settings: Settings) -> None:
    """
    Configura los sinks de loguru.

    - stderr siempre, al nivel LOG_LEVEL
    - archivo rotativo si LOG_FILE está definido
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.LOG_LEVEL,
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | {message}",
    )
    if settings.LOG_FILE:
        logger.add(
            settings.LOG_FILE,
            rotation="500 MB",
            retention="10 days",
            level=settings.LOG_LEVEL,
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {extra} | {message}",
        )


def startup(settings: Settings) -> None:
    """
    Inicializa el proceso antes de cualquier fetch.

    Raises:
        ConfigurationError: si falta configuración obligatoria
    """
    configure_logging(settings)
    logger.info(f"Iniciando tracker-sync v{__version__}")
    settings.validate_required()
    logger.info(
        f"Organización: {settings.GITHUB_ORG} | proyectos: {settings.project_numbers} | "
        f"destino: {settings.ISSUE_SCHEMA}.{settings.ISSUE_TABLE}"
    )
