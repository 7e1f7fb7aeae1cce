"""
Configuración central del sync.
Gestiona variables de entorno y valores por defecto.

El objeto Settings se construye una vez en el entry point y se pasa
explícitamente al orquestador; el motor no lee estado global.
"""
import json
from typing import List
from loguru import logger
from pydantic_settings import BaseSettings
from pydantic import Field, computed_field, field_validator

from tracker_sync.shared.exceptions.sync import ConfigurationError


REQUIRED_FIELDS = ("GITHUB_TOKEN", "GITHUB_ORG", "GITHUB_PROJECT_NUMBERS", "DATABASE_URL")


class Settings(BaseSettings):
    """
    Clase de configuración del sync.
    Lee variables de entorno y proporciona valores por defecto.

    Obligatorias (ver validate_required):
    - GITHUB_TOKEN: token con permiso de lectura de proyectos
    - GITHUB_ORG: login de la organización dueña de los proyectos
    - GITHUB_PROJECT_NUMBERS: lista JSON o separada por comas
    - DATABASE_URL: DSN de Postgres
    """

    # GitHub
    GITHUB_TOKEN: str = Field(default="")
    GITHUB_ORG: str = Field(default="")
    GITHUB_PROJECT_NUMBERS: str = Field(default="")
    GITHUB_GRAPHQL_URL: str = Field(default="https://api.github.com/graphql")
    # GitHub limita `first` a 100 por conexión
    GITHUB_PAGE_SIZE: int = Field(default=100, ge=1, le=100)
    HTTP_TIMEOUT_S: int = Field(default=30)

    # Base de datos destino
    DATABASE_URL: str = Field(default="")
    ISSUE_SCHEMA: str = Field(default="public")
    ISSUE_TABLE: str = Field(default="issue_tracker")

    # Ciclo de vida de los issues
    IN_PROGRESS_STATUS: str = Field(default="In progress")
    DONE_STATUS: str = Field(default="Done")

    # Zona horaria fija (minutos respecto de UTC). 330 = +05:30 (IST)
    TIMEZONE_OFFSET_MINUTES: int = Field(default=330)
    # Margen restado a start_time/end_time. 0 = instante real de escritura
    LIFECYCLE_GRACE_MINUTES: int = Field(default=10, ge=0)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="")

    @field_validator("LOG_LEVEL")
    @classmethod
    def log_level_must_exist(cls, v: str) -> str:
        level = (v or "").strip().upper()
        try:
            logger.level(level)
        except ValueError:
            raise ValueError(f"LOG_LEVEL desconocido: {v!r}") from None
        return level

    @computed_field
    @property
    def project_numbers(self) -> List[int]:
        """Números de proyecto a sincronizar, en el orden configurado."""
        return parse_project_numbers(self.GITHUB_PROJECT_NUMBERS)

    def validate_required(self) -> None:
        """
        Verifica que la configuración obligatoria este presente.

        Raises:
            ConfigurationError: con la lista completa de variables faltantes
        """
        missing = [name for name in REQUIRED_FIELDS if not getattr(self, name).strip()]
        if missing:
            raise ConfigurationError(
                f"Faltan variables de entorno obligatorias: {', '.join(missing)}",
                missing=missing,
            )
        if not self.project_numbers:
            raise ConfigurationError(
                "GITHUB_PROJECT_NUMBERS no contiene ningún número de proyecto",
                missing=["GITHUB_PROJECT_NUMBERS"],
            )

    class Config:
        """Configuración de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignorar campos extra del .env


def parse_project_numbers(raw: str) -> List[int]:
    """
    Parsea la lista de proyectos.
    Acepta una lista JSON ("[7, 12]") o valores separados por comas ("7,12").

    Raises:
        ConfigurationError: si algun valor no es un entero
    """
    raw = (raw or "").strip()
    if not raw:
        return []
    try:
        values = json.loads(raw)
    except json.JSONDecodeError:
        # Si no es JSON válido, tratar como lista simple
        values = [part.strip() for part in raw.split(",") if part.strip()]
    if not isinstance(values, list):
        values = [values]
    try:
        return [int(v) for v in values]
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"GITHUB_PROJECT_NUMBERS inválido: {raw!r}",
            missing=["GITHUB_PROJECT_NUMBERS"],
        ) from e
