"""
Excepciones del pipeline GitHub Projects -> Postgres.

Taxonomía:
- ConfigurationError: fatal, se levanta antes de cualquier fetch.
- GitHubApiError / PaginationError: fallo al leer un proyecto completo.
- StoreError: fallo de lectura/escritura de UN registro (no fatal).
- SyncLockedError: otra corrida tiene el advisory lock.
"""
from typing import Any, Optional

from tracker_sync.shared.exceptions.base import AppException


class ConfigurationError(AppException):
    """Falta configuración obligatoria o es inválida."""
    
    def __init__(self, message: str, missing: Optional[list[str]] = None):
        details = {"missing": missing} if missing else None
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            details=details
        )
        self.missing = missing or []


class GitHubApiError(AppException):
    """Error de integración con la API GraphQL de GitHub."""
    
    def __init__(
        self,
        message: str,
        status: int = 0,
        errors: Optional[list[Any]] = None,
    ):
        super().__init__(
            message=message,
            error_code="GITHUB_API_ERROR",
            details={"status": status, "errors": errors or []}
        )
        self.status = status
        self.errors = errors or []


class PaginationError(AppException):
    """La fuente devolvió un cursor ya visto (paginación sin progreso)."""
    
    def __init__(self, project_number: int, cursor: str):
        super().__init__(
            message=f"El proyecto {project_number} repitió el cursor '{cursor}'",
            error_code="PAGINATION_ERROR",
            details={"project_number": project_number, "cursor": cursor}
        )


class StoreError(AppException):
    """Fallo del almacén destino para un issue concreto."""
    
    def __init__(self, operation: str, issue_number: Any, cause: Exception):
        super().__init__(
            message=f"Error en {operation} del issue #{issue_number}: {cause}",
            error_code="STORE_ERROR",
            details={"operation": operation, "issue_number": issue_number}
        )
        self.operation = operation
        self.issue_number = issue_number


class SyncLockedError(AppException):
    """Otra corrida del sync mantiene el advisory lock."""
    
    def __init__(self, lock_key: int):
        super().__init__(
            message="Sync ya está corriendo (advisory lock ocupado)",
            error_code="SYNC_LOCKED",
            details={"lock_key": lock_key}
        )
