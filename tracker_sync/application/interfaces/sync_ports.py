"""
Contratos que el motor de sincronización consume.

Este contrato existe para:
- Que paginador y reconciliador no dependan de requests/psycopg directamente.
- Facilitar tests unitarios sin red ni base de datos.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from tracker_sync.domain.entities.project_item import SourceItem
from tracker_sync.domain.entities.tracked_issue import TrackedIssue


@dataclass(frozen=True)
class ItemPage:
    """Una página de items. next_cursor None = no hay más páginas."""

    items: list[SourceItem] = field(default_factory=list)
    next_cursor: Optional[str] = None


class ItemPageFetcher(Protocol):
    """
    Obtiene una página de items de un proyecto.

    Implementaciones:
    - GitHubProjectsClient (GraphQL).
    - Fake/stub para tests.
    """

    def fetch_page(self, project_number: int, cursor: Optional[str]) -> ItemPage:
        """cursor None = inicio de la colección."""
        ...


class IssueStore(Protocol):
    """
    Almacén destino de issues, indexado por número de issue.

    "No encontrado" se expresa como None y nunca como excepción; los
    errores de lectura/escritura levantan StoreError.
    """

    def read_by_key(self, issue_number: int) -> Optional[TrackedIssue]:
        ...

    def insert(self, row: dict[str, Any]) -> bool:
        """Retorna False si otra escritura insertó la misma clave antes."""
        ...

    def update_by_key(
        self,
        issue_number: int,
        changes: dict[str, Any],
        *,
        expected_status: Optional[str],
    ) -> bool:
        """
        Aplica changes solo si el status guardado sigue siendo expected_status.

        Retorna False si el registro cambió desde la lectura.
        """
        ...
