"""
Entidades de dominio: registro canónico y issue persistido.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Optional


UNASSIGNED = "Unassigned"


@dataclass(frozen=True)
class CanonicalRecord:
    """
    Proyección de forma fija de un item del tablero.

    Todos los slots tienen valor: los faltantes se rellenan con el default
    documentado de cada slot. issue_number es None solo para items sin
    Issue (borradores, PRs), que el reconciliador no persiste.
    """

    issue_number: Optional[int]
    issue_title: str
    issue_url: str
    assignees: list[str] = field(default_factory=lambda: [UNASSIGNED])
    status: str = "No Status"
    priority: str = "No Priority"
    issue_type: str = "No Issue Type"
    created_by: str = "Unknown"
    app_name: str = "N/A"
    build_type: str = "N/A"
    build_version: str = "N/A"
    device_type: str = "N/A"
    timeline: Optional[date] = None
    created_at: Optional[datetime] = None

    def to_row(self) -> dict[str, Any]:
        """Columnas del registro, sin la clave natural ni el status."""
        row = asdict(self)
        row.pop("issue_number")
        row.pop("status")
        row["assignees"] = list(self.assignees)
        return row


@dataclass(frozen=True)
class TrackedIssue:
    """
    Issue persistido en el almacén destino (solo las columnas que el
    reconciliador necesita para decidir la escritura).
    """

    issue_number: int
    status: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    updated_at: Optional[datetime] = None
