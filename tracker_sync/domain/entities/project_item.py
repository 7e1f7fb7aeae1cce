"""
Entidades de dominio: items de un tablero GitHub Projects.

Un item trae sus campos personalizados como una lista heterogénea de
(nombre de campo, valor tipado). Estas clases la representan tal cual llega;
la proyección a una forma fija vive en field_mappings.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Union


class FieldKind(str, Enum):
    """Tipo de payload de un valor de campo, en orden de precedencia."""
    TEXT = "text"
    SINGLE_SELECT = "single_select"
    DATE = "date"


FieldPayload = Union[str, date]


@dataclass(frozen=True)
class FieldValue:
    """Un valor de campo: nombre del campo y exactamente un payload tipado."""

    field_name: str
    kind: FieldKind
    value: FieldPayload


@dataclass(frozen=True)
class IssueContent:
    """Contenido de Issue asociado al item (si existe)."""

    number: int
    title: Optional[str] = None
    url: Optional[str] = None
    created_at: Optional[datetime] = None
    # None = la fuente no trajo la lista de asignados
    assignees: Optional[tuple[str, ...]] = None


@dataclass(frozen=True)
class SourceItem:
    """Item del tablero, tal como lo devuelve una página de la fuente."""

    item_id: str
    field_values: tuple[FieldValue, ...] = field(default_factory=tuple)
    content: Optional[IssueContent] = None
