"""
Mapeos GitHub Projects -> registro canónico.

Este es el punto recomendado para tener "control total" sobre:
- que campos del tablero se leen y con que nombre
- el default de cada slot cuando el item no trae el campo
- como se transforman los valores antes de persistir

La proyección es pura (sin I/O) y total: cualquier item produce un
CanonicalRecord completo.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Sequence

from tracker_sync.domain.entities.project_item import (
    FieldKind,
    FieldPayload,
    FieldValue,
    SourceItem,
)
from tracker_sync.domain.entities.tracked_issue import UNASSIGNED, CanonicalRecord


class FieldLabel(str, Enum):
    """Nombres de campo reconocidos en el tablero (comparados sin mayúsculas)."""
    TITLE = "Title"
    STATUS = "Status"
    PRIORITY = "Priority"
    ISSUE_TYPE = "Issue Type"
    CREATED_BY = "Created by"
    APP_NAME = "App Name"
    BUILD_TYPE = "Build Type"
    BUILD_VERSION = "Build Version"
    DEVICE_TYPE = "Device Type"
    TIMELINE = "Timeline"


Transform = Callable[[FieldPayload], Any]

NO_TITLE = "No Title"
NO_URL = "N/A"

# Precedencia cuando un mismo nombre de campo aparece con varios tipos
_KIND_PRECEDENCE = {FieldKind.TEXT: 0, FieldKind.SINGLE_SELECT: 1, FieldKind.DATE: 2}


def as_text(value: FieldPayload) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def as_date(value: FieldPayload) -> Optional[date]:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


@dataclass(frozen=True)
class FieldMapping:
    """
    Define el mapeo de un campo del tablero a un slot del registro canónico.

    - source_field: nombre del campo en GitHub Projects
    - column: nombre del slot/columna destino
    - default: valor cuando el campo falta o viene vacío
    - transform: convierte el payload antes de asignarlo
    """

    source_field: FieldLabel
    column: str
    default: Any
    transform: Transform = as_text


FIELD_MAPPINGS: tuple[FieldMapping, ...] = (
    FieldMapping(FieldLabel.STATUS, "status", "No Status"),
    FieldMapping(FieldLabel.PRIORITY, "priority", "No Priority"),
    FieldMapping(FieldLabel.ISSUE_TYPE, "issue_type", "No Issue Type"),
    FieldMapping(FieldLabel.CREATED_BY, "created_by", "Unknown"),
    FieldMapping(FieldLabel.APP_NAME, "app_name", "N/A"),
    FieldMapping(FieldLabel.BUILD_TYPE, "build_type", "N/A"),
    FieldMapping(FieldLabel.BUILD_VERSION, "build_version", "N/A"),
    FieldMapping(FieldLabel.DEVICE_TYPE, "device_type", "N/A"),
    FieldMapping(FieldLabel.TIMELINE, "timeline", None, transform=as_date),
)


def _key(name: str) -> str:
    return name.strip().casefold()


def build_field_lookup(field_values: Iterable[FieldValue]) -> dict[str, FieldValue]:
    """
    Índice nombre de campo (sin mayúsculas) -> valor.

    Si un nombre se repite (error de la fuente), gana el primer valor de
    texto, luego el primer single-select, luego la primera fecha.
    """
    lookup: dict[str, FieldValue] = {}
    for fv in field_values:
        key = _key(fv.field_name)
        if not key:
            continue
        current = lookup.get(key)
        if current is None or _KIND_PRECEDENCE[fv.kind] < _KIND_PRECEDENCE[current.kind]:
            lookup[key] = fv
    return lookup


def _resolve(lookup: dict[str, FieldValue], mapping: FieldMapping) -> Any:
    fv = lookup.get(_key(mapping.source_field.value))
    if fv is None:
        return mapping.default
    value = mapping.transform(fv.value)
    if value is None or value == "":
        return mapping.default
    return value


def resolve_title(lookup: dict[str, FieldValue], item: SourceItem) -> str:
    """
    Título del issue. Precedencia fija:
    1. campo del tablero llamado "Title"
    2. título del Issue asociado
    3. "No Title"
    """
    fv = lookup.get(_key(FieldLabel.TITLE.value))
    if fv is not None and as_text(fv.value):
        return as_text(fv.value)
    if item.content is not None and item.content.title and item.content.title.strip():
        return item.content.title.strip()
    return NO_TITLE


def resolve_assignees(item: SourceItem) -> list[str]:
    if item.content is None or not item.content.assignees:
        return [UNASSIGNED]
    return list(item.content.assignees)


def project_item(
    item: SourceItem,
    *,
    mappings: Sequence[FieldMapping] = FIELD_MAPPINGS,
) -> CanonicalRecord:
    """Proyecta un SourceItem a su CanonicalRecord."""
    lookup = build_field_lookup(item.field_values)
    slots = {m.column: _resolve(lookup, m) for m in mappings}
    content = item.content

    return CanonicalRecord(
        issue_number=content.number if content is not None else None,
        issue_title=resolve_title(lookup, item),
        issue_url=(content.url if content is not None and content.url else NO_URL),
        assignees=resolve_assignees(item),
        created_at=content.created_at if content is not None else None,
        **slots,
    )
