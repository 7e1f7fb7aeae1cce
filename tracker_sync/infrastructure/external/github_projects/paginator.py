"""
Paginación completa de un proyecto.

El tamaño de página es asunto del fetcher; aquí solo se encadenan cursores
hasta que la fuente indica que no hay más páginas.
"""

from __future__ import annotations

from typing import Optional

from loguru import logger

from tracker_sync.application.interfaces.sync_ports import ItemPageFetcher
from tracker_sync.domain.entities.project_item import SourceItem
from tracker_sync.shared.exceptions.sync import PaginationError


def collect_all_items(fetcher: ItemPageFetcher, project_number: int) -> list[SourceItem]:
    """
    Trae todos los items del proyecto, en el orden en que llegan.

    No deduplica ni reordena. Cualquier error del fetcher se propaga: no hay
    resultados parciales.

    Raises:
        PaginationError: si la fuente repite un cursor (evita bucles infinitos)
    """
    items: list[SourceItem] = []
    seen_cursors: set[str] = set()
    cursor: Optional[str] = None
    pages = 0

    while True:
        page = fetcher.fetch_page(project_number, cursor)
        pages += 1
        items.extend(page.items)

        if page.next_cursor is None:
            break
        if page.next_cursor in seen_cursors:
            raise PaginationError(project_number, page.next_cursor)
        seen_cursors.add(page.next_cursor)
        cursor = page.next_cursor

    logger.info(f"Proyecto {project_number}: {len(items)} items en {pages} páginas")
    return items
