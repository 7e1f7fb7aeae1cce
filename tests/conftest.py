"""
Configuración de fixtures para pytest.

Fakes en memoria para los contratos del sync (fetcher de páginas y
almacén de issues), sin red ni base de datos.
"""
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Optional

import pytest
from loguru import logger

from tracker_sync.application.interfaces.sync_ports import ItemPage
from tracker_sync.domain.entities.project_item import (
    FieldKind,
    FieldValue,
    IssueContent,
    SourceItem,
)
from tracker_sync.domain.entities.tracked_issue import TrackedIssue
from tracker_sync.shared.exceptions.sync import StoreError
from tracker_sync.shared.utils.datetime_utils import TimestampNormalizer


FIXED_NOW = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakePageFetcher:
    """Devuelve páginas predefinidas por proyecto, encadenadas por cursor."""

    def __init__(self, pages: dict[int, list[ItemPage]], failing: Optional[dict[int, Exception]] = None):
        self._pages = pages
        self._failing = failing or {}
        self.calls: list[tuple[int, Optional[str]]] = []

    def fetch_page(self, project_number: int, cursor: Optional[str]) -> ItemPage:
        self.calls.append((project_number, cursor))
        if project_number in self._failing:
            raise self._failing[project_number]
        pages = self._pages.get(project_number, [ItemPage()])
        index = 0 if cursor is None else int(cursor.rsplit("-", 1)[1])
        return pages[index]


class InMemoryIssueStore:
    """IssueStore en memoria, con compare-and-swap sobre status."""

    def __init__(self) -> None:
        self.rows: dict[int, dict[str, Any]] = {}
        self.inserts: list[dict[str, Any]] = []
        self.updates: list[tuple[int, dict[str, Any], Optional[str]]] = []
        self.failing_keys: set[int] = set()

    def read_by_key(self, issue_number: int) -> Optional[TrackedIssue]:
        if issue_number in self.failing_keys:
            raise StoreError("lectura", issue_number, RuntimeError("connection reset"))
        row = self.rows.get(issue_number)
        if row is None:
            return None
        return TrackedIssue(
            issue_number=issue_number,
            status=row.get("status"),
            start_time=row.get("start_time"),
            end_time=row.get("end_time"),
            updated_at=row.get("updated_at"),
        )

    def insert(self, row: dict[str, Any]) -> bool:
        self.inserts.append(dict(row))
        if row["issue_number"] in self.rows:
            return False
        self.rows[row["issue_number"]] = dict(row)
        return True

    def update_by_key(self, issue_number: int, changes: dict[str, Any], *, expected_status: Optional[str]) -> bool:
        self.updates.append((issue_number, dict(changes), expected_status))
        row = self.rows.get(issue_number)
        if row is None or row.get("status") != expected_status:
            return False
        row.update(changes)
        return True


def make_item(
    number: Optional[int] = 1,
    *,
    status: Optional[str] = None,
    fields: Optional[list[FieldValue]] = None,
    title: str = "Crash on login",
    assignees: Optional[tuple[str, ...]] = ("octocat",),
    created_at: Optional[datetime] = datetime(2024, 1, 1, tzinfo=timezone.utc),
) -> SourceItem:
    values = list(fields or [])
    if status is not None:
        values.append(FieldValue("Status", FieldKind.SINGLE_SELECT, status))
    content = None
    if number is not None:
        content = IssueContent(
            number=number,
            title=title,
            url=f"https://github.com/acme/app/issues/{number}",
            created_at=created_at,
            assignees=assignees,
        )
    return SourceItem(item_id=f"PVTI_{number}", field_values=tuple(values), content=content)


@pytest.fixture
def normalizer() -> TimestampNormalizer:
    return TimestampNormalizer(offset_minutes=330, grace_minutes=10, clock=lambda: FIXED_NOW)


@pytest.fixture
def store() -> InMemoryIssueStore:
    return InMemoryIssueStore()


@pytest.fixture
def log_records():
    """Captura los registros de loguru como (nivel, mensaje)."""
    records: list[tuple[str, str]] = []
    handler_id = logger.add(
        lambda message: records.append((message.record["level"].name, message.record["message"])),
        level="DEBUG",
    )
    yield records
    logger.remove(handler_id)


class FakePgRepo:
    """Sustituto de PostgresSyncRepository para el orquestador."""

    def __init__(self, store: InMemoryIssueStore, *, lock_available: bool = True) -> None:
        self.store = store
        self.lock_available = lock_available
        self.lock_released = False
        self.state_events: list[tuple[str, dict[str, Any]]] = []

    @contextmanager
    def connect(self):
        yield object()

    def ensure_sync_state_table(self, conn) -> None:
        pass

    def try_advisory_lock(self, conn, lock_key: int) -> bool:
        return self.lock_available

    def release_advisory_lock(self, conn, lock_key: int) -> None:
        self.lock_released = True

    def issue_store(self, conn, *, schema: str, table: str) -> InMemoryIssueStore:
        return self.store

    def mark_run_started(self, conn, **kwargs) -> None:
        self.state_events.append(("started", kwargs))

    def mark_run_finished(self, conn, **kwargs) -> None:
        self.state_events.append(("finished", kwargs))
