"""
Reconciliación de registros canónicos contra el almacén destino.

Por cada registro:
1. Lee el issue existente por número (no encontrado = insert).
2. Calcula la escritura:
   - status/updated_at solo si el status cambió (o es nuevo)
   - start_time la primera vez que se observa el status "en progreso"
   - end_time la primera vez que se observa el status "hecho"
3. Inserta o actualiza (compare-and-swap sobre el status leído).

Un fallo del almacén en un issue se registra y el lote continúa.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Optional

from loguru import logger

from tracker_sync.application.interfaces.sync_ports import IssueStore
from tracker_sync.domain.entities.tracked_issue import CanonicalRecord, TrackedIssue
from tracker_sync.shared.exceptions.sync import StoreError
from tracker_sync.shared.utils.datetime_utils import TimestampNormalizer


class ReconcileOutcome(str, Enum):
    INSERTED = "inserted"
    UPDATED = "updated"
    UNCHANGED = "unchanged"  # update sin cambio de status
    CONFLICT = "conflict"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class ReconcileSummary:
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    conflicts: int = 0
    skipped: int = 0
    failed: int = 0

    def add(self, outcome: ReconcileOutcome) -> None:
        attr = {
            ReconcileOutcome.INSERTED: "inserted",
            ReconcileOutcome.UPDATED: "updated",
            ReconcileOutcome.UNCHANGED: "unchanged",
            ReconcileOutcome.CONFLICT: "conflicts",
            ReconcileOutcome.SKIPPED: "skipped",
            ReconcileOutcome.FAILED: "failed",
        }[outcome]
        setattr(self, attr, getattr(self, attr) + 1)

    @property
    def written(self) -> int:
        return self.inserted + self.updated + self.unchanged


def compute_write_payload(
    record: CanonicalRecord,
    existing: Optional[TrackedIssue],
    *,
    now: datetime,
    lifecycle_time: datetime,
    created_at: Optional[datetime],
    in_progress_status: str,
    done_status: str,
) -> dict[str, Any]:
    """
    Calcula las columnas a escribir para un registro.

    Función pura: no hace I/O. `now` se usa para updated_at y
    `lifecycle_time` para start_time/end_time.
    """
    payload = record.to_row()
    payload["created_at"] = created_at

    if existing is None or existing.status != record.status:
        payload["status"] = record.status
        payload["updated_at"] = now

    if record.status == in_progress_status and (existing is None or existing.start_time is None):
        payload["start_time"] = lifecycle_time

    if record.status == done_status and (existing is None or existing.end_time is None):
        payload["end_time"] = lifecycle_time

    if existing is None:
        payload["issue_number"] = record.issue_number
        payload["updated_at"] = now

    return payload


class IssueReconciler:
    """
    Aplica registros canónicos sobre un IssueStore.

    Uso:
        reconciler = IssueReconciler(store, normalizer)
        summary = reconciler.reconcile_all(records)
    """

    def __init__(
        self,
        store: IssueStore,
        normalizer: TimestampNormalizer,
        *,
        in_progress_status: str = "In progress",
        done_status: str = "Done",
    ) -> None:
        self._store = store
        self._normalizer = normalizer
        self._in_progress_status = in_progress_status
        self._done_status = done_status

    def reconcile(self, record: CanonicalRecord) -> ReconcileOutcome:
        """
        Reconcilia un registro.

        Raises:
            StoreError: si la lectura o la escritura fallan
        """
        if record.issue_number is None:
            logger.warning(f"Item '{record.issue_title}' sin issue asociado; se omite")
            return ReconcileOutcome.SKIPPED

        log = logger.bind(issue_number=record.issue_number)
        existing = self._store.read_by_key(record.issue_number)
        if existing is None:
            log.debug(f"Issue #{record.issue_number} no existe en destino; se insertará")

        payload = compute_write_payload(
            record,
            existing,
            now=self._normalizer.now(),
            lifecycle_time=self._normalizer.adjusted_now(),
            created_at=(
                self._normalizer.normalize(record.created_at)
                if record.created_at is not None
                else None
            ),
            in_progress_status=self._in_progress_status,
            done_status=self._done_status,
        )

        if existing is None:
            if not self._store.insert(payload):
                log.warning(
                    f"Issue #{record.issue_number} fue insertado por otra escritura; se reintentará en la próxima corrida"
                )
                return ReconcileOutcome.CONFLICT
            log.info(f"Issue #{record.issue_number} insertado (status={record.status!r})")
            return ReconcileOutcome.INSERTED

        changes = {k: v for k, v in payload.items() if k != "issue_number"}
        if not self._store.update_by_key(
            record.issue_number, changes, expected_status=existing.status
        ):
            log.warning(
                f"Issue #{record.issue_number} cambió desde la lectura (status esperado {existing.status!r}); se omite"
            )
            return ReconcileOutcome.CONFLICT

        if "status" in changes:
            log.info(
                f"Issue #{record.issue_number} actualizado con cambio de status: "
                f"{existing.status!r} -> {record.status!r}"
            )
            return ReconcileOutcome.UPDATED

        log.info(f"Issue #{record.issue_number} actualizado sin cambio de status")
        return ReconcileOutcome.UNCHANGED

    def reconcile_all(self, records: Iterable[CanonicalRecord]) -> ReconcileSummary:
        """Reconcilia un lote en orden; un fallo por issue no detiene el lote."""
        summary = ReconcileSummary()
        for record in records:
            try:
                outcome = self.reconcile(record)
            except StoreError as e:
                logger.bind(issue_number=record.issue_number).error(
                    f"Error sincronizando issue #{record.issue_number}: {e}"
                )
                outcome = ReconcileOutcome.FAILED
            summary.add(outcome)
        return summary
