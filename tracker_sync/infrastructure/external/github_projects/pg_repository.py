"""
Repositorio Postgres (psycopg) para:
- tabla de issues destino (lectura por clave, insert, update condicional)
- tabla de estado de corridas de sync
- advisory lock para evitar corridas simultáneas

La conexión se abre en autocommit: cada sentencia es su propia transacción,
así un error en un issue no deja la conexión abortada para el siguiente.
"""

from __future__ import annotations

from typing import Any, Optional

import psycopg
from psycopg.rows import dict_row

from tracker_sync.domain.entities.tracked_issue import TrackedIssue
from tracker_sync.shared.exceptions.sync import StoreError


def stable_lock_key(namespace: str, name: str) -> int:
    """
    Genera un lock key reproducible para pg_advisory_lock.
    """
    # hash() no es estable entre procesos; usamos algo determinista.
    raw = (namespace + ":" + name).encode("utf-8")
    return int(sum(raw) % (2**31 - 1))


class PostgresIssueStore:
    """
    IssueStore sobre una tabla Postgres, clave natural issue_number.

    Los errores de psycopg se envuelven en StoreError con el número de issue.
    """

    def __init__(
        self,
        conn: psycopg.Connection,
        *,
        schema: str = "public",
        table: str = "issue_tracker",
        key_column: str = "issue_number",
    ) -> None:
        self._conn = conn
        self._table_ref = f'"{schema}"."{table}"'
        self._key = key_column

    def read_by_key(self, issue_number: int) -> Optional[TrackedIssue]:
        sql = f"""
            SELECT "{self._key}", status, start_time, end_time, updated_at
            FROM {self._table_ref}
            WHERE "{self._key}" = %s
        """
        try:
            with self._conn.cursor() as cur:
                cur.execute(sql, (issue_number,))
                row = cur.fetchone()
        except psycopg.Error as e:
            raise StoreError("lectura", issue_number, e) from e

        if not row:
            return None
        return TrackedIssue(
            issue_number=row[self._key],
            status=row.get("status"),
            start_time=row.get("start_time"),
            end_time=row.get("end_time"),
            updated_at=row.get("updated_at"),
        )

    def insert(self, row: dict[str, Any]) -> bool:
        """
        INSERT del issue. ON CONFLICT DO NOTHING: si otra corrida lo inserto
        entre la lectura y esta escritura, retorna False sin pisarlo.
        """
        issue_number = row.get(self._key)
        if issue_number is None:
            raise ValueError(f"Falta clave '{self._key}' en row para INSERT")

        columns = list(row.keys())
        quoted_cols = ", ".join(f'"{c}"' for c in columns)
        placeholders = ", ".join(["%s"] * len(columns))
        sql = f"""
            INSERT INTO {self._table_ref} ({quoted_cols})
            VALUES ({placeholders})
            ON CONFLICT ("{self._key}") DO NOTHING
            RETURNING "{self._key}"
        """
        try:
            with self._conn.cursor() as cur:
                cur.execute(sql, tuple(row[c] for c in columns))
                return cur.fetchone() is not None
        except psycopg.Error as e:
            raise StoreError("insert", issue_number, e) from e

    def update_by_key(
        self,
        issue_number: int,
        changes: dict[str, Any],
        *,
        expected_status: Optional[str],
    ) -> bool:
        """
        UPDATE condicionado a que el status guardado siga siendo el leído
        (compare-and-swap). Retorna False si no se actualizo ninguna fila.
        """
        if not changes:
            return True

        columns = [c for c in changes if c != self._key]
        set_sql = ", ".join(f'"{c}" = %s' for c in columns)
        sql = f"""
            UPDATE {self._table_ref}
            SET {set_sql}
            WHERE "{self._key}" = %s
              AND status IS NOT DISTINCT FROM %s
        """
        values = tuple(changes[c] for c in columns) + (issue_number, expected_status)
        try:
            with self._conn.cursor() as cur:
                cur.execute(sql, values)
                return (cur.rowcount or 0) > 0
        except psycopg.Error as e:
            raise StoreError("update", issue_number, e) from e


class PostgresSyncRepository:
    def __init__(self, dsn: str) -> None:
        self._dsn = dsn

    def connect(self) -> psycopg.Connection:
        """
        Abre conexión en autocommit con filas como dict.
        """
        try:
            return psycopg.connect(self._dsn, row_factory=dict_row, autocommit=True)
        except psycopg.OperationalError as e:
            raise psycopg.OperationalError(
                f"{e}\n"
                f"Sugerencia: verifica que DATABASE_URL sea accesible desde donde ejecutas el sync."
            ) from e

    def issue_store(
        self,
        conn: psycopg.Connection,
        *,
        schema: str,
        table: str,
    ) -> PostgresIssueStore:
        return PostgresIssueStore(conn, schema=schema, table=table)

    def try_advisory_lock(self, conn: psycopg.Connection, lock_key: int) -> bool:
        """
        Evita ejecuciones simultáneas del mismo job.
        """
        with conn.cursor() as cur:
            cur.execute("SELECT pg_try_advisory_lock(%s) AS locked", (lock_key,))
            row = cur.fetchone()
            return bool(row and row.get("locked"))

    def release_advisory_lock(self, conn: psycopg.Connection, lock_key: int) -> None:
        with conn.cursor() as cur:
            cur.execute("SELECT pg_advisory_unlock(%s)", (lock_key,))

    def ensure_sync_state_table(self, conn: psycopg.Connection) -> None:
        with conn.cursor() as cur:
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS sync_state (
                    source                TEXT        NOT NULL,
                    source_table          TEXT        NOT NULL,
                    target_schema         TEXT        NOT NULL,
                    target_table          TEXT        NOT NULL,
                    last_run_started_at   TIMESTAMPTZ NULL,
                    last_run_completed_at TIMESTAMPTZ NULL,
                    last_run_status       TEXT NULL,
                    last_run_error        TEXT NULL,
                    last_run_inserted     INTEGER NULL,
                    last_run_updated      INTEGER NULL,
                    last_run_failed       INTEGER NULL,
                    updated_at            TIMESTAMPTZ NOT NULL DEFAULT now(),
                    PRIMARY KEY (source, source_table, target_schema, target_table)
                );
                """
            )

    def mark_run_started(
        self,
        conn: psycopg.Connection,
        *,
        source: str,
        source_table: str,
        target_schema: str,
        target_table: str,
    ) -> None:
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO sync_state (source, source_table, target_schema, target_table,
                                        last_run_started_at, last_run_status)
                VALUES (%s, %s, %s, %s, now(), 'running')
                ON CONFLICT (source, source_table, target_schema, target_table)
                DO UPDATE SET last_run_started_at = now(),
                              last_run_status = 'running',
                              last_run_error = NULL,
                              updated_at = now()
                """,
                (source, source_table, target_schema, target_table),
            )

    def mark_run_finished(
        self,
        conn: psycopg.Connection,
        *,
        source: str,
        source_table: str,
        target_schema: str,
        target_table: str,
        status: str,
        error: Optional[str],
        inserted: int = 0,
        updated: int = 0,
        failed: int = 0,
    ) -> None:
        with conn.cursor() as cur:
            cur.execute(
                """
                UPDATE sync_state
                SET last_run_completed_at = now(),
                    last_run_status = %s,
                    last_run_error = %s,
                    last_run_inserted = %s,
                    last_run_updated = %s,
                    last_run_failed = %s,
                    updated_at = now()
                WHERE source = %s
                  AND source_table = %s
                  AND target_schema = %s
                  AND target_table = %s
                """,
                (
                    status,
                    error,
                    inserted,
                    updated,
                    failed,
                    source,
                    source_table,
                    target_schema,
                    target_table,
                ),
            )
