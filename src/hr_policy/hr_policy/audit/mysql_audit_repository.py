from __future__ import annotations

import re
from typing import Optional, Sequence

from ..core.enums import AuditAction, EntityKind
from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, retry_once, to_json
from .model import AuditEntry, DeletedRecord, snapshot
from .repository import AuditRepository, DeletedRecordRepository, EntityStore

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, entry: AuditEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(company_id, user_id, table_name, record_id, action, old_data, new_data, description)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    entry.company_id,
                    entry.user_id,
                    entry.table_name,
                    entry.record_id,
                    entry.action.value,
                    to_json(entry.old_data),
                    to_json(entry.new_data),
                    entry.description,
                ),
            )
            return int(cur.lastrowid)

    @retry_once
    def list_for_company(self, company_id: int, *, limit: int = 200) -> Sequence[AuditEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT audit_id, company_id, user_id, table_name, record_id, action,
                       old_data, new_data, description, created_at
                FROM audit_logs
                WHERE company_id=%s
                ORDER BY created_at DESC, audit_id DESC
                LIMIT %s
                """,
                (int(company_id), int(limit)),
            )
            return [
                AuditEntry(
                    audit_id=int(r["audit_id"]),
                    company_id=int(r["company_id"]),
                    user_id=r.get("user_id"),
                    table_name=r["table_name"],
                    record_id=str(r["record_id"]),
                    action=AuditAction(r["action"]),
                    old_data=from_json(r.get("old_data")),
                    new_data=from_json(r.get("new_data")),
                    description=r.get("description"),
                    created_at=r.get("created_at"),
                )
                for r in fetchall(cur)
            ]


class MySQLDeletedRecordRepository(DeletedRecordRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert(self, *, company_id: int, table_name: EntityKind, record_id: str, record_data: dict, deleted_by: Optional[int]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO deleted_records(company_id, table_name, record_id, record_data, deleted_by)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(company_id), table_name.value, str(record_id), to_json(record_data), deleted_by),
            )
            return int(cur.lastrowid)

    @retry_once
    def get(self, deleted_id: int, *, company_id: int) -> Optional[DeletedRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT deleted_id, company_id, table_name, record_id, record_data,
                       deleted_by, deleted_at, is_restored, restored_at
                FROM deleted_records
                WHERE deleted_id=%s AND company_id=%s
                """,
                (int(deleted_id), int(company_id)),
            )
            r = fetchone(cur)
            return self._to_model(r) if r else None

    def mark_restored(self, deleted_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE deleted_records SET is_restored=1, restored_at=NOW() WHERE deleted_id=%s AND is_restored=0",
                (int(deleted_id),),
            )
            return cur.rowcount == 1

    @retry_once
    def list_unrestored(self, company_id: int, *, limit: int = 200) -> Sequence[DeletedRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT deleted_id, company_id, table_name, record_id, record_data,
                       deleted_by, deleted_at, is_restored, restored_at
                FROM deleted_records
                WHERE company_id=%s AND is_restored=0
                ORDER BY deleted_at DESC
                LIMIT %s
                """,
                (int(company_id), int(limit)),
            )
            return [self._to_model(r) for r in fetchall(cur)]

    @staticmethod
    def _to_model(r: dict) -> DeletedRecord:
        return DeletedRecord(
            deleted_id=int(r["deleted_id"]),
            company_id=int(r["company_id"]),
            table_name=EntityKind(r["table_name"]),
            record_id=str(r["record_id"]),
            record_data=from_json(r["record_data"]) or {},
            deleted_by=r.get("deleted_by"),
            deleted_at=r.get("deleted_at"),
            is_restored=bool(r.get("is_restored")),
            restored_at=r.get("restored_at"),
        )


class MySQLTableStore(EntityStore):
    """Generic row store for one table, used by the soft-delete registry."""

    def __init__(self, conn_factory: DatabaseConnection, *, table: str, id_column: str):
        if not _IDENTIFIER.match(table) or not _IDENTIFIER.match(id_column):
            raise ValueError(f"Invalid table/column name: {table}.{id_column}")
        self._conn_factory = conn_factory
        self._table = table
        self._id_column = id_column

    @retry_once
    def get(self, record_id: str, *, company_id: int) -> Optional[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT * FROM `{self._table}` WHERE `{self._id_column}`=%s AND company_id=%s",
                (record_id, int(company_id)),
            )
            row = fetchone(cur)
            return snapshot(row) if row else None

    def insert(self, record_data: dict) -> None:
        columns = list(record_data)
        for col in columns:
            if not _IDENTIFIER.match(col):
                raise ValidationError(f"Invalid column in record snapshot: {col!r}")
        placeholders = ",".join(["%s"] * len(columns))
        column_sql = ",".join(f"`{c}`" for c in columns)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO `{self._table}`({column_sql}) VALUES({placeholders})",
                tuple(record_data[c] for c in columns),
            )

    def delete(self, record_id: str, *, company_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"DELETE FROM `{self._table}` WHERE `{self._id_column}`=%s AND company_id=%s",
                (record_id, int(company_id)),
            )
            return cur.rowcount == 1
