from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, retry_once
from .model import AttendanceLog
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, employee_id, company_id, work_date, check_in_time, check_out_time, status, break_started_at, notes"


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_model(r: dict) -> AttendanceLog:
        return AttendanceLog(
            attendance_id=int(r["attendance_id"]),
            employee_id=int(r["employee_id"]),
            company_id=int(r["company_id"]),
            work_date=r["work_date"],
            check_in_time=r.get("check_in_time"),
            check_out_time=r.get("check_out_time"),
            status=AttendanceStatus(r["status"]),
            break_started_at=r.get("break_started_at"),
            notes=r.get("notes"),
        )

    @retry_once
    def get_by_id(self, attendance_id: int, *, company_id: int) -> Optional[AttendanceLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_logs WHERE attendance_id=%s AND company_id=%s",
                (int(attendance_id), int(company_id)),
            )
            r = fetchone(cur)
            return self._to_model(r) if r else None

    @retry_once
    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_logs WHERE employee_id=%s AND work_date=%s",
                (int(employee_id), work_date),
            )
            r = fetchone(cur)
            return self._to_model(r) if r else None

    @retry_once
    def list_for_employee_between(self, *, employee_id: int, company_id: int, start: date, end: date) -> Sequence[AttendanceLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_logs
                WHERE employee_id=%s AND company_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY work_date
                """,
                (int(employee_id), int(company_id), start, end),
            )
            return [self._to_model(r) for r in fetchall(cur)]

    @retry_once
    def list_for_company_date(self, *, company_id: int, work_date: date) -> Sequence[AttendanceLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_logs
                WHERE company_id=%s AND work_date=%s
                ORDER BY check_in_time
                """,
                (int(company_id), work_date),
            )
            return [self._to_model(r) for r in fetchall(cur)]

    def create_checkin(
        self,
        *,
        employee_id: int,
        company_id: int,
        work_date: date,
        check_in_time: datetime,
        notes: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_logs(employee_id, company_id, work_date, check_in_time, status, notes)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(employee_id), int(company_id), work_date, check_in_time, AttendanceStatus.CHECKED_IN.value, notes),
            )
            return int(cur.lastrowid)

    def create_absence(self, *, employee_id: int, company_id: int, work_date: date, notes: Optional[str] = None) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO attendance_logs(employee_id, company_id, work_date, status, notes)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(employee_id), int(company_id), work_date, AttendanceStatus.ABSENT.value, notes),
            )
            # UNIQUE(employee_id, work_date) turns a concurrent second insert into a no-op.
            return int(cur.lastrowid) if cur.rowcount > 0 else None

    def update(
        self,
        *,
        attendance_id: int,
        check_in_time: Optional[datetime],
        check_out_time: Optional[datetime],
        status: AttendanceStatus,
        break_started_at: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_logs
                SET check_in_time=%s, check_out_time=%s, status=%s, break_started_at=%s, notes=%s
                WHERE attendance_id=%s
                """,
                (check_in_time, check_out_time, status.value, break_started_at, notes, int(attendance_id)),
            )
            return cur.rowcount > 0
