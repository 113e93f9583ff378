from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, retry_once
from .model import LeaveRequest, NewLeaveRequest
from .repository import LeaveRequestRepository

_COLUMNS = (
    "request_id, employee_id, company_id, leave_type, start_date, end_date, days, status, reason, "
    "reviewed_by, reviewed_at, created_at"
)


class MySQLLeaveRequestRepository(LeaveRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_model(r: dict) -> LeaveRequest:
        return LeaveRequest(
            request_id=int(r["request_id"]),
            employee_id=int(r["employee_id"]),
            company_id=int(r["company_id"]),
            leave_type=LeaveType(r["leave_type"]),
            start_date=r["start_date"],
            end_date=r["end_date"],
            days=int(r["days"]),
            status=LeaveStatus(r["status"]),
            reason=r.get("reason"),
            reviewed_by=r.get("reviewed_by"),
            reviewed_at=r.get("reviewed_at"),
            created_at=r.get("created_at"),
        )

    def create(self, request: NewLeaveRequest) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(employee_id, company_id, leave_type, start_date, end_date, days, status, reason)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(request.employee_id),
                    int(request.company_id),
                    request.leave_type.value,
                    request.start_date,
                    request.end_date,
                    int(request.days),
                    LeaveStatus.PENDING.value,
                    request.reason,
                ),
            )
            return int(cur.lastrowid)

    @retry_once
    def get_by_id(self, request_id: int, *, company_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM leave_requests WHERE request_id=%s AND company_id=%s",
                (int(request_id), int(company_id)),
            )
            r = fetchone(cur)
            return self._to_model(r) if r else None

    @retry_once
    def list_for_company(self, company_id: int, *, status: Optional[LeaveStatus] = None, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[LeaveRequest]:
        sql = f"SELECT {_COLUMNS} FROM leave_requests WHERE company_id=%s"
        params: list = [int(company_id)]
        if status is not None:
            sql += " AND status=%s"
            params.append(LeaveStatus(status).value)
        sql += " ORDER BY created_at DESC LIMIT %s"
        params.append(int(limit))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [self._to_model(r) for r in fetchall(cur)]

    @retry_once
    def list_for_employee(self, employee_id: int, *, company_id: int) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM leave_requests WHERE employee_id=%s AND company_id=%s ORDER BY start_date DESC",
                (int(employee_id), int(company_id)),
            )
            return [self._to_model(r) for r in fetchall(cur)]

    def set_status(
        self,
        *,
        request_id: int,
        company_id: int,
        expected: LeaveStatus,
        status: LeaveStatus,
        reviewed_by: Optional[int],
        reviewed_at: Optional[datetime],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, reviewed_by=%s, reviewed_at=%s
                WHERE request_id=%s AND company_id=%s AND status=%s
                """,
                (status.value, reviewed_by, reviewed_at, int(request_id), int(company_id), expected.value),
            )
            return cur.rowcount == 1

    @retry_once
    def has_approved_on(self, *, employee_id: int, company_id: int, day: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS found FROM leave_requests
                WHERE employee_id=%s AND company_id=%s AND status=%s AND %s BETWEEN start_date AND end_date
                LIMIT 1
                """,
                (int(employee_id), int(company_id), LeaveStatus.APPROVED.value, day),
            )
            return fetchone(cur) is not None
