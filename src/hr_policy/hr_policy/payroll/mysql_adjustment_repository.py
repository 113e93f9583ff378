from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, retry_once
from .model import NewSalaryAdjustment, SalaryAdjustment
from .repository import SalaryAdjustmentRepository

_COLUMNS = (
    "adjustment_id, employee_id, company_id, month, bonus, deduction, adjustment_days, description, "
    "added_by, added_by_name, attendance_log_id, is_auto_generated, created_at"
)


class MySQLSalaryAdjustmentRepository(SalaryAdjustmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_model(r: dict) -> SalaryAdjustment:
        days = r.get("adjustment_days")
        return SalaryAdjustment(
            adjustment_id=int(r["adjustment_id"]),
            employee_id=int(r["employee_id"]),
            company_id=int(r["company_id"]),
            month=r["month"],
            bonus=as_decimal(r.get("bonus")),
            deduction=as_decimal(r.get("deduction")),
            adjustment_days=as_decimal(days) if days is not None else None,
            description=r.get("description"),
            added_by=r.get("added_by"),
            added_by_name=r.get("added_by_name"),
            attendance_log_id=r.get("attendance_log_id"),
            is_auto_generated=bool(r.get("is_auto_generated")),
            created_at=r.get("created_at"),
        )

    def create(self, adjustment: NewSalaryAdjustment) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO salary_adjustments(
                    employee_id, company_id, month, bonus, deduction, adjustment_days, description,
                    added_by, added_by_name, attendance_log_id, is_auto_generated
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(adjustment.employee_id),
                    int(adjustment.company_id),
                    adjustment.month,
                    adjustment.bonus,
                    adjustment.deduction,
                    adjustment.adjustment_days,
                    adjustment.description,
                    adjustment.added_by,
                    adjustment.added_by_name,
                    adjustment.attendance_log_id,
                    1 if adjustment.is_auto_generated else 0,
                ),
            )
            return int(cur.lastrowid)

    @retry_once
    def get_by_id(self, adjustment_id: int, *, company_id: int) -> Optional[SalaryAdjustment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM salary_adjustments WHERE adjustment_id=%s AND company_id=%s",
                (int(adjustment_id), int(company_id)),
            )
            r = fetchone(cur)
            return self._to_model(r) if r else None

    @retry_once
    def list_for_month(self, *, company_id: int, month: date, employee_id: Optional[int] = None) -> Sequence[SalaryAdjustment]:
        sql = f"SELECT {_COLUMNS} FROM salary_adjustments WHERE company_id=%s AND month=%s"
        params: list = [int(company_id), month]
        if employee_id is not None:
            sql += " AND employee_id=%s"
            params.append(int(employee_id))
        sql += " ORDER BY created_at, adjustment_id"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [self._to_model(r) for r in fetchall(cur)]

    @retry_once
    def find_auto_for_attendance(self, *, attendance_log_id: int, company_id: int) -> Sequence[SalaryAdjustment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM salary_adjustments
                WHERE attendance_log_id=%s AND company_id=%s AND is_auto_generated=1
                """,
                (int(attendance_log_id), int(company_id)),
            )
            return [self._to_model(r) for r in fetchall(cur)]
