from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceLog


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int, *, company_id: int) -> Optional[AttendanceLog]:
        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceLog]:
        raise NotImplementedError

    def list_for_employee_between(self, *, employee_id: int, company_id: int, start: date, end: date) -> Sequence[AttendanceLog]:
        raise NotImplementedError

    def list_for_company_date(self, *, company_id: int, work_date: date) -> Sequence[AttendanceLog]:
        raise NotImplementedError

    def create_checkin(
        self,
        *,
        employee_id: int,
        company_id: int,
        work_date: date,
        check_in_time: datetime,
        notes: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def create_absence(self, *, employee_id: int, company_id: int, work_date: date, notes: Optional[str] = None) -> Optional[int]:
        """Insert an ABSENT row for the day; None when a row for that day already exists."""
        raise NotImplementedError

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
        raise NotImplementedError
