from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import NewSalaryAdjustment, SalaryAdjustment


class SalaryAdjustmentRepository(Protocol):
    def create(self, adjustment: NewSalaryAdjustment) -> int:
        raise NotImplementedError

    def get_by_id(self, adjustment_id: int, *, company_id: int) -> Optional[SalaryAdjustment]:
        raise NotImplementedError

    def list_for_month(self, *, company_id: int, month: date, employee_id: Optional[int] = None) -> Sequence[SalaryAdjustment]:
        raise NotImplementedError

    def find_auto_for_attendance(self, *, attendance_log_id: int, company_id: int) -> Sequence[SalaryAdjustment]:
        """Auto-generated rows created for one attendance log."""

        raise NotImplementedError
