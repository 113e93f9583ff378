from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveStatus
from .model import LeaveRequest, NewLeaveRequest


class LeaveRequestRepository(Protocol):
    def create(self, request: NewLeaveRequest) -> int:
        raise NotImplementedError

    def get_by_id(self, request_id: int, *, company_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list_for_company(self, company_id: int, *, status: Optional[LeaveStatus] = None, limit: int = 200) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def list_for_employee(self, employee_id: int, *, company_id: int) -> Sequence[LeaveRequest]:
        raise NotImplementedError

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
        """Conditional update: only applies while the row still has ``expected`` status."""

        raise NotImplementedError

    def has_approved_on(self, *, employee_id: int, company_id: int, day: date) -> bool:
        raise NotImplementedError
