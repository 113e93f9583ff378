from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import ApproverType, AttendanceRequestType, PendingStatus
from .model import Evidence, PendingAttendance


class PendingAttendanceRepository(Protocol):
    def create(
        self,
        *,
        employee_id: int,
        company_id: int,
        request_type: AttendanceRequestType,
        requested_time: datetime,
        status: PendingStatus,
        evidence: Evidence,
        approver_type: Optional[ApproverType],
        approver_id: Optional[int],
        notes: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, pending_id: int, *, company_id: int) -> Optional[PendingAttendance]:
        raise NotImplementedError

    def list_pending(self, company_id: int, *, created_before: Optional[datetime] = None) -> Sequence[PendingAttendance]:
        raise NotImplementedError

    def decide(
        self,
        *,
        pending_id: int,
        company_id: int,
        status: PendingStatus,
        reviewed_by: Optional[int],
        reviewed_at: datetime,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        """Move a row out of ``pending``; False when it was already decided."""

        raise NotImplementedError
