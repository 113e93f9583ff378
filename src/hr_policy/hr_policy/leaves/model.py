from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeaveStatus, LeaveType


@dataclass(frozen=True)
class LeaveRequest:
    """Leave request; ``days`` is the inclusive day count of the date range."""

    request_id: int
    employee_id: int
    company_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    days: int
    status: LeaveStatus = LeaveStatus.PENDING
    reason: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class NewLeaveRequest:
    employee_id: int
    company_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    days: int
    reason: Optional[str] = None
