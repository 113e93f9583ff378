from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from ..core.enums import AttendanceStatus, ClassificationTier


@dataclass(frozen=True)
class AttendanceLog:
    """Domain entity: one row per employee per work date."""

    attendance_id: int
    employee_id: int
    company_id: int
    work_date: date
    check_in_time: Optional[datetime]
    check_out_time: Optional[datetime]
    status: AttendanceStatus
    break_started_at: Optional[datetime] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class WorkSchedule:
    """Effective working hours for one employee."""

    start: time
    end: time
    break_minutes: int
    weekend_days: tuple[str, ...]

    @property
    def expected_daily_minutes(self) -> int:
        minutes = (self.end.hour * 60 + self.end.minute) - (self.start.hour * 60 + self.start.minute)
        return max(minutes - self.break_minutes, 0)


@dataclass(frozen=True)
class CheckInDecision:
    late_minutes: int
    allowance_used_minutes: int
    remaining_allowance_minutes: int
    tier: ClassificationTier
    deduction_days: Decimal
    note: Optional[str] = None


@dataclass(frozen=True)
class CheckOutDecision:
    early_departure_minutes: int
    worked_minutes: int
    overtime_minutes: int
    allowance_used_minutes: int
    remaining_allowance_minutes: int
    tier: ClassificationTier
    deduction_days: Decimal
    note: Optional[str] = None


@dataclass(frozen=True)
class DayClassification:
    """Derived view of a whole day; never stored."""

    late_minutes: int
    early_departure_minutes: int
    worked_minutes: int
    overtime_minutes: int
    tier: ClassificationTier
    deduction_days: Decimal
    allowance_used_minutes: int
    remaining_allowance_minutes: int
    note: Optional[str] = None
