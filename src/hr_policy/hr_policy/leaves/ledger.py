"""Leave balance rules.

Entering ``approved`` debits the request's days from the matching balance and
leaving it credits them back. The debit floors at 0 but the credit is always
the full ``days``, so a clamped debit followed by a reversal leaves the balance
higher than it started.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Union

from ..core.enums import LeaveStatus, LeaveType
from ..core.exceptions import ValidationError

LEAVE_BALANCE = "leave_balance"
EMERGENCY_LEAVE_BALANCE = "emergency_leave_balance"


def parse_leave_type(value: Union[str, LeaveType]) -> LeaveType:
    try:
        return LeaveType(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown leave type: {value}") from exc


def balance_field(leave_type: LeaveType) -> str:
    return EMERGENCY_LEAVE_BALANCE if LeaveType(leave_type) == LeaveType.EMERGENCY else LEAVE_BALANCE


def inclusive_days(start: date, end: date) -> int:
    if end < start:
        raise ValidationError("End date must be on or after start date")
    return (end - start).days + 1


def transition_delta(old: Optional[LeaveStatus], new: Optional[LeaveStatus], days: int) -> int:
    """Signed balance change for a status move; ``new=None`` means the request was deleted."""

    was_approved = old == LeaveStatus.APPROVED
    is_approved = new == LeaveStatus.APPROVED
    if is_approved and not was_approved:
        return -int(days)
    if was_approved and not is_approved:
        return int(days)
    return 0


def apply_delta(balance: int, delta: int) -> int:
    if delta < 0:
        return max(0, balance + delta)
    return balance + delta
