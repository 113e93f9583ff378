from datetime import date
from itertools import product

import pytest

from src.hr_policy.hr_policy.core.enums import LeaveStatus, LeaveType
from src.hr_policy.hr_policy.core.exceptions import ValidationError
from src.hr_policy.hr_policy.leaves.ledger import (
    EMERGENCY_LEAVE_BALANCE,
    LEAVE_BALANCE,
    apply_delta,
    balance_field,
    inclusive_days,
    parse_leave_type,
    transition_delta,
)

STATUSES = (LeaveStatus.PENDING, LeaveStatus.APPROVED, LeaveStatus.REJECTED)


def test_balance_follows_current_approval_without_clamping():
    # balance == initial - days while approved, initial otherwise, for any path.
    initial, days = 21, 5
    for path in product(STATUSES, repeat=4):
        balance = initial
        status = LeaveStatus.PENDING
        for new in path:
            balance = apply_delta(balance, transition_delta(status, new, days))
            status = new
        expected = initial - days if status == LeaveStatus.APPROVED else initial
        assert balance == expected, path


def test_delete_credits_only_when_approved():
    assert transition_delta(LeaveStatus.APPROVED, None, 3) == 3
    assert transition_delta(LeaveStatus.PENDING, None, 3) == 0
    assert transition_delta(LeaveStatus.REJECTED, None, 3) == 0


def test_debit_floors_at_zero_but_credit_is_full():
    assert apply_delta(2, -5) == 0
    assert apply_delta(0, 5) == 5


def test_emergency_leave_has_its_own_balance():
    assert balance_field(LeaveType.EMERGENCY) == EMERGENCY_LEAVE_BALANCE
    for leave_type in (LeaveType.VACATION, LeaveType.SICK, LeaveType.PERSONAL, LeaveType.REGULAR):
        assert balance_field(leave_type) == LEAVE_BALANCE


def test_inclusive_day_count():
    assert inclusive_days(date(2025, 4, 6), date(2025, 4, 6)) == 1
    assert inclusive_days(date(2025, 4, 6), date(2025, 4, 10)) == 5
    with pytest.raises(ValidationError):
        inclusive_days(date(2025, 4, 6), date(2025, 4, 5))


def test_parse_leave_type():
    assert parse_leave_type("sick") == LeaveType.SICK
    with pytest.raises(ValidationError):
        parse_leave_type("unpaid")
