from datetime import date, datetime, time, timedelta
from decimal import Decimal

import pytest

from src.hr_policy.hr_policy.attendance.classifier import AttendanceClassifier, worked_minutes
from src.hr_policy.hr_policy.attendance.model import WorkSchedule
from src.hr_policy.hr_policy.core.enums import ClassificationTier
from src.hr_policy.hr_policy.core.exceptions import ValidationError
from src.hr_policy.hr_policy.policy.model import CompanyPolicy

SCHEDULE = WorkSchedule(start=time(9, 0), end=time(17, 0), break_minutes=60, weekend_days=("friday", "saturday"))
POLICY = CompanyPolicy(
    company_id=1,
    monthly_late_allowance_minutes=60,
    late_under_15_deduction=Decimal("0.25"),
    late_15_to_30_deduction=Decimal("0.5"),
    late_over_30_deduction=Decimal("1"),
    early_departure_grace_minutes=5,
    early_departure_threshold_minutes=30,
    early_departure_deduction=Decimal("0.5"),
)
DAY = date(2025, 3, 3)


def _check_in(minutes_late: int, balance: int, policy: CompanyPolicy = POLICY, **kwargs):
    return AttendanceClassifier().classify_check_in(
        check_in=datetime(2025, 3, 3, 9, 0) + timedelta(minutes=minutes_late),
        schedule=SCHEDULE,
        policy=policy,
        late_balance_minutes=balance,
        **kwargs,
    )


def test_partial_allowance_then_tier1_on_the_excess():
    # 50 of 60 minutes already used; 20 minutes late today.
    decision = _check_in(20, balance=10)

    assert decision.late_minutes == 20
    assert decision.allowance_used_minutes == 10
    assert decision.remaining_allowance_minutes == 0
    assert decision.tier == ClassificationTier.LATE_TIER1
    assert decision.deduction_days == Decimal("0.25")


def test_lateness_fully_covered_is_on_time_with_note():
    decision = _check_in(20, balance=60)

    assert decision.tier == ClassificationTier.ON_TIME
    assert decision.deduction_days == 0
    assert decision.remaining_allowance_minutes == 40
    assert "covered" in decision.note


@pytest.mark.parametrize(
    "late,tier,deduction",
    [
        (14, ClassificationTier.LATE_TIER1, Decimal("0.25")),
        (15, ClassificationTier.LATE_TIER2, Decimal("0.5")),
        (30, ClassificationTier.LATE_TIER2, Decimal("0.5")),
        (31, ClassificationTier.LATE_TIER3, Decimal("1")),
    ],
)
def test_tier_boundaries_with_empty_balance(late, tier, deduction):
    decision = _check_in(late, balance=0)
    assert decision.tier == tier
    assert decision.deduction_days == deduction


def test_allowance_is_consumed_before_any_tier():
    # used + excess always equals the lateness, and the balance never goes negative.
    for balance in (0, 5, 30, 60):
        for late in (0, 1, 10, 45, 90):
            decision = _check_in(late, balance=balance)
            assert decision.allowance_used_minutes == min(late, balance)
            assert decision.remaining_allowance_minutes >= 0
            if late <= balance:
                assert decision.tier == ClassificationTier.ON_TIME


def test_daily_cap_limits_allowance_use():
    policy = CompanyPolicy(company_id=1, daily_late_allowance_minutes=10, late_15_to_30_deduction=Decimal("0.5"))
    decision = _check_in(30, balance=60, policy=policy)

    assert decision.allowance_used_minutes == 10
    assert decision.remaining_allowance_minutes == 50
    assert decision.tier == ClassificationTier.LATE_TIER2


def test_freelancer_is_exempt_from_lateness():
    decision = _check_in(45, balance=0, is_freelancer=True)
    assert decision.tier == ClassificationTier.ON_TIME
    assert decision.deduction_days == 0
    assert decision.allowance_used_minutes == 0


def test_negative_balance_is_rejected():
    with pytest.raises(ValidationError):
        _check_in(5, balance=-1)


def test_early_departure_over_threshold_adds_deduction():
    decision = AttendanceClassifier().classify_check_out(
        check_in=datetime(2025, 3, 3, 9, 0),
        check_out=datetime(2025, 3, 3, 16, 15),
        work_date=DAY,
        schedule=SCHEDULE,
        policy=POLICY,
        late_balance_minutes=0,
    )

    assert decision.early_departure_minutes == 45
    assert decision.tier == ClassificationTier.EARLY_DEPARTURE
    assert decision.deduction_days == Decimal("0.5")
    assert decision.worked_minutes == 7 * 60 + 15 - 60


def _check_out(minutes_early: int, balance: int):
    return AttendanceClassifier().classify_check_out(
        check_in=datetime(2025, 3, 3, 9, 0),
        check_out=datetime(2025, 3, 3, 17, 0) - timedelta(minutes=minutes_early),
        work_date=DAY,
        schedule=SCHEDULE,
        policy=POLICY,
        late_balance_minutes=balance,
    )


def test_early_departure_inside_grace_is_charged_to_balance():
    decision = _check_out(3, balance=30)

    assert decision.early_departure_minutes == 3
    assert decision.tier == ClassificationTier.ON_TIME
    assert decision.deduction_days == 0
    assert decision.allowance_used_minutes == 3
    assert decision.remaining_allowance_minutes == 27


def test_early_departure_between_grace_and_threshold_keeps_balance():
    decision = _check_out(20, balance=60)

    assert decision.early_departure_minutes == 20
    assert decision.tier == ClassificationTier.EARLY_DEPARTURE
    assert decision.deduction_days == 0
    assert decision.allowance_used_minutes == 0
    assert decision.remaining_allowance_minutes == 60


def test_checkout_before_checkin_is_invalid():
    with pytest.raises(ValidationError):
        AttendanceClassifier().classify_check_out(
            check_in=datetime(2025, 3, 3, 12, 0),
            check_out=datetime(2025, 3, 3, 11, 0),
            work_date=DAY,
            schedule=SCHEDULE,
            policy=POLICY,
            late_balance_minutes=0,
        )


def test_late_tier_is_kept_when_leaving_early():
    day = AttendanceClassifier().classify_day(
        work_date=DAY,
        check_in=datetime(2025, 3, 3, 9, 40),
        check_out=datetime(2025, 3, 3, 16, 0),
        schedule=SCHEDULE,
        policy=POLICY,
        late_balance_minutes=0,
    )

    assert day.tier == ClassificationTier.LATE_TIER3
    assert day.deduction_days == Decimal("1.5")


def test_overtime_is_worked_minutes_beyond_schedule():
    day = AttendanceClassifier().classify_day(
        work_date=DAY,
        check_in=datetime(2025, 3, 3, 9, 0),
        check_out=datetime(2025, 3, 3, 19, 0),
        schedule=SCHEDULE,
        policy=POLICY,
        late_balance_minutes=60,
    )
    assert day.worked_minutes == 9 * 60
    assert day.overtime_minutes == 120
    assert day.tier == ClassificationTier.ON_TIME


def test_missing_check_in_is_absent():
    day = AttendanceClassifier().classify_day(
        work_date=DAY,
        check_in=None,
        check_out=None,
        schedule=SCHEDULE,
        policy=POLICY,
        late_balance_minutes=60,
    )
    assert day.tier == ClassificationTier.ABSENT
    assert day.deduction_days == Decimal("1")
    assert day.remaining_allowance_minutes == 60


def test_worked_minutes_never_negative():
    assert worked_minutes(datetime(2025, 3, 3, 9, 0), datetime(2025, 3, 3, 9, 30), 60) == 0
    assert worked_minutes(datetime(2025, 3, 3, 9, 0), None, 60) == 0
