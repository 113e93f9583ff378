from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import minutes_between
from ..core.enums import ClassificationTier
from ..core.exceptions import ValidationError
from ..employees.model import Employee
from ..policy.model import CompanyPolicy
from .factory import AttendanceStrategyFactory
from .model import CheckInDecision, CheckOutDecision, DayClassification, WorkSchedule
from .strategies.base import StatusDecision


def schedule_for(employee: Employee, policy: CompanyPolicy) -> WorkSchedule:
    return WorkSchedule(
        start=employee.work_start_time,
        end=employee.work_end_time,
        break_minutes=int(employee.break_duration_minutes or 0),
        weekend_days=tuple(employee.weekend_days or policy.weekend_days),
    )


def worked_minutes(check_in: Optional[datetime], check_out: Optional[datetime], break_minutes: int) -> int:
    """(out - in) - break, not below 0; 0 while the day is still open."""

    if not check_in or not check_out:
        return 0
    return max(minutes_between(check_in, check_out) - int(break_minutes or 0), 0)


class AttendanceClassifier:
    """Pure rules turning a day's timestamps and the policy into a tier and deduction.

    The monthly late allowance is consumed before any tier applies; only the
    excess beyond it is tiered.
    """

    def __init__(self, factory: Optional[AttendanceStrategyFactory] = None):
        self._factory = factory or AttendanceStrategyFactory()

    def classify_check_in(
        self,
        *,
        check_in: datetime,
        schedule: WorkSchedule,
        policy: CompanyPolicy,
        late_balance_minutes: int,
        is_freelancer: bool = False,
    ) -> CheckInDecision:
        if late_balance_minutes < 0:
            raise ValidationError("Late balance cannot be negative")

        scheduled_start = datetime.combine(check_in.date(), schedule.start)
        late = max(0, minutes_between(scheduled_start, check_in))

        used = 0
        if late and not is_freelancer:
            used = min(late, late_balance_minutes)
            if policy.daily_late_allowance_minutes is not None:
                used = min(used, policy.daily_late_allowance_minutes)
        excess = 0 if is_freelancer else late - used

        strategy = self._factory.for_checkin(excess_late_minutes=excess, is_freelancer=is_freelancer)
        decision = strategy.decide_checkin(excess_late_minutes=excess, policy=policy)

        note = decision.note
        if late and not excess and not is_freelancer:
            note = f"Late {late} minutes, covered by monthly allowance"

        return CheckInDecision(
            late_minutes=late,
            allowance_used_minutes=used,
            remaining_allowance_minutes=late_balance_minutes - used,
            tier=decision.tier,
            deduction_days=Decimal(decision.deduction_days),
            note=note,
        )

    def classify_check_out(
        self,
        *,
        check_in: datetime,
        check_out: datetime,
        work_date: date,
        schedule: WorkSchedule,
        policy: CompanyPolicy,
        late_balance_minutes: int,
        current: Optional[CheckInDecision] = None,
        is_freelancer: bool = False,
    ) -> CheckOutDecision:
        """Check-out rules. ``current`` is the check-in decision; None means on time.

        The returned deduction includes ``current.deduction_days``.
        """
        if check_out < check_in:
            raise ValidationError("Check-out cannot be earlier than check-in")

        scheduled_end = datetime.combine(work_date, schedule.end)
        shortfall = max(0, minutes_between(check_out, scheduled_end))
        worked = worked_minutes(check_in, check_out, schedule.break_minutes)
        overtime = 0 if is_freelancer else max(worked - schedule.expected_daily_minutes, 0)

        # Only shortfalls inside the grace window are charged to the late balance.
        used = 0
        if shortfall and not is_freelancer and shortfall < policy.early_departure_grace_minutes:
            used = min(shortfall, max(late_balance_minutes, 0))

        strategy = self._factory.for_checkout(shortfall_minutes=shortfall, policy=policy, is_freelancer=is_freelancer)
        decision = strategy.decide_checkout(
            shortfall_minutes=shortfall,
            policy=policy,
            current=(
                StatusDecision(tier=current.tier, deduction_days=current.deduction_days, note=current.note)
                if current
                else StatusDecision(tier=ClassificationTier.ON_TIME)
            ),
        )

        return CheckOutDecision(
            early_departure_minutes=shortfall,
            worked_minutes=worked,
            overtime_minutes=overtime,
            allowance_used_minutes=used,
            remaining_allowance_minutes=late_balance_minutes - used,
            tier=decision.tier,
            deduction_days=Decimal(decision.deduction_days),
            note=decision.note,
        )

    def classify_absence(self, *, policy: CompanyPolicy, late_balance_minutes: int) -> DayClassification:
        decision = self._factory.for_absence().decide_checkin(excess_late_minutes=0, policy=policy)
        return DayClassification(
            late_minutes=0,
            early_departure_minutes=0,
            worked_minutes=0,
            overtime_minutes=0,
            tier=ClassificationTier.ABSENT,
            deduction_days=Decimal(decision.deduction_days),
            allowance_used_minutes=0,
            remaining_allowance_minutes=late_balance_minutes,
            note=decision.note,
        )

    def classify_day(
        self,
        *,
        work_date: date,
        check_in: Optional[datetime],
        check_out: Optional[datetime],
        schedule: WorkSchedule,
        policy: CompanyPolicy,
        late_balance_minutes: int,
        is_freelancer: bool = False,
    ) -> DayClassification:
        """Whole-day view: check-in rules, then check-out rules on the remaining balance."""

        if check_in is None:
            return self.classify_absence(policy=policy, late_balance_minutes=late_balance_minutes)

        cin = self.classify_check_in(
            check_in=check_in,
            schedule=schedule,
            policy=policy,
            late_balance_minutes=late_balance_minutes,
            is_freelancer=is_freelancer,
        )
        if check_out is None:
            return DayClassification(
                late_minutes=cin.late_minutes,
                early_departure_minutes=0,
                worked_minutes=0,
                overtime_minutes=0,
                tier=cin.tier,
                deduction_days=cin.deduction_days,
                allowance_used_minutes=cin.allowance_used_minutes,
                remaining_allowance_minutes=cin.remaining_allowance_minutes,
                note=cin.note,
            )

        cout = self.classify_check_out(
            check_in=check_in,
            check_out=check_out,
            work_date=work_date,
            schedule=schedule,
            policy=policy,
            late_balance_minutes=cin.remaining_allowance_minutes,
            current=cin,
            is_freelancer=is_freelancer,
        )
        return DayClassification(
            late_minutes=cin.late_minutes,
            early_departure_minutes=cout.early_departure_minutes,
            worked_minutes=cout.worked_minutes,
            overtime_minutes=cout.overtime_minutes,
            tier=cout.tier,
            deduction_days=cout.deduction_days,
            allowance_used_minutes=cin.allowance_used_minutes + cout.allowance_used_minutes,
            remaining_allowance_minutes=cout.remaining_allowance_minutes,
            note=cout.note,
        )
