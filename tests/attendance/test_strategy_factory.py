from decimal import Decimal

from src.hr_policy.hr_policy.attendance.factory import AttendanceStrategyFactory
from src.hr_policy.hr_policy.attendance.strategies.absent_strategy import AbsentStrategy
from src.hr_policy.hr_policy.attendance.strategies.early_strategy import EarlyDepartureStrategy
from src.hr_policy.hr_policy.attendance.strategies.late_strategy import LateStrategy
from src.hr_policy.hr_policy.attendance.strategies.normal_strategy import NormalStrategy
from src.hr_policy.hr_policy.core.enums import ClassificationTier
from src.hr_policy.hr_policy.policy.model import CompanyPolicy


def test_factory_checkin_without_excess_is_normal():
    factory = AttendanceStrategyFactory()
    assert isinstance(factory.for_checkin(excess_late_minutes=0), NormalStrategy)


def test_factory_checkin_with_excess_is_late():
    factory = AttendanceStrategyFactory()
    assert isinstance(factory.for_checkin(excess_late_minutes=1), LateStrategy)


def test_factory_freelancer_is_always_normal():
    factory = AttendanceStrategyFactory()
    policy = CompanyPolicy(company_id=1)

    assert isinstance(factory.for_checkin(excess_late_minutes=90, is_freelancer=True), NormalStrategy)
    assert isinstance(factory.for_checkout(shortfall_minutes=120, policy=policy, is_freelancer=True), NormalStrategy)


def test_factory_checkout_inside_grace_is_normal():
    policy = CompanyPolicy(company_id=1, early_departure_grace_minutes=5)
    strategy = AttendanceStrategyFactory().for_checkout(shortfall_minutes=4, policy=policy)
    assert isinstance(strategy, NormalStrategy)


def test_factory_checkout_after_grace_is_early_departure():
    policy = CompanyPolicy(company_id=1, early_departure_grace_minutes=5)
    strategy = AttendanceStrategyFactory().for_checkout(shortfall_minutes=5, policy=policy)
    assert isinstance(strategy, EarlyDepartureStrategy)


def test_absent_strategy_uses_policy_deduction():
    policy = CompanyPolicy(company_id=1, absence_without_permission_deduction=Decimal("1.5"))
    strategy = AttendanceStrategyFactory().for_absence()

    decision = strategy.decide_checkin(excess_late_minutes=0, policy=policy)

    assert isinstance(strategy, AbsentStrategy)
    assert decision.tier == ClassificationTier.ABSENT
    assert decision.deduction_days == Decimal("1.5")
