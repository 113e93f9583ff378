from __future__ import annotations

from dataclasses import dataclass

from ..policy.model import CompanyPolicy
from .strategies.absent_strategy import AbsentStrategy
from .strategies.base import AttendanceStrategy
from .strategies.early_strategy import EarlyDepartureStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_checkin(self, *, excess_late_minutes: int, is_freelancer: bool = False) -> AttendanceStrategy:
        if is_freelancer or excess_late_minutes <= 0:
            return NormalStrategy()
        return LateStrategy()

    def for_checkout(self, *, shortfall_minutes: int, policy: CompanyPolicy, is_freelancer: bool = False) -> AttendanceStrategy:
        if is_freelancer or shortfall_minutes < max(policy.early_departure_grace_minutes, 1):
            return NormalStrategy()
        return EarlyDepartureStrategy(deductible=shortfall_minutes >= policy.early_departure_threshold_minutes)

    def for_absence(self) -> AttendanceStrategy:
        return AbsentStrategy()
