from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ...core.enums import ClassificationTier
from ...policy.model import CompanyPolicy


@dataclass(frozen=True)
class StatusDecision:
    tier: ClassificationTier
    deduction_days: Decimal = Decimal("0")
    note: Optional[str] = None


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how a day's tier and deduction are decided."""

    @abstractmethod
    def decide_checkin(self, *, excess_late_minutes: int, policy: CompanyPolicy) -> StatusDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_checkout(self, *, shortfall_minutes: int, policy: CompanyPolicy, current: StatusDecision) -> StatusDecision:
        raise NotImplementedError
