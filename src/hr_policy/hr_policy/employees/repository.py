from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..policy.model import CompanyPolicy
from .model import Employee


class EmployeeRepository(Protocol):
    """Repository interface for employees.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, employee_id: int, *, company_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def list_for_company(self, company_id: int, *, active_only: bool = True) -> Sequence[Employee]:
        raise NotImplementedError

    def insert(self, employee: Employee) -> int:
        """Persist a new employee (employee_id is ignored) and return its id."""

        raise NotImplementedError

    def update(self, employee: Employee) -> bool:
        raise NotImplementedError

    def compare_and_set_balance(
        self,
        *,
        employee_id: int,
        company_id: int,
        field: str,
        expected: int,
        new_value: int,
    ) -> bool:
        """Atomic conditional update: set ``field`` only if it still equals ``expected``."""

        raise NotImplementedError

    def reset_late_balances(self, company_id: int, *, minutes: int) -> int:
        raise NotImplementedError


class PolicyRepository(Protocol):
    def get_for_company(self, company_id: int) -> Optional[CompanyPolicy]:
        raise NotImplementedError

    def save(self, policy: CompanyPolicy) -> bool:
        raise NotImplementedError
