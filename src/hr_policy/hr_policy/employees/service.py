from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Optional, Sequence

from ..audit.model import snapshot
from ..audit.service import SoftDeleteService
from ..audit.trail import AuditTrail
from ..common.validators import optional_non_negative, require_non_empty, require_non_negative
from ..core.enums import AuditAction, EntityKind
from ..core.exceptions import NotFoundError, ValidationError
from ..policy.model import CompanyPolicy
from ..policy.resolver import EffectivePolicy, resolve
from ..policy.verification_mode import parse_mode
from .model import Employee, NewEmployee
from .repository import EmployeeRepository, PolicyRepository

logger = logging.getLogger(__name__)

# Balances move only through the ledger services.
_PROTECTED_FIELDS = frozenset(
    {"employee_id", "company_id", "monthly_late_balance_minutes", "leave_balance", "emergency_leave_balance"}
)


class EmployeeService:
    def __init__(self, employees: EmployeeRepository, policies: PolicyRepository, audit: AuditTrail, soft_delete: SoftDeleteService):
        self._employees = employees
        self._policies = policies
        self._audit = audit
        self._soft_delete = soft_delete

    def _policy(self, company_id: int) -> CompanyPolicy:
        policy = self._policies.get_for_company(int(company_id))
        if not policy:
            raise NotFoundError("Company policy not found")
        return policy

    def get(self, *, employee_id: int, company_id: int) -> Employee:
        employee = self._employees.get_by_id(int(employee_id), company_id=int(company_id))
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def list(self, *, company_id: int, active_only: bool = True) -> Sequence[Employee]:
        return self._employees.list_for_company(int(company_id), active_only=active_only)

    def effective_policy(self, *, employee_id: int, company_id: int) -> EffectivePolicy:
        employee = self.get(employee_id=employee_id, company_id=company_id)
        return resolve(employee.policy_override(), self._policy(employee.company_id))

    @staticmethod
    def _validate(employee: Employee) -> None:
        require_non_empty(employee.full_name, "full_name")
        require_non_negative(employee.base_salary, "base_salary")
        optional_non_negative(employee.hourly_rate, "hourly_rate")
        require_non_negative(employee.break_duration_minutes, "break_duration_minutes")
        if employee.is_freelancer and not employee.hourly_rate:
            raise ValidationError("Freelancers need an hourly rate")
        if employee.work_end_time <= employee.work_start_time:
            raise ValidationError("Work end time must be after work start time")
        if employee.level3_verification_mode:
            parse_mode(employee.level3_verification_mode)
        if employee.verification_level is not None and employee.verification_level not in (1, 2, 3):
            raise ValidationError("Verification level must be 1, 2 or 3")

    def create(self, *, company_id: int, data: NewEmployee, created_by: Optional[int] = None) -> Employee:
        """New employee with balances taken from the company policy."""

        policy = self._policy(company_id)
        employee = Employee(
            employee_id=0,
            company_id=int(company_id),
            full_name=data.full_name.strip() if data.full_name else data.full_name,
            email=data.email,
            salary_type=data.salary_type,
            base_salary=Decimal(data.base_salary or 0),
            is_freelancer=bool(data.is_freelancer),
            hourly_rate=Decimal(data.hourly_rate) if data.hourly_rate is not None else None,
            work_start_time=data.work_start_time,
            work_end_time=data.work_end_time,
            break_duration_minutes=int(data.break_duration_minutes),
            weekend_days=tuple(data.weekend_days) if data.weekend_days else None,
            manager_id=data.manager_id,
            monthly_late_balance_minutes=policy.monthly_late_allowance_minutes,
            leave_balance=policy.annual_leave_days,
            emergency_leave_balance=policy.emergency_leave_days,
        )
        self._validate(employee)

        employee_id = self._employees.insert(employee)
        employee = replace(employee, employee_id=employee_id)
        self._audit.record(
            company_id=employee.company_id,
            table_name=EntityKind.EMPLOYEES.value,
            record_id=employee_id,
            action=AuditAction.INSERT,
            new_data=snapshot(employee),
            user_id=created_by,
        )
        logger.info("employee_created", extra={"employee_id": employee_id, "company_id": employee.company_id})
        return employee

    def update(self, *, employee_id: int, company_id: int, changes: dict, updated_by: Optional[int] = None) -> Employee:
        current = self.get(employee_id=employee_id, company_id=company_id)
        blocked = sorted(set(changes) & _PROTECTED_FIELDS)
        if blocked:
            raise ValidationError(f"Fields cannot be edited directly: {', '.join(blocked)}")
        try:
            updated = replace(current, **changes)
        except TypeError as exc:
            raise ValidationError(f"Unknown employee field: {exc}") from exc
        self._validate(updated)

        if updated == current:
            return current
        if not self._employees.update(updated):
            raise NotFoundError("Employee not found")

        self._audit.record(
            company_id=current.company_id,
            table_name=EntityKind.EMPLOYEES.value,
            record_id=current.employee_id,
            action=AuditAction.UPDATE,
            old_data=snapshot(current),
            new_data=snapshot(updated),
            user_id=updated_by,
        )
        return updated

    def delete(self, *, employee_id: int, company_id: int, deleted_by: Optional[int] = None) -> int:
        self.get(employee_id=employee_id, company_id=company_id)
        return self._soft_delete.delete(
            kind=EntityKind.EMPLOYEES,
            record_id=employee_id,
            company_id=company_id,
            deleted_by=deleted_by,
        )

    def reset_monthly_late_balances(self, *, company_id: int) -> int:
        """Start-of-month reset of every active employee's late balance to the policy allowance."""

        policy = self._policy(company_id)
        count = self._employees.reset_late_balances(int(company_id), minutes=policy.monthly_late_allowance_minutes)
        self._audit.record(
            company_id=company_id,
            table_name=EntityKind.EMPLOYEES.value,
            record_id="*",
            action=AuditAction.UPDATE,
            new_data={"monthly_late_balance_minutes": policy.monthly_late_allowance_minutes, "employees": count},
            description="Monthly late allowance reset",
        )
        logger.info("late_balances_reset", extra={"company_id": company_id, "employees": count})
        return count
