from datetime import time
from decimal import Decimal

import pytest

from src.hr_policy.hr_policy.core.enums import ApproverType, EntityKind
from src.hr_policy.hr_policy.core.exceptions import NotFoundError, ValidationError
from src.hr_policy.hr_policy.employees.model import NewEmployee
from src.hr_policy.hr_policy.policy.verification_mode import VerificationRequirement


def test_new_employee_starts_with_policy_balances(world):
    world.set_policy(monthly_late_allowance_minutes=45, annual_leave_days=14, emergency_leave_days=3)

    employee = world.employee_service.create(
        company_id=1,
        data=NewEmployee(full_name="  Lan Tran ", base_salary=Decimal("4500")),
        created_by=9,
    )

    assert employee.employee_id == 1
    assert employee.full_name == "Lan Tran"
    assert employee.monthly_late_balance_minutes == 45
    assert employee.leave_balance == 14
    assert employee.emergency_leave_balance == 3
    assert world.audit.entries[-1].user_id == 9


def test_invalid_employee_data(world):
    service = world.employee_service
    with pytest.raises(ValidationError):
        service.create(company_id=1, data=NewEmployee(full_name=" "))
    with pytest.raises(ValidationError):
        service.create(company_id=1, data=NewEmployee(full_name="F", is_freelancer=True))
    with pytest.raises(ValidationError):
        service.create(company_id=1, data=NewEmployee(full_name="S", work_start_time=time(17, 0), work_end_time=time(9, 0)))
    with pytest.raises(NotFoundError):
        service.create(company_id=2, data=NewEmployee(full_name="X"))


def test_balances_cannot_be_edited_directly(world):
    world.add_employee(1)
    with pytest.raises(ValidationError):
        world.employee_service.update(employee_id=1, company_id=1, changes={"leave_balance": 99})
    with pytest.raises(ValidationError):
        world.employee_service.update(employee_id=1, company_id=1, changes={"shoe_size": 42})


def test_update_validates_and_audits(world):
    world.add_employee(1)

    updated = world.employee_service.update(
        employee_id=1, company_id=1, changes={"verification_level": 3, "level3_verification_mode": "selfie_ip"}, updated_by=2
    )

    assert updated.verification_level == 3
    assert world.employee(1).level3_verification_mode == "selfie_ip"
    entry = world.audit.entries[-1]
    assert entry.old_data["verification_level"] is None
    assert entry.new_data["verification_level"] == 3

    with pytest.raises(ValidationError):
        world.employee_service.update(employee_id=1, company_id=1, changes={"level3_verification_mode": "retina"})


def test_effective_policy_merges_override(world):
    world.set_policy(attendance_verification_level=2)
    world.add_employee(1, verification_level=3, level3_verification_mode="location_only", approver_type=ApproverType.SPECIFIC_PERSON, approver_id=4)

    effective = world.employee_service.effective_policy(employee_id=1, company_id=1)

    assert effective.verification_level == 3
    assert effective.requirements == VerificationRequirement.LOCATION
    assert effective.approver_id == 4


def test_reset_monthly_late_balances(world):
    world.set_policy(monthly_late_allowance_minutes=90)
    world.add_employee(1, monthly_late_balance_minutes=0)
    world.add_employee(2, monthly_late_balance_minutes=15)
    world.add_employee(3, monthly_late_balance_minutes=5, is_active=False)

    assert world.employee_service.reset_monthly_late_balances(company_id=1) == 2
    assert world.employee(1).monthly_late_balance_minutes == 90
    assert world.employee(2).monthly_late_balance_minutes == 90
    assert world.employee(3).monthly_late_balance_minutes == 5


def test_delete_moves_employee_to_deleted_records(world):
    world.add_employee(1)
    deleted_id = world.employee_service.delete(employee_id=1, company_id=1, deleted_by=9)

    assert 1 not in world.employees.rows
    assert world.deleted.rows[deleted_id].table_name == EntityKind.EMPLOYEES
