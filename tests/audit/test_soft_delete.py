from datetime import date
from decimal import Decimal

import pytest

from src.hr_policy.hr_policy.audit.model import describe_change, snapshot
from src.hr_policy.hr_policy.audit.registry import EntityRegistry
from src.hr_policy.hr_policy.audit.trail import AuditTrail
from src.hr_policy.hr_policy.core.enums import AuditAction, EntityKind, LeaveType
from src.hr_policy.hr_policy.core.exceptions import ConflictError, NotFoundError, ValidationError


def test_registry_rejects_unknown_or_unregistered_kinds(world):
    with pytest.raises(ValidationError):
        world.registry.store_for("payslips")

    registry = EntityRegistry({})
    with pytest.raises(ValidationError):
        registry.store_for(EntityKind.EMPLOYEES)


def test_delete_then_restore_round_trip(world):
    world.add_employee(1, leave_balance=21)
    request = world.leave_service.create_request(
        employee_id=1, company_id=1, leave_type=LeaveType.SICK, start_date=date(2025, 4, 6), end_date=date(2025, 4, 6)
    )

    deleted_id = world.soft_delete.delete(
        kind=EntityKind.LEAVE_REQUESTS, record_id=request.request_id, company_id=1, deleted_by=9
    )
    assert request.request_id not in world.leaves.rows
    [listed] = world.soft_delete.list_deleted(company_id=1)
    assert listed.record_data["leave_type"] == "sick"

    restored = world.soft_delete.restore(deleted_id=deleted_id, company_id=1, restored_by=9)

    assert restored.record_id == str(request.request_id)
    assert world.leaves.rows[request.request_id] == request
    assert world.soft_delete.list_deleted(company_id=1) == []
    actions = [e.action for e in world.audit.entries if e.table_name == EntityKind.LEAVE_REQUESTS.value]
    assert actions == [AuditAction.INSERT, AuditAction.DELETE, AuditAction.RESTORE]


def test_restore_twice_or_missing(world):
    world.add_employee(1)
    deleted_id = world.soft_delete.delete(kind=EntityKind.EMPLOYEES, record_id=1, company_id=1)
    world.soft_delete.restore(deleted_id=deleted_id, company_id=1)

    with pytest.raises(ConflictError):
        world.soft_delete.restore(deleted_id=deleted_id, company_id=1)
    with pytest.raises(NotFoundError):
        world.soft_delete.restore(deleted_id=77, company_id=1)
    with pytest.raises(NotFoundError):
        world.soft_delete.delete(kind=EntityKind.EMPLOYEES, record_id=42, company_id=1)


def test_records_of_other_companies_are_invisible(world):
    world.add_employee(1, company_id=2)
    with pytest.raises(NotFoundError):
        world.soft_delete.delete(kind=EntityKind.EMPLOYEES, record_id=1, company_id=1)


def test_audit_failures_never_fail_the_caller(world):
    world.audit.fail = True
    trail = AuditTrail(world.audit)

    assert trail.record(company_id=1, table_name="employees", record_id=1, action=AuditAction.INSERT) is False

    world.add_employee(1, leave_balance=21)
    request = world.leave_service.create_request(
        employee_id=1, company_id=1, leave_type="vacation", start_date=date(2025, 4, 6), end_date=date(2025, 4, 7)
    )
    world.leave_service.approve(request_id=request.request_id, company_id=1)
    assert world.employee(1).leave_balance == 19


def test_default_description_lists_changed_fields():
    text = describe_change(AuditAction.UPDATE, "employees", {"a": 1, "b": 2}, {"a": 1, "b": 3, "c": 4})
    assert text == "Updated employees: b, c"
    assert describe_change(AuditAction.DELETE, "leave_requests", {"a": 1}, None) == "Deleted leave requests record"


def test_snapshot_is_json_safe(world):
    employee = world.add_employee(1, base_salary=Decimal("6000.50"))
    data = snapshot(employee)

    assert data["base_salary"] == "6000.50"
    assert data["salary_type"] == "monthly"
    assert data["work_start_time"] == "09:00:00"
