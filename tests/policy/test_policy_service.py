from decimal import Decimal

import pytest

from src.hr_policy.hr_policy.core.enums import AuditAction
from src.hr_policy.hr_policy.core.exceptions import NotFoundError, ValidationError
from src.hr_policy.hr_policy.policy.model import CompanyLocation

COMPANY_ID = 1


def test_update_saves_and_audits_changed_fields(world):
    policy = world.policy_service.update(
        company_id=COMPANY_ID,
        changes={"overtime_multiplier": Decimal("2.0"), "annual_leave_days": 14},
        updated_by=9,
    )

    assert world.policies.get_for_company(COMPANY_ID) == policy
    assert policy.overtime_multiplier == Decimal("2.0")
    entry = world.audit.entries[-1]
    assert entry.table_name == "companies"
    assert entry.action == AuditAction.UPDATE
    assert entry.user_id == 9
    assert entry.new_data["annual_leave_days"] == 14


def test_invalid_update_is_not_saved(world):
    before = world.policies.get_for_company(COMPANY_ID)

    with pytest.raises(ValidationError):
        world.policy_service.update(company_id=COMPANY_ID, changes={"overtime_multiplier": Decimal("0.5")})
    with pytest.raises(ValidationError):
        world.policy_service.update(company_id=COMPANY_ID, changes={"attendance_verification_level": 3})

    assert world.policies.get_for_company(COMPANY_ID) == before
    assert world.audit.entries == []


def test_locations_are_built_from_payload_and_checked(world):
    policy = world.policy_service.update(
        company_id=COMPANY_ID,
        changes={"locations": [{"name": "HQ", "latitude": "10.5", "longitude": 106.7}]},
    )
    assert policy.locations == (CompanyLocation(name="HQ", latitude=10.5, longitude=106.7),)

    with pytest.raises(ValidationError):
        world.policy_service.update(
            company_id=COMPANY_ID,
            changes={"locations": [{"name": "Depot", "latitude": 95, "longitude": 0}]},
        )
    with pytest.raises(ValidationError):
        world.policy_service.update(
            company_id=COMPANY_ID,
            changes={"locations": [{"name": "Depot", "latitude": 1, "longitude": 1, "radius_meters": 0}]},
        )
    with pytest.raises(ValidationError):
        world.policy_service.update(company_id=COMPANY_ID, changes={"locations": [{"name": "No coordinates"}]})


def test_unknown_or_protected_fields_are_rejected(world):
    with pytest.raises(ValidationError):
        world.policy_service.update(company_id=COMPANY_ID, changes={"not_a_field": 1})
    with pytest.raises(ValidationError):
        world.policy_service.update(company_id=COMPANY_ID, changes={"company_id": 2})


def test_unchanged_update_writes_no_audit(world):
    current = world.policies.get_for_company(COMPANY_ID)
    world.policy_service.update(company_id=COMPANY_ID, changes={"annual_leave_days": current.annual_leave_days})
    assert world.audit.entries == []


def test_missing_policy_is_not_found(world):
    with pytest.raises(NotFoundError):
        world.policy_service.get(999)
