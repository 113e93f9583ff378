from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from ..audit.model import snapshot
from ..audit.trail import AuditTrail
from ..core import constants
from ..core.enums import AuditAction
from ..core.exceptions import NotFoundError, ValidationError
from ..employees.repository import PolicyRepository
from .model import CompanyLocation, CompanyPolicy
from .resolver import validate_policy

logger = logging.getLogger(__name__)

POLICY_TABLE = "companies"


def _location(value) -> CompanyLocation:
    if isinstance(value, CompanyLocation):
        return value
    try:
        return CompanyLocation(
            name=str(value.get("name") or ""),
            latitude=float(value["latitude"]),
            longitude=float(value["longitude"]),
            radius_meters=int(value.get("radius_meters", constants.DEFAULT_LOCATION_RADIUS_METERS)),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid location: {exc}") from exc


class PolicyService:
    """Reads and edits the company policy; every save is validated first."""

    def __init__(self, policies: PolicyRepository, audit: AuditTrail):
        self._policies = policies
        self._audit = audit

    def get(self, company_id: int) -> CompanyPolicy:
        policy = self._policies.get_for_company(int(company_id))
        if not policy:
            raise NotFoundError("Company policy not found")
        return policy

    def update(self, *, company_id: int, changes: dict, updated_by: Optional[int] = None) -> CompanyPolicy:
        current = self.get(company_id)
        if "company_id" in changes:
            raise ValidationError("company_id cannot be edited")

        changes = dict(changes)
        if "locations" in changes:
            changes["locations"] = tuple(_location(item) for item in changes["locations"] or ())
        try:
            updated = replace(current, **changes)
        except TypeError as exc:
            raise ValidationError(f"Unknown policy field: {exc}") from exc
        validate_policy(updated)

        if updated == current:
            return current
        # A MySQL UPDATE that changes nothing reports zero rows, so the return value is not a lookup.
        self._policies.save(updated)

        self._audit.record(
            company_id=current.company_id,
            table_name=POLICY_TABLE,
            record_id=current.company_id,
            action=AuditAction.UPDATE,
            old_data=snapshot(current),
            new_data=snapshot(updated),
            user_id=updated_by,
        )
        logger.info("company_policy_updated", extra={"company_id": current.company_id, "fields": sorted(changes)})
        return updated
