from __future__ import annotations

import logging
from typing import Optional, Protocol

from ..employees.model import Employee

logger = logging.getLogger(__name__)


class SelfieVerifier(Protocol):
    """Face check against the employee's reference photo.

    True/False is a decision; None means no automatic decision was made.
    """

    def verify(self, *, employee: Employee, selfie_url: str) -> Optional[bool]:
        raise NotImplementedError


class ManualSelfieReview:
    """No automatic face match: every selfie is left to the approver."""

    def verify(self, *, employee: Employee, selfie_url: str) -> Optional[bool]:
        logger.info("selfie_manual_review", extra={"employee_id": employee.employee_id})
        return None
