from __future__ import annotations

import logging
from typing import Optional

from ..core.enums import AuditAction
from .model import AuditEntry, describe_change
from .repository import AuditRepository

logger = logging.getLogger(__name__)


class AuditTrail:
    """Best-effort audit sink.

    A failed write is logged, never raised: the primary mutation has already
    committed. Transient connect failures are retried inside ``db_cursor``;
    the insert itself runs once so an entry is never written twice.
    """

    def __init__(self, repo: AuditRepository):
        self._repo = repo

    def record(
        self,
        *,
        company_id: int,
        table_name: str,
        record_id,
        action: AuditAction,
        old_data: Optional[dict] = None,
        new_data: Optional[dict] = None,
        description: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> bool:
        entry = AuditEntry(
            company_id=int(company_id),
            table_name=table_name,
            record_id=str(record_id),
            action=action,
            old_data=old_data,
            new_data=new_data,
            description=description or describe_change(action, table_name, old_data, new_data),
            user_id=user_id,
        )

        try:
            self._repo.append(entry)
        except Exception:
            logger.exception(
                "audit_log_write_failed",
                extra={"table": table_name, "record_id": str(record_id), "action": action.value},
            )
            return False
        return True
