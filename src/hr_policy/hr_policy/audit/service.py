from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from ..core.enums import AuditAction, EntityKind
from ..core.exceptions import ConflictError, NotFoundError
from .model import DeletedRecord
from .registry import EntityRegistry
from .repository import DeletedRecordRepository
from .trail import AuditTrail

logger = logging.getLogger(__name__)


class SoftDeleteService:
    """Delete = snapshot into deleted_records, remove source row, audit.

    Restore reverses it through the same registry, then runs any hook
    registered for the kind so side effects of the row (balances) come back too.
    """

    def __init__(self, registry: EntityRegistry, deleted: DeletedRecordRepository, audit: AuditTrail):
        self._registry = registry
        self._deleted = deleted
        self._audit = audit
        self._restore_hooks: dict[EntityKind, Callable[[DeletedRecord, Optional[int]], None]] = {}

    def on_restore(self, kind: EntityKind, hook: Callable[[DeletedRecord, Optional[int]], None]) -> None:
        self._restore_hooks[EntityKind(kind)] = hook

    def delete(
        self,
        *,
        kind: EntityKind,
        record_id,
        company_id: int,
        deleted_by: Optional[int] = None,
        description: Optional[str] = None,
    ) -> int:
        store = self._registry.store_for(kind)
        kind = EntityKind(kind)
        record_data = store.get(str(record_id), company_id=int(company_id))
        if record_data is None:
            raise NotFoundError(f"{kind.value} record {record_id} not found")

        deleted_id = self._deleted.insert(
            company_id=int(company_id),
            table_name=kind,
            record_id=str(record_id),
            record_data=record_data,
            deleted_by=deleted_by,
        )
        if not store.delete(str(record_id), company_id=int(company_id)):
            raise ConflictError(f"{kind.value} record {record_id} was already removed")

        self._audit.record(
            company_id=company_id,
            table_name=kind.value,
            record_id=record_id,
            action=AuditAction.DELETE,
            old_data=record_data,
            description=description,
            user_id=deleted_by,
        )
        logger.info("record_soft_deleted", extra={"table": kind.value, "record_id": str(record_id), "deleted_id": deleted_id})
        return deleted_id

    def restore(self, *, deleted_id: int, company_id: int, restored_by: Optional[int] = None) -> DeletedRecord:
        record = self._deleted.get(int(deleted_id), company_id=int(company_id))
        if record is None:
            raise NotFoundError("Deleted record not found")
        if record.is_restored:
            raise ConflictError("Record has already been restored")

        store = self._registry.store_for(record.table_name)
        store.insert(record.record_data)
        hook = self._restore_hooks.get(record.table_name)
        if hook:
            try:
                hook(record, restored_by)
            except Exception:
                store.delete(record.record_id, company_id=int(company_id))
                raise
        self._deleted.mark_restored(record.deleted_id)

        self._audit.record(
            company_id=company_id,
            table_name=record.table_name.value,
            record_id=record.record_id,
            action=AuditAction.RESTORE,
            new_data=record.record_data,
            user_id=restored_by,
        )
        logger.info("record_restored", extra={"table": record.table_name.value, "record_id": record.record_id})
        return record

    def list_deleted(self, *, company_id: int, limit: int = 200) -> Sequence[DeletedRecord]:
        return self._deleted.list_unrestored(int(company_id), limit=limit)
