from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import EntityKind
from .model import AuditEntry, DeletedRecord


class AuditRepository(Protocol):
    def append(self, entry: AuditEntry) -> int:
        raise NotImplementedError

    def list_for_company(self, company_id: int, *, limit: int = 200) -> Sequence[AuditEntry]:
        raise NotImplementedError


class DeletedRecordRepository(Protocol):
    def insert(
        self,
        *,
        company_id: int,
        table_name: EntityKind,
        record_id: str,
        record_data: dict,
        deleted_by: Optional[int],
    ) -> int:
        raise NotImplementedError

    def get(self, deleted_id: int, *, company_id: int) -> Optional[DeletedRecord]:
        raise NotImplementedError

    def mark_restored(self, deleted_id: int) -> bool:
        raise NotImplementedError

    def list_unrestored(self, company_id: int, *, limit: int = 200) -> Sequence[DeletedRecord]:
        raise NotImplementedError


class EntityStore(Protocol):
    """Row-level operations for one soft-deletable table."""

    def get(self, record_id: str, *, company_id: int) -> Optional[dict]:
        raise NotImplementedError

    def insert(self, record_data: dict) -> None:
        raise NotImplementedError

    def delete(self, record_id: str, *, company_id: int) -> bool:
        raise NotImplementedError
