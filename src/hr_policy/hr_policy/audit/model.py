from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..core.enums import AuditAction, EntityKind


@dataclass(frozen=True)
class AuditEntry:
    """Append-only change history row."""

    company_id: int
    table_name: str
    record_id: str
    action: AuditAction
    old_data: Optional[dict] = None
    new_data: Optional[dict] = None
    description: Optional[str] = None
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None
    audit_id: Optional[int] = None


@dataclass(frozen=True)
class DeletedRecord:
    """Snapshot of a soft-deleted row, kept so the delete can be undone."""

    deleted_id: int
    company_id: int
    table_name: EntityKind
    record_id: str
    record_data: dict
    deleted_by: Optional[int] = None
    deleted_at: Optional[datetime] = None
    is_restored: bool = False
    restored_at: Optional[datetime] = None


def snapshot(obj: Any) -> Optional[dict]:
    """JSON-safe dict for a dataclass or mapping (enums, dates, Decimals as strings)."""

    if obj is None:
        return None
    data = dataclasses.asdict(obj) if dataclasses.is_dataclass(obj) else dict(obj)
    return json.loads(json.dumps(data, default=_json_default))


def _json_default(value: Any):
    if hasattr(value, "value"):
        return value.value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


_ACTION_VERBS = {
    AuditAction.INSERT: "Added",
    AuditAction.UPDATE: "Updated",
    AuditAction.DELETE: "Deleted",
    AuditAction.RESTORE: "Restored",
}


def describe_change(action: AuditAction, table_name: str, old: Optional[dict], new: Optional[dict]) -> str:
    """Default description when the caller gives none: verb plus changed fields."""

    label = table_name.replace("_", " ")
    verb = _ACTION_VERBS[action]
    if action != AuditAction.UPDATE or not old or not new:
        return f"{verb} {label} record"

    changed = sorted(k for k in set(old) | set(new) if old.get(k) != new.get(k))
    if not changed:
        return f"{verb} {label} record (no changes)"
    return f"{verb} {label}: {', '.join(changed)}"
