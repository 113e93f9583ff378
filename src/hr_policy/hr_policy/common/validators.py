from __future__ import annotations

from typing import Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_non_negative(value, field_name: str):
    if value is None or value < 0:
        raise ValidationError(f"{field_name} must be >= 0")
    return value


def optional_non_negative(value, field_name: str) -> Optional[float]:
    if value is None:
        return None
    return require_non_negative(value, field_name)