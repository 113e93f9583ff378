from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import OrderStatus


@dataclass(frozen=True)
class MarketplaceItem:
    item_id: int
    company_id: int
    name: str
    points_price: int
    approval_required: bool = False
    is_active: bool = True
    stock_quantity: Optional[int] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class MarketplaceOrder:
    """Purchase of one item; ``points_spent`` is fixed at purchase time."""

    order_id: int
    company_id: int
    employee_id: int
    item_id: int
    points_spent: int
    status: OrderStatus
    rejection_reason: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_by_name: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    consumed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class PointsEvent:
    """One wallet movement; ``points`` is negative for spending."""

    employee_id: int
    company_id: int
    points: int
    event_type: str
    source: str = "marketplace"
    reference_id: Optional[int] = None
    description: Optional[str] = None
    added_by: Optional[int] = None
    added_by_name: Optional[str] = None
