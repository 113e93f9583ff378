from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import OrderStatus
from .model import MarketplaceItem, MarketplaceOrder, PointsEvent


class MarketplaceRepository(Protocol):
    def get_item(self, item_id: int, *, company_id: int) -> Optional[MarketplaceItem]:
        raise NotImplementedError

    def reserve_stock(self, item_id: int, *, company_id: int) -> bool:
        """Take one unit; True for unlimited items, False when sold out."""

        raise NotImplementedError

    def release_stock(self, item_id: int, *, company_id: int) -> None:
        raise NotImplementedError

    def create_order(self, *, company_id: int, employee_id: int, item_id: int, points_spent: int, status: OrderStatus) -> int:
        raise NotImplementedError

    def get_order(self, order_id: int, *, company_id: int) -> Optional[MarketplaceOrder]:
        raise NotImplementedError

    def list_orders(self, company_id: int, *, status: Optional[OrderStatus] = None, limit: int = 200) -> Sequence[MarketplaceOrder]:
        raise NotImplementedError

    def set_order_status(
        self,
        *,
        order_id: int,
        company_id: int,
        expected: OrderStatus,
        status: OrderStatus,
        reviewed_by: Optional[int] = None,
        reviewed_by_name: Optional[str] = None,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError


class WalletRepository(Protocol):
    def get_points(self, employee_id: int, *, company_id: int) -> Optional[int]:
        raise NotImplementedError

    def compare_and_set_points(self, *, employee_id: int, company_id: int, expected: int, new_value: int) -> bool:
        raise NotImplementedError

    def add_history(self, event: PointsEvent) -> int:
        raise NotImplementedError
