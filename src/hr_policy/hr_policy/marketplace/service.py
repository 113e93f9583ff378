from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.concurrency import compare_and_swap
from ..core.enums import OrderStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from .ledger import EVENT_PURCHASE, EVENT_REFUND, check_transition, debit, purchase_status, refund
from .model import MarketplaceOrder, PointsEvent
from .repository import MarketplaceRepository, WalletRepository

logger = logging.getLogger(__name__)


class MarketplaceService:
    """Points are taken at purchase and given back in full on rejection."""

    def __init__(self, market: MarketplaceRepository, wallets: WalletRepository):
        self._market = market
        self._wallets = wallets

    def _order(self, order_id: int, company_id: int) -> MarketplaceOrder:
        order = self._market.get_order(int(order_id), company_id=int(company_id))
        if not order:
            raise NotFoundError("Order not found")
        return order

    def balance(self, *, employee_id: int, company_id: int) -> int:
        points = self._wallets.get_points(int(employee_id), company_id=int(company_id))
        if points is None:
            raise NotFoundError("Wallet not found")
        return points

    def _move_points(self, *, employee_id: int, company_id: int, compute) -> tuple[int, int]:
        return compare_and_swap(
            read=lambda: self.balance(employee_id=employee_id, company_id=company_id),
            compute=compute,
            write=lambda expected, value: self._wallets.compare_and_set_points(
                employee_id=employee_id, company_id=company_id, expected=expected, new_value=value
            ),
            what="Wallet balance",
        )

    def list_orders(self, *, company_id: int, status: Optional[OrderStatus] = None) -> Sequence[MarketplaceOrder]:
        return self._market.list_orders(int(company_id), status=status)

    def purchase(self, *, employee_id: int, company_id: int, item_id: int) -> MarketplaceOrder:
        item = self._market.get_item(int(item_id), company_id=int(company_id))
        if not item or not item.is_active:
            raise NotFoundError("Item not found")

        if not self._market.reserve_stock(item.item_id, company_id=item.company_id):
            raise ConflictError("Item is out of stock")
        try:
            self._move_points(
                employee_id=int(employee_id),
                company_id=item.company_id,
                compute=lambda balance: debit(balance, item.points_price),
            )
        except Exception:
            self._market.release_stock(item.item_id, company_id=item.company_id)
            raise

        status = purchase_status(item)
        order_id = self._market.create_order(
            company_id=item.company_id,
            employee_id=int(employee_id),
            item_id=item.item_id,
            points_spent=item.points_price,
            status=status,
        )
        self._wallets.add_history(
            PointsEvent(
                employee_id=int(employee_id),
                company_id=item.company_id,
                points=-item.points_price,
                event_type=EVENT_PURCHASE,
                reference_id=order_id,
                description=f"Purchased {item.name}",
            )
        )
        logger.info("marketplace_purchase", extra={"order_id": order_id, "employee_id": employee_id, "points": item.points_price})
        return MarketplaceOrder(
            order_id=order_id,
            company_id=item.company_id,
            employee_id=int(employee_id),
            item_id=item.item_id,
            points_spent=item.points_price,
            status=status,
        )

    def _transition(self, order: MarketplaceOrder, status: OrderStatus, **fields) -> None:
        check_transition(order.status, status)
        if not self._market.set_order_status(
            order_id=order.order_id,
            company_id=order.company_id,
            expected=order.status,
            status=status,
            **fields,
        ):
            raise ConflictError("Order was changed concurrently, please retry")

    def approve(self, *, order_id: int, company_id: int, reviewer_id: Optional[int] = None, reviewer_name: Optional[str] = None) -> OrderStatus:
        order = self._order(order_id, company_id)
        self._transition(order, OrderStatus.APPROVED, reviewed_by=reviewer_id, reviewed_by_name=reviewer_name)
        return OrderStatus.APPROVED

    def reject(
        self,
        *,
        order_id: int,
        company_id: int,
        reason: str,
        reviewer_id: Optional[int] = None,
        reviewer_name: Optional[str] = None,
    ) -> int:
        """Reject and refund ``points_spent``; returns the new wallet balance."""

        if not reason or not reason.strip():
            raise ValidationError("A rejection reason is required")
        order = self._order(order_id, company_id)
        self._transition(
            order,
            OrderStatus.REJECTED,
            reviewed_by=reviewer_id,
            reviewed_by_name=reviewer_name,
            rejection_reason=reason.strip(),
        )
        try:
            _, new_balance = self._move_points(
                employee_id=order.employee_id,
                company_id=order.company_id,
                compute=lambda balance: refund(balance, order.points_spent),
            )
        except Exception:
            # The order only counts as rejected once its points are back.
            self._market.set_order_status(
                order_id=order.order_id,
                company_id=order.company_id,
                expected=OrderStatus.REJECTED,
                status=order.status,
                reviewed_by=order.reviewed_by,
                reviewed_by_name=order.reviewed_by_name,
                rejection_reason=order.rejection_reason,
            )
            logger.warning("marketplace_reject_rolled_back", extra={"order_id": order.order_id})
            raise
        self._market.release_stock(order.item_id, company_id=order.company_id)
        self._wallets.add_history(
            PointsEvent(
                employee_id=order.employee_id,
                company_id=order.company_id,
                points=order.points_spent,
                event_type=EVENT_REFUND,
                reference_id=order.order_id,
                description=f"Refund: {reason.strip()}",
                added_by=reviewer_id,
                added_by_name=reviewer_name,
            )
        )
        logger.info("marketplace_refund", extra={"order_id": order.order_id, "points": order.points_spent})
        return new_balance

    def consume(self, *, order_id: int, company_id: int) -> OrderStatus:
        order = self._order(order_id, company_id)
        self._transition(order, OrderStatus.CONSUMED)
        return OrderStatus.CONSUMED
