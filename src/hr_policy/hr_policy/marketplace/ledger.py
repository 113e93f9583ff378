from __future__ import annotations

from ..core.enums import OrderStatus
from ..core.exceptions import ConflictError, InsufficientBalanceError, ValidationError
from .model import MarketplaceItem

EVENT_PURCHASE = "purchase"
EVENT_REFUND = "order_refund"

_ALLOWED = {
    OrderStatus.PENDING: frozenset({OrderStatus.APPROVED, OrderStatus.REJECTED}),
    OrderStatus.APPROVED: frozenset({OrderStatus.CONSUMED, OrderStatus.REJECTED}),
    OrderStatus.REJECTED: frozenset(),
    OrderStatus.CONSUMED: frozenset(),
}


def purchase_status(item: MarketplaceItem) -> OrderStatus:
    return OrderStatus.PENDING if item.approval_required else OrderStatus.APPROVED


def check_transition(old: OrderStatus, new: OrderStatus) -> None:
    if new not in _ALLOWED[OrderStatus(old)]:
        raise ConflictError(f"Order cannot move from {OrderStatus(old).value} to {OrderStatus(new).value}")


def debit(balance: int, price: int) -> int:
    if price < 0:
        raise ValidationError("Price cannot be negative")
    if balance < price:
        raise InsufficientBalanceError(f"Not enough points: {balance} available, {price} needed")
    return balance - price


def refund(balance: int, points: int) -> int:
    return balance + int(points)
