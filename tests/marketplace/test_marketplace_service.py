import pytest

from src.hr_policy.hr_policy.core.enums import OrderStatus
from src.hr_policy.hr_policy.core.exceptions import ConflictError, InsufficientBalanceError, NotFoundError, ValidationError
from src.hr_policy.hr_policy.marketplace.ledger import EVENT_PURCHASE, EVENT_REFUND, check_transition, debit
from src.hr_policy.hr_policy.marketplace.model import MarketplaceItem


def _setup(world, *, points=500, price=500, approval_required=True, stock=None):
    world.add_employee(1)
    world.wallets.points[(1, 1)] = points
    world.market.items[10] = MarketplaceItem(
        item_id=10,
        company_id=1,
        name="Day off voucher",
        points_price=price,
        approval_required=approval_required,
        stock_quantity=stock,
    )
    return world.marketplace_service


def test_purchase_then_reject_refunds_in_full(world):
    service = _setup(world)

    order = service.purchase(employee_id=1, company_id=1, item_id=10)
    assert order.status == OrderStatus.PENDING
    assert service.balance(employee_id=1, company_id=1) == 0

    balance = service.reject(order_id=order.order_id, company_id=1, reason=" out of budget ", reviewer_id=2)

    assert balance == 500
    assert world.market.orders[order.order_id].status == OrderStatus.REJECTED
    assert world.market.orders[order.order_id].rejection_reason == "out of budget"
    assert [(e.event_type, e.points) for e in world.wallets.history] == [(EVENT_PURCHASE, -500), (EVENT_REFUND, 500)]


def test_item_without_approval_is_approved_at_purchase(world):
    service = _setup(world, approval_required=False)
    order = service.purchase(employee_id=1, company_id=1, item_id=10)

    assert order.status == OrderStatus.APPROVED
    assert service.consume(order_id=order.order_id, company_id=1) == OrderStatus.CONSUMED


def test_consuming_a_pending_order_conflicts(world):
    service = _setup(world)
    order = service.purchase(employee_id=1, company_id=1, item_id=10)

    with pytest.raises(ConflictError):
        service.consume(order_id=order.order_id, company_id=1)


def test_order_lifecycle_and_terminal_states(world):
    service = _setup(world)
    order = service.purchase(employee_id=1, company_id=1, item_id=10)

    assert service.approve(order_id=order.order_id, company_id=1, reviewer_id=2) == OrderStatus.APPROVED
    assert service.consume(order_id=order.order_id, company_id=1) == OrderStatus.CONSUMED

    with pytest.raises(ConflictError):
        service.consume(order_id=order.order_id, company_id=1)
    with pytest.raises(ConflictError):
        service.reject(order_id=order.order_id, company_id=1, reason="too late")
    assert service.balance(employee_id=1, company_id=1) == 0


def test_not_enough_points_keeps_stock(world):
    service = _setup(world, points=100, stock=3)

    with pytest.raises(InsufficientBalanceError):
        service.purchase(employee_id=1, company_id=1, item_id=10)

    assert world.market.items[10].stock_quantity == 3
    assert world.market.orders == {}
    assert service.balance(employee_id=1, company_id=1) == 100


def test_sold_out_item_is_a_conflict(world):
    service = _setup(world, stock=0)
    with pytest.raises(ConflictError):
        service.purchase(employee_id=1, company_id=1, item_id=10)


def test_rejection_needs_a_reason_and_returns_stock(world):
    service = _setup(world, stock=1)
    order = service.purchase(employee_id=1, company_id=1, item_id=10)
    assert world.market.items[10].stock_quantity == 0

    with pytest.raises(ValidationError):
        service.reject(order_id=order.order_id, company_id=1, reason="  ")

    service.reject(order_id=order.order_id, company_id=1, reason="discontinued")
    assert world.market.items[10].stock_quantity == 1


def test_unknown_item_order_or_wallet(world):
    service = _setup(world)
    with pytest.raises(NotFoundError):
        service.purchase(employee_id=1, company_id=1, item_id=99)
    with pytest.raises(NotFoundError):
        service.consume(order_id=99, company_id=1)
    with pytest.raises(NotFoundError):
        service.balance(employee_id=42, company_id=1)


def test_ledger_rules():
    assert debit(500, 500) == 0
    with pytest.raises(InsufficientBalanceError):
        debit(499, 500)
    with pytest.raises(ValidationError):
        debit(10, -1)

    check_transition(OrderStatus.PENDING, OrderStatus.APPROVED)
    check_transition(OrderStatus.APPROVED, OrderStatus.REJECTED)
    with pytest.raises(ConflictError):
        check_transition(OrderStatus.REJECTED, OrderStatus.APPROVED)


def test_lost_refund_race_keeps_order_open(world):
    service = _setup(world)
    order = service.purchase(employee_id=1, company_id=1, item_id=10)

    world.wallets.fail_next_writes = 2
    with pytest.raises(ConflictError):
        service.reject(order_id=order.order_id, company_id=1, reason="duplicate")

    assert world.market.orders[order.order_id].status == OrderStatus.PENDING
    assert service.balance(employee_id=1, company_id=1) == 0

    assert service.reject(order_id=order.order_id, company_id=1, reason="duplicate") == 500
    assert world.market.orders[order.order_id].status == OrderStatus.REJECTED
