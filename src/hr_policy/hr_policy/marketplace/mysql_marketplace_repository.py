from __future__ import annotations

from typing import Optional, Sequence

from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import OrderStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, retry_once
from .model import MarketplaceItem, MarketplaceOrder, PointsEvent
from .repository import MarketplaceRepository, WalletRepository

_ORDER_COLUMNS = (
    "order_id, company_id, employee_id, item_id, points_spent, status, rejection_reason, reviewed_by, "
    "reviewed_by_name, reviewed_at, consumed_at, created_at"
)


class MySQLMarketplaceRepository(MarketplaceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @retry_once
    def get_item(self, item_id: int, *, company_id: int) -> Optional[MarketplaceItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT item_id, company_id, name, points_price, approval_required, is_active, stock_quantity, description
                FROM marketplace_items
                WHERE item_id=%s AND company_id=%s
                """,
                (int(item_id), int(company_id)),
            )
            r = fetchone(cur)
            if not r:
                return None
            return MarketplaceItem(
                item_id=int(r["item_id"]),
                company_id=int(r["company_id"]),
                name=r["name"],
                points_price=int(r["points_price"]),
                approval_required=bool(r.get("approval_required")),
                is_active=bool(r.get("is_active", True)),
                stock_quantity=r.get("stock_quantity"),
                description=r.get("description"),
            )

    def reserve_stock(self, item_id: int, *, company_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE marketplace_items
                SET stock_quantity = CASE WHEN stock_quantity IS NULL THEN NULL ELSE stock_quantity - 1 END
                WHERE item_id=%s AND company_id=%s AND (stock_quantity IS NULL OR stock_quantity > 0)
                """,
                (int(item_id), int(company_id)),
            )
            return cur.rowcount == 1

    def release_stock(self, item_id: int, *, company_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE marketplace_items SET stock_quantity = stock_quantity + 1
                WHERE item_id=%s AND company_id=%s AND stock_quantity IS NOT NULL
                """,
                (int(item_id), int(company_id)),
            )

    def create_order(self, *, company_id: int, employee_id: int, item_id: int, points_spent: int, status: OrderStatus) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO marketplace_orders(company_id, employee_id, item_id, points_spent, status)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(company_id), int(employee_id), int(item_id), int(points_spent), status.value),
            )
            return int(cur.lastrowid)

    @staticmethod
    def _to_order(r: dict) -> MarketplaceOrder:
        return MarketplaceOrder(
            order_id=int(r["order_id"]),
            company_id=int(r["company_id"]),
            employee_id=int(r["employee_id"]),
            item_id=int(r["item_id"]),
            points_spent=int(r["points_spent"]),
            status=OrderStatus(r["status"]),
            rejection_reason=r.get("rejection_reason"),
            reviewed_by=r.get("reviewed_by"),
            reviewed_by_name=r.get("reviewed_by_name"),
            reviewed_at=r.get("reviewed_at"),
            consumed_at=r.get("consumed_at"),
            created_at=r.get("created_at"),
        )

    @retry_once
    def get_order(self, order_id: int, *, company_id: int) -> Optional[MarketplaceOrder]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ORDER_COLUMNS} FROM marketplace_orders WHERE order_id=%s AND company_id=%s",
                (int(order_id), int(company_id)),
            )
            r = fetchone(cur)
            return self._to_order(r) if r else None

    @retry_once
    def list_orders(self, company_id: int, *, status: Optional[OrderStatus] = None, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[MarketplaceOrder]:
        sql = f"SELECT {_ORDER_COLUMNS} FROM marketplace_orders WHERE company_id=%s"
        params: list = [int(company_id)]
        if status is not None:
            sql += " AND status=%s"
            params.append(OrderStatus(status).value)
        sql += " ORDER BY created_at DESC LIMIT %s"
        params.append(int(limit))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [self._to_order(r) for r in fetchall(cur)]

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
        if status == OrderStatus.CONSUMED:
            sql = "UPDATE marketplace_orders SET status=%s, consumed_at=NOW() WHERE order_id=%s AND company_id=%s AND status=%s"
            params = (status.value, int(order_id), int(company_id), expected.value)
        else:
            sql = """
                UPDATE marketplace_orders
                SET status=%s, reviewed_by=%s, reviewed_by_name=%s, rejection_reason=%s, reviewed_at=NOW()
                WHERE order_id=%s AND company_id=%s AND status=%s
            """
            params = (status.value, reviewed_by, reviewed_by_name, rejection_reason, int(order_id), int(company_id), expected.value)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return cur.rowcount == 1


class MySQLWalletRepository(WalletRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @retry_once
    def get_points(self, employee_id: int, *, company_id: int) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT total_points FROM employee_wallets WHERE employee_id=%s AND company_id=%s",
                (int(employee_id), int(company_id)),
            )
            r = fetchone(cur)
            return int(r["total_points"] or 0) if r else None

    def compare_and_set_points(self, *, employee_id: int, company_id: int, expected: int, new_value: int) -> bool:
        spent = max(int(expected) - int(new_value), 0)
        refunded = max(int(new_value) - int(expected), 0)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE employee_wallets
                SET total_points=%s, spent_points=GREATEST(spent_points + %s - %s, 0)
                WHERE employee_id=%s AND company_id=%s AND total_points=%s
                """,
                (int(new_value), spent, refunded, int(employee_id), int(company_id), int(expected)),
            )
            return cur.rowcount == 1

    def add_history(self, event: PointsEvent) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO points_history(employee_id, company_id, points, event_type, source, reference_id,
                                           description, added_by, added_by_name)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(event.employee_id),
                    int(event.company_id),
                    int(event.points),
                    event.event_type,
                    event.source,
                    event.reference_id,
                    event.description,
                    event.added_by,
                    event.added_by_name,
                ),
            )
            return int(cur.lastrowid)
