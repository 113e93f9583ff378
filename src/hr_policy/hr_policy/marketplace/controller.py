from __future__ import annotations

from flask import Flask, jsonify, request

from ..audit.model import snapshot
from ..common.http import current_caller, json_body, parse_int, require_field, require_manager
from ..container import Container
from ..core.enums import OrderStatus
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/marketplace/wallet", methods=["GET"], endpoint="api_marketplace_wallet")
    def wallet():
        caller = current_caller()
        points = container.marketplace_service.balance(employee_id=caller.user_id, company_id=caller.company_id)
        return jsonify({"points": points})

    @app.route("/api/marketplace/orders", methods=["POST"], endpoint="api_marketplace_purchase")
    def purchase():
        caller = current_caller()
        data = json_body()
        order = container.marketplace_service.purchase(
            employee_id=caller.user_id,
            company_id=caller.company_id,
            item_id=parse_int(require_field(data, "item_id"), "item_id"),
        )
        return jsonify(snapshot(order)), 201

    @app.route("/api/marketplace/orders", methods=["GET"], endpoint="api_marketplace_orders")
    def list_orders():
        caller = require_manager(current_caller(), "manage_marketplace")
        status = request.args.get("status")
        try:
            wanted = OrderStatus(status) if status else None
        except ValueError as exc:
            raise ValidationError(f"Unknown order status: {status}") from exc
        rows = container.marketplace_service.list_orders(company_id=caller.company_id, status=wanted)
        return jsonify([snapshot(o) for o in rows])

    @app.route("/api/marketplace/orders/<int:order_id>/approve", methods=["POST"], endpoint="api_marketplace_approve")
    def approve(order_id: int):
        caller = require_manager(current_caller(), "manage_marketplace")
        status = container.marketplace_service.approve(
            order_id=order_id,
            company_id=caller.company_id,
            reviewer_id=caller.user_id,
            reviewer_name=json_body().get("reviewer_name"),
        )
        return jsonify({"order_id": order_id, "status": status.value})

    @app.route("/api/marketplace/orders/<int:order_id>/reject", methods=["POST"], endpoint="api_marketplace_reject")
    def reject(order_id: int):
        caller = require_manager(current_caller(), "manage_marketplace")
        data = json_body()
        balance = container.marketplace_service.reject(
            order_id=order_id,
            company_id=caller.company_id,
            reason=require_field(data, "reason"),
            reviewer_id=caller.user_id,
            reviewer_name=data.get("reviewer_name"),
        )
        return jsonify({"order_id": order_id, "status": OrderStatus.REJECTED.value, "wallet_balance": balance})

    @app.route("/api/marketplace/orders/<int:order_id>/consume", methods=["POST"], endpoint="api_marketplace_consume")
    def consume(order_id: int):
        caller = require_manager(current_caller(), "manage_marketplace")
        status = container.marketplace_service.consume(order_id=order_id, company_id=caller.company_id)
        return jsonify({"order_id": order_id, "status": status.value})
