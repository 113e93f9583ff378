from __future__ import annotations

from flask import Flask, jsonify, request

from .model import snapshot
from ..common.http import current_caller, json_body, parse_int, require_admin, require_field
from ..container import Container
from ..core.enums import EntityKind
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/records/<kind>/<record_id>", methods=["DELETE"], endpoint="api_records_delete")
    def delete_record(kind: str, record_id: str):
        caller = require_admin(current_caller())
        try:
            entity = EntityKind(kind)
        except ValueError as exc:
            raise ValidationError(f"Unknown record kind: {kind}") from exc
        deleted_id = container.soft_delete_service.delete(
            kind=entity,
            record_id=record_id,
            company_id=caller.company_id,
            deleted_by=caller.user_id,
            description=json_body().get("description"),
        )
        return jsonify({"deleted_id": deleted_id})

    @app.route("/api/records/deleted", methods=["GET"], endpoint="api_records_deleted")
    def list_deleted():
        caller = require_admin(current_caller())
        limit = parse_int(request.args.get("limit", 200), "limit")
        rows = container.soft_delete_service.list_deleted(company_id=caller.company_id, limit=limit)
        return jsonify([snapshot(r) for r in rows])

    @app.route("/api/records/restore", methods=["POST"], endpoint="api_records_restore")
    def restore():
        caller = require_admin(current_caller())
        deleted_id = parse_int(require_field(json_body(), "deleted_id"), "deleted_id")
        record = container.soft_delete_service.restore(
            deleted_id=deleted_id, company_id=caller.company_id, restored_by=caller.user_id
        )
        return jsonify({"deleted_id": record.deleted_id, "table": record.table_name.value, "record_id": record.record_id})

    @app.route("/api/records/audit", methods=["GET"], endpoint="api_records_audit")
    def audit_log():
        caller = require_admin(current_caller())
        limit = parse_int(request.args.get("limit", 200), "limit")
        rows = container.audit_repo.list_for_company(caller.company_id, limit=limit)
        return jsonify([snapshot(r) for r in rows])
