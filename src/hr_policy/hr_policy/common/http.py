from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Optional

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..assistant.tools import Caller
from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS = (
    (ValidationError, 400, "validation_error"),
    (AuthenticationError, 401, "authentication_required"),
    (AuthorizationError, 403, "forbidden"),
    (NotFoundError, 404, "not_found"),
    (InsufficientBalanceError, 409, "insufficient_balance"),
    (ConflictError, 409, "conflict"),
)


def error_response(code: str, message: str, status: int):
    return jsonify({"error": {"code": code, "message": message}}), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def _domain_error(exc: DomainError):
        for exc_type, status, code in _STATUS:
            if isinstance(exc, exc_type):
                return error_response(code, str(exc), status)
        return error_response("domain_error", str(exc), 400)

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        return error_response(exc.name.lower().replace(" ", "_"), exc.description or exc.name, exc.code or 500)

    @app.errorhandler(Exception)
    def _unexpected(exc: Exception):
        logger.exception("unhandled_error", extra={"path": request.path, "method": request.method})
        return error_response("internal_error", "Internal server error", 500)


def current_caller() -> Caller:
    """Caller identity from the session written by the auth layer."""

    if "user_id" not in session or "company_id" not in session:
        raise AuthenticationError("Login required")
    try:
        role = Role(session.get("role", Role.EMPLOYEE.value))
    except ValueError as exc:
        raise AuthenticationError("Invalid session role") from exc
    return Caller(
        user_id=int(session["user_id"]),
        company_id=int(session["company_id"]),
        role=role,
        permissions=frozenset(session.get("permissions") or ()),
    )


def require_manager(caller: Caller, permission: Optional[str] = None) -> Caller:
    if caller.role == Role.ADMIN:
        return caller
    if caller.role == Role.MANAGER and (permission is None or permission in caller.permissions):
        return caller
    raise AuthorizationError("Manager access required")


def require_admin(caller: Caller) -> Caller:
    if caller.role != Role.ADMIN:
        raise AuthorizationError("Admin access required")
    return caller


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("JSON object expected")
    return data


def require_field(data: dict, name: str) -> Any:
    value = data.get(name)
    if value is None or value == "":
        raise ValidationError(f"{name} is required")
    return value


def parse_date_value(value: Optional[str], name: str, default: Optional[date] = None) -> date:
    if not value:
        if default is None:
            raise ValidationError(f"{name} is required")
        return default
    try:
        return datetime.strptime(str(value), "%Y-%m-%d").date()
    except ValueError as exc:
        raise ValidationError(f"{name} must be YYYY-MM-DD") from exc


def parse_datetime_value(value: Optional[str], name: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError as exc:
        raise ValidationError(f"{name} must be an ISO datetime") from exc


def parse_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{name} must be an integer") from exc


def parse_float(value: Any, name: str) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{name} must be a number") from exc
