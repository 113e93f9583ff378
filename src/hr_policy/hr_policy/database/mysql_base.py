from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from datetime import time, timedelta
from decimal import Decimal
from functools import wraps
from typing import Any, Dict, List, Optional

from mysql.connector import errors as mysql_errors

from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (mysql_errors.OperationalError, mysql_errors.InterfaceError)


def _connect(conn_factory: DatabaseConnection):
    """Open a connection, retrying once. No statement has run at this point."""

    try:
        return conn_factory.connect()
    except TRANSIENT_ERRORS as exc:
        logger.warning("db_connect_retry", extra={"error": str(exc)})
        return conn_factory.connect()


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = _connect(conn_factory)
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def retry_once(func):
    """Retry a read once on a transient connection error, then surface it.

    Only for SELECTs: a write whose commit reached the server before the
    connection dropped would be applied twice.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except TRANSIENT_ERRORS as exc:
            logger.warning("db_retry", extra={"operation": func.__qualname__, "error": str(exc)})
            return func(*args, **kwargs)

    return wrapper


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def as_decimal(value: Any, default: str = "0") -> Decimal:
    if value is None:
        return Decimal(default)
    return Decimal(str(value))


def split_csv(value: Any) -> tuple[str, ...]:
    """Comma separated column (weekend days, allowed IPs) to tuple."""
    if not value:
        return ()
    return tuple(p.strip() for p in str(value).split(",") if p.strip())


def to_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, default=str, ensure_ascii=False)


def from_json(value: Any) -> Optional[dict]:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value)
    return value


def normalize_mysql_time(value: Any) -> Optional[time]:
    """Normalize MySQL TIME values across connector implementations.

    mysql-connector can return TIME as:
    - datetime.time
    - datetime.timedelta
    - string (e.g. '08:30:00')
    """

    if value is None:
        return None

    if isinstance(value, time):
        return value

    if isinstance(value, timedelta):
        total_seconds = int(value.total_seconds()) % 86400
        hours = total_seconds // 3600
        minutes = (total_seconds % 3600) // 60
        seconds = total_seconds % 60
        return time(hour=hours, minute=minutes, second=seconds)

    if isinstance(value, str):
        parts = value.strip().split(":")
        if len(parts) < 2:
            raise ValueError(f"Invalid time string: {value!r}")
        hours = int(parts[0])
        minutes = int(parts[1])
        seconds = int(parts[2]) if len(parts) >= 3 and parts[2] else 0
        return time(hour=hours, minute=minutes, second=seconds)

    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")
