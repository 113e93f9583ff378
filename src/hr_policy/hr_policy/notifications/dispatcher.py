from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    kind: str
    company_id: int
    recipient_employee_id: Optional[int]
    message: str
    data: dict = field(default_factory=dict)


class Notifier(Protocol):
    def send(self, notification: Notification) -> None:
        raise NotImplementedError


class LoggingNotifier:
    """Default notifier: writes the message to the log (no delivery channel configured)."""

    def send(self, notification: Notification) -> None:
        logger.info(
            "notification",
            extra={
                "kind": notification.kind,
                "company_id": notification.company_id,
                "recipient": notification.recipient_employee_id,
                "notification_message": notification.message,
            },
        )


def notify_safely(notifier: Notifier, notification: Notification) -> bool:
    """Fire-and-forget: a delivery failure is logged and never fails the caller."""

    try:
        notifier.send(notification)
        return True
    except Exception:
        logger.exception(
            "notification_failed",
            extra={"kind": notification.kind, "recipient": notification.recipient_employee_id},
        )
        return False
