"""
Notification port (application/ports).

The ledger never depends on notification delivery: services hand messages to
``safe_notify`` after their unit of work has committed, and any failure is
logged and dropped.
"""
from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from core.logging_config import get_logger


logger = get_logger(__name__)


@runtime_checkable
class NotificationPort(Protocol):
    async def notify(self, event: str, recipient_id: int, data: Mapping[str, Any]) -> None: ...


async def safe_notify(
    notifier: NotificationPort | None,
    event: str,
    recipient_id: int,
    data: Mapping[str, Any],
) -> bool:
    """Deliver one notification, never raising. Returns True when handed off."""
    if notifier is None:
        return False
    try:
        await notifier.notify(event, recipient_id, dict(data))
        return True
    except Exception as exc:  # 通知失败不影响已提交的账本
        logger.warning(
            "notification_failed",
            notification_event=event,
            recipient_id=recipient_id,
            error=str(exc),
            exc_info=True,
        )
        return False
