"""
Maps committed domain events to user notifications.

Only called after the unit of work has committed; every message goes through
``safe_notify`` so a broken notifier can never affect the ledger.
"""
from __future__ import annotations

from typing import Any, Iterable, List, Tuple

from application.ports.notification import NotificationPort, safe_notify
from domain.order.events import OrderPaymentConfirmed, OrderPaymentFailed
from domain.withdrawal.events import WithdrawalCompleted, WithdrawalRequested, WithdrawalReviewed


ORDER_CONFIRMED = "order.confirmed"
SALE_COMPLETED = "sale.completed"
PAYMENT_FAILED = "payment.failed"
WITHDRAWAL_REQUESTED = "withdrawal.requested"
WITHDRAWAL_REVIEWED = "withdrawal.reviewed"
WITHDRAWAL_COMPLETED = "withdrawal.completed"

Notification = Tuple[str, int, dict]


def notifications_for(event: Any) -> List[Notification]:
    if isinstance(event, OrderPaymentConfirmed):
        data = {
            "order_id": event.order_id,
            "order_number": event.order_number,
            "project_id": event.project_id,
            "amount": event.project_price,
        }
        return [
            (ORDER_CONFIRMED, event.buyer_id, data),
            (SALE_COMPLETED, event.seller_id, {**data, "earning": event.seller_earning}),
        ]
    if isinstance(event, OrderPaymentFailed):
        return [(PAYMENT_FAILED, event.buyer_id, {
            "order_id": event.order_id,
            "order_number": event.order_number,
            "reason": event.reason,
        })]

    if isinstance(event, (WithdrawalRequested, WithdrawalReviewed, WithdrawalCompleted)):
        data = {
            "withdrawal_id": event.withdrawal_id,
            "withdrawal_number": event.withdrawal_number,
            "amount": event.amount,
        }
        if isinstance(event, WithdrawalRequested):
            return [(WITHDRAWAL_REQUESTED, event.seller_id, data)]
        if isinstance(event, WithdrawalReviewed):
            return [(WITHDRAWAL_REVIEWED, event.seller_id, {**data, "status": event.status, "notes": event.notes})]
        return [(WITHDRAWAL_COMPLETED, event.seller_id, {**data, "transaction_id": event.transaction_id})]

    return []


async def publish_events(notifier: NotificationPort | None, events: Iterable[Any]) -> int:
    """Send the notifications for committed events; returns how many were handed off."""
    sent = 0
    for event in events:
        for name, recipient_id, data in notifications_for(event):
            if await safe_notify(notifier, name, recipient_id, data):
                sent += 1
    return sent
