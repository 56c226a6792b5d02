"""Small dispatching helpers to decouple Celery from callers."""
from __future__ import annotations

from typing import Any, Dict

from celery.result import AsyncResult


class TaskDispatcher:
    """Internal facade used by infrastructure adapters to schedule tasks."""

    def send_notification(self, event: str, recipient_id: int, data: Dict[str, Any]) -> AsyncResult:
        """
        Queue one notification for delivery.

        Goes through the task's ``apply_async`` so ``task_always_eager`` runs it
        inline in development and tests instead of waiting on a broker.
        """
        # imported here: the task module imports this package for BaseTask
        from ..tasks.notifications import send_notification

        return send_notification.apply_async(
            kwargs={"event": event, "recipient_id": recipient_id, "data": data},
        )
