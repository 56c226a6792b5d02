"""Notification adapters implementing application.ports.notification."""
from __future__ import annotations

import asyncio
from typing import Any, Mapping, Optional

from application.ports.notification import NotificationPort
from core.config import settings
from core.logging_config import get_logger


logger = get_logger(__name__)


class LoggingNotifier(NotificationPort):
    """Records notifications in the log only (no broker configured)."""

    async def notify(self, event: str, recipient_id: int, data: Mapping[str, Any]) -> None:
        logger.info("notification_logged", notification_event=event, recipient_id=recipient_id, data=dict(data))


class CeleryNotifier(NotificationPort):
    """Queues a Celery task per notification; delivery happens in the worker."""

    def __init__(self, dispatcher=None) -> None:
        if dispatcher is None:
            from infrastructure.tasks import TaskDispatcher
            dispatcher = TaskDispatcher()
        self._dispatcher = dispatcher

    async def notify(self, event: str, recipient_id: int, data: Mapping[str, Any]) -> None:
        # send_task talks to the broker synchronously
        await asyncio.to_thread(self._dispatcher.send_notification, event, recipient_id, dict(data))
        logger.info("notification_queued", notification_event=event, recipient_id=recipient_id)


def build_notifier(backend: Optional[str] = None) -> NotificationPort:
    name = (backend or settings.notifications.backend).lower()
    if name == "celery":
        return CeleryNotifier()
    if name != "log":
        logger.warning("notification_backend_unknown", backend=name)
    return LoggingNotifier()
