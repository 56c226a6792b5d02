"""Celery application for post-commit side effects (notifications)."""
from __future__ import annotations

import os

from celery import Celery
from kombu import Queue

from core.config import settings
from core.logging_config import get_logger


TASK_PACKAGES = ("infrastructure.tasks.tasks",)
EAGER_ENVIRONMENTS = {"development", "dev", "test", "testing"}

logger = get_logger(__name__)


def _broker_url() -> str | None:
    return settings.redis.url or os.getenv("CELERY_BROKER_URL")


celery_app = Celery("marketplace_ledger", broker=_broker_url(), backend=settings.redis.url or os.getenv("CELERY_RESULT_BACKEND"))
celery_app.conf.update(
    imports=TASK_PACKAGES,
    # payloads carry ids and string amounts only
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    # a lost worker re-delivers the notification rather than dropping it
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    result_expires=3600,
    task_default_queue="default",
    task_default_retry_delay=5,
    task_queues=(Queue("default"), Queue("notifications")),
    task_routes={"notifications.*": {"queue": "notifications"}},
    task_always_eager=(settings.ENVIRONMENT or "production").lower() in EAGER_ENVIRONMENTS,
)
celery_app.autodiscover_tasks(packages=TASK_PACKAGES)


@celery_app.on_after_configure.connect
def _log_configuration(sender, **kwargs):
    logger.info(
        "celery_configured",
        broker=sender.conf.broker_url,
        eager=sender.conf.task_always_eager,
    )
