"""Common base task for Celery jobs"""
from __future__ import annotations

from typing import Any, Dict

from celery import Task
from core.logging_config import get_logger

logger = get_logger(__name__)


def _summarize(kwargs: Dict[str, Any] | None) -> Dict[str, Any]:
    """Keep routing fields only; notification payloads may carry payout data."""
    kwargs = kwargs or {}
    return {key: kwargs[key] for key in ("event", "recipient_id") if key in kwargs}


class BaseTask(Task):
    """Structured logging for task outcomes and retries."""

    def on_failure(self, exc, task_id, args, kwargs, einfo):  # type: ignore[override]
        logger.error(
            "celery_task_failure",
            task_id=task_id,
            task_name=self.name,
            exc=str(exc),
            **_summarize(kwargs),
        )
        super().on_failure(exc, task_id, args, kwargs, einfo)

    def on_retry(self, exc, task_id, args, kwargs, einfo):  # type: ignore[override]
        logger.warning(
            "celery_task_retry",
            task_id=task_id,
            task_name=self.name,
            retries=self.request.retries,
            exc=str(exc),
            **_summarize(kwargs),
        )
        super().on_retry(exc, task_id, args, kwargs, einfo)

    def on_success(self, retval, task_id, args, kwargs):  # type: ignore[override]
        logger.info(
            "celery_task_success",
            task_id=task_id,
            task_name=self.name,
            **_summarize(kwargs),
        )
        super().on_success(retval, task_id, args, kwargs)
