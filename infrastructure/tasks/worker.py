"""Notification worker entry point.

Equivalent to ``celery -A infrastructure.tasks worker -Q default,notifications``;
handy for Procfile-style runners.
"""
from __future__ import annotations

import os

from .config.celery import celery_app

WORKER_QUEUES = "default,notifications"


def main() -> None:
    celery_app.worker_main(argv=[
        "worker",
        "--hostname=ledger-worker@%h",
        f"--queues={os.getenv('CELERY_WORKER_QUEUES', WORKER_QUEUES)}",
        f"--concurrency={os.getenv('CELERY_WORKER_CONCURRENCY', '2')}",
        "--loglevel=INFO",
    ])


if __name__ == "__main__":
    main()
