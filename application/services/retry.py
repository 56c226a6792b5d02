"""
乐观锁冲突重试

每次重试都会重新打开 Unit of Work（新事务），重新加锁并重新检查状态，
因此重试是安全的；超过次数后原样抛出 ConcurrentUpdateException。
"""
from __future__ import annotations

from typing import Awaitable, Callable, TypeVar

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from core.logging_config import get_logger
from domain.common.exceptions import ConcurrentUpdateException


logger = get_logger(__name__)

T = TypeVar("T")

MAX_ATTEMPTS = 3


def _log_retry(retry_state) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning("concurrent_update_retry", attempt=retry_state.attempt_number, error=str(exc))


async def retry_on_conflict(fn: Callable[[], Awaitable[T]], *, attempts: int = MAX_ATTEMPTS) -> T:
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=0.5),
        retry=retry_if_exception_type(ConcurrentUpdateException),
        before_sleep=_log_retry,
        reraise=True,
    ):
        with attempt:
            return await fn()
    raise RuntimeError("unreachable")  # pragma: no cover
