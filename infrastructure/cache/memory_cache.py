"""进程内 TTL 缓存（未配置 Redis 时使用）"""
from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional, Tuple


class InMemoryCache:
    """
    简单的进程内缓存

    与 RedisCache 保持相同的异步接口。过期判断使用单调时钟，
    测试可注入 clock 控制时间。
    """

    def __init__(self, default_ttl: Optional[int] = None, clock: Callable[[], float] = time.monotonic) -> None:
        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, Optional[float]]] = {}

    def _expired(self, expires_at: Optional[float]) -> bool:
        return expires_at is not None and self._clock() >= expires_at

    async def get(self, key: str) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._expired(expires_at):
            self._entries.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        expire = self._default_ttl if ttl is None else ttl
        expires_at = self._clock() + expire if expire and expire > 0 else None
        self._entries[key] = (value, expires_at)

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
