"""
Cache port used by application services for read-through caching.

Implemented by infrastructure.cache.RedisCache and InMemoryCache.
"""
from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class CachePort(Protocol):
    async def get(self, key: str) -> Any: ...

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None: ...

    async def delete(self, key: str) -> bool: ...

    async def clear(self) -> None: ...
