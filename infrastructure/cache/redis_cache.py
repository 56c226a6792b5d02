"""Redis 缓存实现（多实例部署时共享平台配置缓存）"""
from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

from redis import asyncio as aioredis

from core.config import settings


class RedisCache:
    """
    与 InMemoryCache 接口一致的 Redis 缓存

    值以 JSON 保存，Decimal 等非 JSON 类型按字符串写入，读取方负责还原。
    """

    def __init__(self, client: aioredis.Redis, namespace: str = "", default_ttl: Optional[int] = None) -> None:
        self._client = client
        self._prefix = f"{namespace.strip(':')}:" if namespace.strip(":") else ""
        self._default_ttl = settings.redis.default_ttl if default_ttl is None else default_ttl

    def _key(self, key: str) -> str:
        return self._prefix + key

    async def get(self, key: str) -> Any:
        raw = await self._client.get(self._key(key))
        return None if raw is None else json.loads(raw)

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        expire = self._default_ttl if ttl is None else ttl
        # ex=None 表示不过期
        await self._client.set(self._key(key), json.dumps(value, default=str), ex=expire if expire and expire > 0 else None)

    async def delete(self, key: str) -> bool:
        return bool(await self._client.delete(self._key(key)))

    async def clear(self) -> None:
        """删除当前命名空间下的全部键"""
        async for key in self._client.scan_iter(match=self._key("*")):
            await self._client.delete(key)


_client: Optional[aioredis.Redis] = None
_cache: Optional[RedisCache] = None
_init_lock = asyncio.Lock()


async def init_redis_cache(namespace: Optional[str] = None) -> RedisCache:
    """
    初始化进程级 Redis 缓存

    启动时 PING 一次，连接不可用直接抛出，由调用方回退到进程内缓存。
    """
    global _client, _cache

    async with _init_lock:
        if _cache is not None:
            return _cache
        if not settings.redis.url:
            raise RuntimeError("REDIS__URL 未配置，无法初始化Redis缓存")

        client = aioredis.from_url(
            settings.redis.url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=settings.redis.max_connections,
        )
        try:
            await client.ping()
        except Exception:
            await client.aclose()
            raise
        _client = client
        _cache = RedisCache(client, namespace=namespace or settings.redis.namespace)
        return _cache


async def shutdown_redis_cache() -> None:
    """关闭Redis连接"""
    global _client, _cache

    if _client is not None:
        await _client.aclose()
    _client = None
    _cache = None
