"""
平台配置应用服务 - 带读缓存的键值配置读取
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, List, Optional

from application.dto import PlatformSettingDTO
from application.ports.cache import CachePort
from core.config import settings
from core.logging_config import get_logger
from domain.audit.entity import AuditAction, AuditLog
from domain.common.exceptions import DomainValidationException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.platform_setting.entity import (
    COMMISSION_PERCENTAGE,
    CURRENCY,
    MINIMUM_WITHDRAWAL,
    PlatformSetting,
)


logger = get_logger(__name__)


class PlatformSettingsService:
    """
    平台配置读取

    读取时先查缓存，未命中再查库并写入缓存（TTL 默认 60 秒）。
    缓存对象由组合根注入：配置了 Redis 时多实例共享，否则为进程内缓存。
    不存在的键不缓存，调用方使用默认值。
    """

    CACHE_PREFIX = "platform_setting:"

    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        cache: CachePort,
        ttl_seconds: Optional[int] = None,
    ):
        self._uow_factory = uow_factory
        self._cache = cache
        self._ttl = settings.ledger.settings_cache_ttl if ttl_seconds is None else ttl_seconds

    def _cache_key(self, key: str) -> str:
        return f"{self.CACHE_PREFIX}{key}"

    async def _cache_get(self, key: str) -> Optional[str]:
        try:
            return await self._cache.get(self._cache_key(key))
        except Exception as exc:  # 缓存不可用时直接回源
            logger.warning("settings_cache_unavailable", key=key, error=str(exc))
            return None

    async def _cache_set(self, key: str, value: str) -> None:
        try:
            await self._cache.set(self._cache_key(key), value, ttl=self._ttl)
        except Exception as exc:
            logger.warning("settings_cache_unavailable", key=key, error=str(exc))

    async def get_setting(self, key: str) -> Optional[str]:
        cached = await self._cache_get(key)
        if cached is not None:
            return cached

        async with self._uow_factory(readonly=True) as uow:
            setting = await uow.platform_setting_repository.get(key)
        if setting is None:
            return None

        await self._cache_set(key, setting.value)
        return setting.value

    async def get_decimal(self, key: str, default: Decimal) -> Decimal:
        value = await self.get_setting(key)
        if value is None or not value.strip():
            return Decimal(default)
        try:
            return Decimal(value.strip())
        except InvalidOperation:
            logger.warning("setting_not_numeric", key=key, value=value)
            return Decimal(default)

    async def get_commission_rate(self) -> Decimal:
        return await self.get_decimal(COMMISSION_PERCENTAGE, settings.ledger.default_commission_percentage)

    async def get_minimum_withdrawal(self) -> Decimal:
        return await self.get_decimal(MINIMUM_WITHDRAWAL, settings.ledger.default_minimum_withdrawal)

    async def get_currency(self) -> str:
        return (await self.get_setting(CURRENCY)) or settings.ledger.default_currency

    async def get_all(self) -> Dict[str, str]:
        """全部配置（直接读库，不走缓存）"""
        async with self._uow_factory(readonly=True) as uow:
            items: List[PlatformSetting] = await uow.platform_setting_repository.list_all()
        return {item.key: item.value for item in items}

    async def set_setting(self, key: str, value: str, updated_by: Optional[int]) -> PlatformSettingDTO:
        """写入配置并记录审计，提交后使缓存失效"""
        value = self._validate(key, value)
        async with self._uow_factory() as uow:
            previous = await uow.platform_setting_repository.get(key)
            saved = await uow.platform_setting_repository.upsert(
                PlatformSetting(key=key, value=value, updated_by=updated_by)
            )
            await uow.audit_log_repository.add(AuditLog(
                id=None,
                actor_id=updated_by,
                action=AuditAction.SETTING_UPDATED,
                entity_type="platform_setting",
                entity_id=key,
                changes={"old": previous.value if previous else None, "new": value},
            ))

        try:
            await self._cache.delete(self._cache_key(key))
        except Exception as exc:
            logger.warning("settings_cache_unavailable", key=key, error=str(exc))
        logger.info("platform_setting_updated", key=key, updated_by=updated_by)
        return PlatformSettingDTO.model_validate(saved)

    async def clear_cache(self) -> None:
        """清空配置缓存（多实例共享 Redis 时对所有实例生效）"""
        await self._cache.clear()
        logger.info("settings_cache_cleared")

    @staticmethod
    def _validate(key: str, value: str) -> str:
        value = (value or "").strip()
        if key in (COMMISSION_PERCENTAGE, MINIMUM_WITHDRAWAL):
            try:
                number = Decimal(value)
            except InvalidOperation:
                raise DomainValidationException(f"{key} must be a number", field="value")
            if not number.is_finite() or number < 0:
                raise DomainValidationException(f"{key} must be a non-negative number", field="value")
            if key == COMMISSION_PERCENTAGE and number > 100:
                raise DomainValidationException("commission_percentage must be between 0 and 100", field="value")
        return value
