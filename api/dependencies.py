"""
API依赖项 - 身份、权限与服务装配

身份由上游认证网关注入请求头（X-User-Id / X-User-Role），本服务不处理令牌。
"""
from dataclasses import dataclass
from typing import Callable, Optional

import structlog
from fastapi import Depends, Header, Request

from application.ports.cache import CachePort
from application.ports.notification import NotificationPort
from application.services.order_service import OrderService
from application.services.platform_settings_service import PlatformSettingsService
from application.services.wallet_service import WalletService
from core.config import settings
from core.exceptions import ForbiddenException, UnauthorizedException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.user.entity import UserRole
from infrastructure.cache import InMemoryCache
from infrastructure.notifications import build_notifier
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


@dataclass(frozen=True)
class Actor:
    """当前请求的调用方"""
    id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


async def get_current_actor(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_role: Optional[str] = Header(None, alias="X-User-Role"),
) -> Actor:
    """从网关注入的请求头解析调用方"""
    if not x_user_id:
        raise UnauthorizedException("Missing X-User-Id header")
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise UnauthorizedException("Invalid X-User-Id header")
    try:
        role = UserRole((x_user_role or UserRole.BUYER.value).upper())
    except ValueError:
        raise UnauthorizedException("Invalid X-User-Role header")

    structlog.contextvars.bind_contextvars(user_id=user_id, user_role=role.value)
    return Actor(id=user_id, role=role)


def require_role(*roles: UserRole):
    """角色校验依赖"""

    async def _checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in roles:
            raise ForbiddenException(
                "You do not have permission to perform this action",
                required_role="|".join(r.value for r in roles),
            )
        return actor

    return _checker


require_admin = require_role(UserRole.ADMIN)
require_seller = require_role(UserRole.SELLER)


def get_uow_factory() -> Callable[..., AbstractUnitOfWork]:
    return SQLAlchemyUnitOfWork


def get_settings_cache(request: Request) -> CachePort:
    """平台配置缓存：启动时注入 app.state；未经过 lifespan 时退回进程内缓存"""
    cache = getattr(request.app.state, "settings_cache", None)
    if cache is None:
        cache = InMemoryCache(default_ttl=settings.ledger.settings_cache_ttl)
        request.app.state.settings_cache = cache
    return cache


def get_notifier(request: Request) -> NotificationPort:
    notifier = getattr(request.app.state, "notifier", None)
    if notifier is None:
        notifier = build_notifier()
        request.app.state.notifier = notifier
    return notifier


async def get_settings_service(
    uow_factory: Callable[..., AbstractUnitOfWork] = Depends(get_uow_factory),
    cache: CachePort = Depends(get_settings_cache),
) -> PlatformSettingsService:
    return PlatformSettingsService(uow_factory, cache)


async def get_order_service(
    uow_factory: Callable[..., AbstractUnitOfWork] = Depends(get_uow_factory),
    settings_service: PlatformSettingsService = Depends(get_settings_service),
    notifier: NotificationPort = Depends(get_notifier),
) -> OrderService:
    return OrderService(uow_factory, settings_service, notifier)


async def get_wallet_service(
    uow_factory: Callable[..., AbstractUnitOfWork] = Depends(get_uow_factory),
    settings_service: PlatformSettingsService = Depends(get_settings_service),
    notifier: NotificationPort = Depends(get_notifier),
) -> WalletService:
    return WalletService(uow_factory, settings_service, notifier)
