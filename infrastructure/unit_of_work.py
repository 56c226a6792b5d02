"""SQLAlchemy Unit of Work 实现"""
from __future__ import annotations

from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from domain.common.unit_of_work import AbstractUnitOfWork
from infrastructure.database import AsyncSessionLocal
from infrastructure.repositories.audit_log_repository import SQLAlchemyAuditLogRepository
from infrastructure.repositories.order_repository import SQLAlchemyOrderRepository
from infrastructure.repositories.platform_setting_repository import SQLAlchemyPlatformSettingRepository
from infrastructure.repositories.project_repository import SQLAlchemyProjectRepository
from infrastructure.repositories.user_repository import SQLAlchemyUserRepository
from infrastructure.repositories.wallet_transaction_repository import SQLAlchemyWalletTransactionRepository
from infrastructure.repositories.withdrawal_repository import SQLAlchemyWithdrawalRepository


# 属性名 -> 仓储实现；同一 UoW 内所有仓储共享一个会话
REPOSITORIES = {
    "user_repository": SQLAlchemyUserRepository,
    "project_repository": SQLAlchemyProjectRepository,
    "order_repository": SQLAlchemyOrderRepository,
    "wallet_transaction_repository": SQLAlchemyWalletTransactionRepository,
    "withdrawal_repository": SQLAlchemyWithdrawalRepository,
    "platform_setting_repository": SQLAlchemyPlatformSettingRepository,
    "audit_log_repository": SQLAlchemyAuditLogRepository,
}


class SQLAlchemyUnitOfWork(AbstractUnitOfWork):
    """
    一个 UoW 对应一个数据库事务

    传入 session 时由调用方负责关闭；只读模式不显式开启事务，也不提交，
    退出时随会话关闭丢弃。
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
        session: Optional[AsyncSession] = None,
        *,
        readonly: bool = False,
    ) -> None:
        super().__init__(readonly=readonly)
        self._session_factory = session_factory
        self._owns_session = session is None
        self.session: Optional[AsyncSession] = session

    def _bind(self, session: Optional[AsyncSession]) -> None:
        for name, repository_cls in REPOSITORIES.items():
            setattr(self, name, repository_cls(session) if session is not None else None)

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        if self.session is None:
            self.session = self._session_factory()
        self._bind(self.session)
        if not self._readonly and not self.session.in_transaction():
            await self.session.begin()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            await super().__aexit__(exc_type, exc, tb)
        finally:
            if self._owns_session and self.session is not None:
                await self.session.close()
                self.session = None
            self._bind(None)

    async def commit(self) -> None:
        if not self._readonly and self.session is not None and self.session.in_transaction():
            await self.session.commit()
        self._committed = True

    async def rollback(self) -> None:
        if self.session is not None and self.session.in_transaction():
            await self.session.rollback()
        self._committed = False
