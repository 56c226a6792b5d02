"""Unit of Work 抽象定义"""
from __future__ import annotations

from abc import ABC, abstractmethod

from domain.audit.repository import AuditLogRepository
from domain.order.repository import OrderRepository
from domain.platform_setting.repository import PlatformSettingRepository
from domain.project.repository import ProjectRepository
from domain.user.repository import UserRepository
from domain.wallet.repository import WalletTransactionRepository
from domain.withdrawal.repository import WithdrawalRepository


class AbstractUnitOfWork(ABC):
    """应用层事务边界控制抽象

    一次账本操作的所有步骤都在同一个 UoW 内完成：块内任何异常都会回滚全部修改。
    """

    user_repository: UserRepository
    project_repository: ProjectRepository
    order_repository: OrderRepository
    wallet_transaction_repository: WalletTransactionRepository
    withdrawal_repository: WithdrawalRepository
    platform_setting_repository: PlatformSettingRepository
    audit_log_repository: AuditLogRepository

    def __init__(self, *, readonly: bool = False) -> None:
        self._committed = False
        self._readonly = readonly
        self.user_repository = None  # type: ignore[assignment]
        self.project_repository = None  # type: ignore[assignment]
        self.order_repository = None  # type: ignore[assignment]
        self.wallet_transaction_repository = None  # type: ignore[assignment]
        self.withdrawal_repository = None  # type: ignore[assignment]
        self.platform_setting_repository = None  # type: ignore[assignment]
        self.audit_log_repository = None  # type: ignore[assignment]

    async def __aenter__(self) -> "AbstractUnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc:
            await self.rollback()
        else:
            # 只在非只读且未显式提交时自动提交
            if not self._readonly and not self._committed:
                await self.commit()

    @abstractmethod
    async def commit(self) -> None:
        """提交事务"""
        ...

    @abstractmethod
    async def rollback(self) -> None:
        """回滚事务"""
