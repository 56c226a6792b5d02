"""
钱包领域服务 - 余额读改写与流水追加必须成对出现
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from domain.common.exceptions import InsufficientFundsException, UserNotFoundException
from domain.common.money import to_money
from domain.user.entity import User
from domain.user.repository import UserRepository
from .entity import TransactionSource, TransactionType, WalletTransaction
from .repository import WalletTransactionRepository


class WalletDomainService:
    """
    钱包领域服务

    职责：
    1. 在当前事务内锁定用户行后再读取余额
    2. 计算变更前后余额并写回用户
    3. 追加对应的流水记录

    调用方负责事务边界（Unit of Work），本服务不提交也不回滚。
    """

    def __init__(
        self,
        user_repository: UserRepository,
        transaction_repository: WalletTransactionRepository,
    ):
        self.user_repository = user_repository
        self.transaction_repository = transaction_repository

    async def lock_wallet(self, user_id: int) -> User:
        """锁定并读取钱包所属用户"""
        user = await self.user_repository.get_by_id(user_id, for_update=True)
        if not user:
            raise UserNotFoundException(user_id)
        return user

    async def credit(
        self,
        user_id: int,
        amount: Decimal,
        *,
        source: TransactionSource,
        description: str,
        order_id: Optional[int] = None,
        withdrawal_id: Optional[int] = None,
        metadata: Optional[dict] = None,
    ) -> WalletTransaction:
        user = await self.lock_wallet(user_id)
        before, after = user.credit(amount)
        await self.user_repository.update(user)
        return await self.transaction_repository.add(
            WalletTransaction(
                id=None,
                user_id=user_id,
                type=TransactionType.CREDIT,
                source=source,
                amount=amount,
                balance_before=before,
                balance_after=after,
                description=description,
                order_id=order_id,
                withdrawal_id=withdrawal_id,
                metadata=metadata or {},
            )
        )

    async def debit(
        self,
        user: User,
        amount: Decimal,
        *,
        source: TransactionSource,
        description: str,
        withdrawal_id: Optional[int] = None,
        metadata: Optional[dict] = None,
    ) -> WalletTransaction:
        """从已锁定的用户钱包扣款"""
        amount = to_money(amount)
        if amount > user.wallet_balance:
            raise InsufficientFundsException(amount, user.wallet_balance)
        before, after = user.debit(amount)
        await self.user_repository.update(user)
        return await self.transaction_repository.add(
            WalletTransaction(
                id=None,
                user_id=user.id,
                type=TransactionType.DEBIT,
                source=source,
                amount=amount,
                balance_before=before,
                balance_after=after,
                description=description,
                withdrawal_id=withdrawal_id,
                metadata=metadata or {},
            )
        )
