"""
钱包流水仓储实现 - 只追加
"""
from typing import Optional, List
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, case

from domain.wallet.entity import WalletTransaction, TransactionType, TransactionSource
from domain.wallet.repository import WalletTransactionRepository
from infrastructure.models.wallet_transaction import WalletTransactionModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyWalletTransactionRepository(WalletTransactionRepository):
    """钱包流水仓储的SQLAlchemy实现（不提供 update/delete）"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: WalletTransactionModel) -> WalletTransaction:
        return WalletTransaction(
            id=model.id,
            user_id=model.user_id,
            type=TransactionType(model.type),
            source=TransactionSource(model.source),
            amount=Decimal(str(model.amount)),
            balance_before=Decimal(str(model.balance_before)),
            balance_after=Decimal(str(model.balance_after)),
            description=model.description or "",
            order_id=model.order_id,
            withdrawal_id=model.withdrawal_id,
            metadata=model.extra_metadata or {},
            created_at=model.created_at,
        )

    async def add(self, transaction: WalletTransaction) -> WalletTransaction:
        db_tx = WalletTransactionModel(
            user_id=transaction.user_id,
            type=transaction.type.value,
            source=transaction.source.value,
            amount=transaction.amount,
            balance_before=transaction.balance_before,
            balance_after=transaction.balance_after,
            order_id=transaction.order_id,
            withdrawal_id=transaction.withdrawal_id,
            description=transaction.description,
            extra_metadata=transaction.metadata,
        )
        self.session.add(db_tx)
        await self.session.flush()
        await self.session.refresh(db_tx)
        logger.info(
            "wallet_transaction_recorded",
            transaction_id=db_tx.id,
            user_id=db_tx.user_id,
            type=db_tx.type,
            source=db_tx.source,
            amount=str(db_tx.amount),
            balance_before=str(db_tx.balance_before),
            balance_after=str(db_tx.balance_after),
        )
        return self._to_entity(db_tx)

    async def list_by_user(self, user_id: int, skip: int = 0, limit: int = 100) -> List[WalletTransaction]:
        result = await self.session.execute(
            select(WalletTransactionModel)
            .where(WalletTransactionModel.user_id == user_id)
            .order_by(WalletTransactionModel.created_at.desc(), WalletTransactionModel.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return [self._to_entity(t) for t in result.scalars().all()]

    async def count_by_user(self, user_id: int) -> int:
        result = await self.session.execute(
            select(func.count(WalletTransactionModel.id)).where(WalletTransactionModel.user_id == user_id)
        )
        return result.scalar_one()

    async def list_chronological(self, user_id: int) -> List[WalletTransaction]:
        # 自增主键即写入顺序，同一时间戳下仍然稳定
        result = await self.session.execute(
            select(WalletTransactionModel)
            .where(WalletTransactionModel.user_id == user_id)
            .order_by(WalletTransactionModel.id.asc())
        )
        return [self._to_entity(t) for t in result.scalars().all()]

    async def get_latest(self, user_id: int) -> Optional[WalletTransaction]:
        result = await self.session.execute(
            select(WalletTransactionModel)
            .where(WalletTransactionModel.user_id == user_id)
            .order_by(WalletTransactionModel.id.desc())
            .limit(1)
        )
        db_tx = result.scalar_one_or_none()
        return self._to_entity(db_tx) if db_tx else None

    async def sum_signed_amounts(self, user_id: int) -> Decimal:
        signed = case(
            (WalletTransactionModel.type == TransactionType.CREDIT.value, WalletTransactionModel.amount),
            else_=-WalletTransactionModel.amount,
        )
        result = await self.session.execute(
            select(func.coalesce(func.sum(signed), 0)).where(WalletTransactionModel.user_id == user_id)
        )
        total = result.scalar_one()
        return Decimal(str(total)).quantize(Decimal("0.01"))

    async def list_by_order(self, order_id: int) -> List[WalletTransaction]:
        result = await self.session.execute(
            select(WalletTransactionModel)
            .where(WalletTransactionModel.order_id == order_id)
            .order_by(WalletTransactionModel.id.asc())
        )
        return [self._to_entity(t) for t in result.scalars().all()]
