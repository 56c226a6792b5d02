"""
提现仓储实现
"""
from typing import Optional, List, Sequence
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from domain.common.exceptions import WithdrawalNotFoundException
from domain.withdrawal.entity import Withdrawal, WithdrawalStatus
from domain.withdrawal.repository import WithdrawalRepository
from infrastructure.models.withdrawal import WithdrawalModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyWithdrawalRepository(WithdrawalRepository):
    """提现仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: WithdrawalModel) -> Withdrawal:
        return Withdrawal(
            id=model.id,
            withdrawal_number=model.withdrawal_number,
            seller_id=model.seller_id,
            amount=Decimal(str(model.amount)),
            bank_details=dict(model.bank_details or {}),
            status=WithdrawalStatus(model.status),
            reviewed_by=model.reviewed_by,
            reviewed_at=model.reviewed_at,
            review_notes=model.review_notes,
            rejected_at=model.rejected_at,
            transaction_id=model.transaction_id,
            payment_proof=model.payment_proof,
            completed_at=model.completed_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def create(self, withdrawal: Withdrawal) -> Withdrawal:
        db_withdrawal = WithdrawalModel(
            withdrawal_number=withdrawal.withdrawal_number,
            seller_id=withdrawal.seller_id,
            amount=withdrawal.amount,
            bank_details=withdrawal.bank_details,
            status=withdrawal.status.value,
        )
        self.session.add(db_withdrawal)
        await self.session.flush()
        await self.session.refresh(db_withdrawal)
        logger.info(
            "withdrawal_created",
            withdrawal_id=db_withdrawal.id,
            withdrawal_number=db_withdrawal.withdrawal_number,
            seller_id=db_withdrawal.seller_id,
            amount=str(db_withdrawal.amount),
        )
        return self._to_entity(db_withdrawal)

    async def get_by_id(self, withdrawal_id: int, *, for_update: bool = False) -> Optional[Withdrawal]:
        stmt = select(WithdrawalModel).where(WithdrawalModel.id == withdrawal_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        db_withdrawal = result.scalar_one_or_none()
        return self._to_entity(db_withdrawal) if db_withdrawal else None

    async def list_by_seller(self, seller_id: int, skip: int = 0, limit: int = 100) -> List[Withdrawal]:
        result = await self.session.execute(
            select(WithdrawalModel)
            .where(WithdrawalModel.seller_id == seller_id)
            .order_by(WithdrawalModel.created_at.desc(), WithdrawalModel.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return [self._to_entity(w) for w in result.scalars().all()]

    async def count_by_seller(self, seller_id: int) -> int:
        result = await self.session.execute(
            select(func.count(WithdrawalModel.id)).where(WithdrawalModel.seller_id == seller_id)
        )
        return result.scalar_one()

    async def list_by_statuses(self, statuses: Sequence[WithdrawalStatus]) -> List[Withdrawal]:
        result = await self.session.execute(
            select(WithdrawalModel)
            .where(WithdrawalModel.status.in_([s.value for s in statuses]))
            .order_by(WithdrawalModel.created_at.asc(), WithdrawalModel.id.asc())
        )
        return [self._to_entity(w) for w in result.scalars().all()]

    async def update(self, withdrawal: Withdrawal) -> Withdrawal:
        result = await self.session.execute(
            select(WithdrawalModel).where(WithdrawalModel.id == withdrawal.id)
        )
        db_withdrawal = result.scalar_one_or_none()
        if not db_withdrawal:
            raise WithdrawalNotFoundException(withdrawal.id)

        # 金额与收款快照不可修改
        db_withdrawal.status = withdrawal.status.value
        db_withdrawal.reviewed_by = withdrawal.reviewed_by
        db_withdrawal.reviewed_at = withdrawal.reviewed_at
        db_withdrawal.review_notes = withdrawal.review_notes
        db_withdrawal.rejected_at = withdrawal.rejected_at
        db_withdrawal.transaction_id = withdrawal.transaction_id
        db_withdrawal.payment_proof = withdrawal.payment_proof
        db_withdrawal.completed_at = withdrawal.completed_at
        db_withdrawal.updated_at = withdrawal.updated_at

        await self.session.flush()
        await self.session.refresh(db_withdrawal)

        logger.info(
            "withdrawal_updated",
            withdrawal_id=db_withdrawal.id,
            status=db_withdrawal.status,
        )
        return self._to_entity(db_withdrawal)
