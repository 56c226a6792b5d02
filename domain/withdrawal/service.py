"""
提现领域服务 - 编排扣款、审核退款与完成打款
"""
from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from domain.audit.entity import AuditAction, AuditLog
from domain.audit.repository import AuditLogRepository
from domain.common.exceptions import (
    BelowMinimumWithdrawalException,
    DomainValidationException,
    IncompletePayoutDetailsException,
    InsufficientFundsException,
    WithdrawalNotFoundException,
)
from domain.common.identifiers import generate_reference
from domain.common.money import to_money
from domain.wallet.entity import TransactionSource
from domain.wallet.service import WalletDomainService
from .entity import ReviewDecision, Withdrawal, WithdrawalStatus
from .events import WithdrawalCompleted, WithdrawalRequested, WithdrawalReviewed
from .repository import WithdrawalRepository


class WithdrawalDomainService:
    """
    提现领域服务

    职责：
    1. 申请：校验收款信息与金额边界，扣款并冻结为 PENDING 申请
    2. 审核：仅 PENDING 可审核；驳回时同一事务内全额退款
    3. 完成：记录外部转账凭证，不再变动余额
    4. 产生领域事件（事务提交后用于通知）
    """

    def __init__(
        self,
        withdrawal_repository: WithdrawalRepository,
        wallet_service: WalletDomainService,
        audit_repository: AuditLogRepository,
    ):
        self.withdrawal_repository = withdrawal_repository
        self.wallet_service = wallet_service
        self.audit_repository = audit_repository
        self.events: List = []  # 领域事件收集

    async def _get_locked(self, withdrawal_id: int) -> Withdrawal:
        withdrawal = await self.withdrawal_repository.get_by_id(withdrawal_id, for_update=True)
        if not withdrawal:
            raise WithdrawalNotFoundException(withdrawal_id)
        return withdrawal

    async def request_withdrawal(
        self,
        seller_id: int,
        amount: Decimal,
        *,
        minimum: Decimal,
        currency: str = "",
    ) -> Withdrawal:
        """
        提交提现申请

        业务规则：
        1. 卖家必须存在且收款信息完整
        2. minimum <= amount <= 当前余额（余额在行锁下读取）
        3. 扣款、申请、流水三者在同一事务内
        """
        amount = to_money(amount)
        if amount <= 0:
            raise DomainValidationException("Withdrawal amount must be positive", field="amount")

        seller = await self.wallet_service.lock_wallet(seller_id)
        missing = seller.payout.missing_fields()
        if missing:
            raise IncompletePayoutDetailsException(missing)
        if amount < to_money(minimum):
            raise BelowMinimumWithdrawalException(amount, to_money(minimum), currency)
        if amount > seller.wallet_balance:
            raise InsufficientFundsException(amount, seller.wallet_balance)

        withdrawal = await self.withdrawal_repository.create(
            Withdrawal(
                id=None,
                withdrawal_number=generate_reference("WD"),
                seller_id=seller_id,
                amount=amount,
                bank_details=seller.payout.snapshot(),
                status=WithdrawalStatus.PENDING,
            )
        )
        await self.wallet_service.debit(
            seller,
            amount,
            source=TransactionSource.WITHDRAWAL,
            description=f"Withdrawal request {withdrawal.withdrawal_number}",
            withdrawal_id=withdrawal.id,
        )

        self.events.append(WithdrawalRequested(
            withdrawal_id=withdrawal.id,
            withdrawal_number=withdrawal.withdrawal_number,
            seller_id=seller_id,
            amount=str(amount),
        ))
        return withdrawal

    async def review(
        self,
        withdrawal_id: int,
        reviewer_id: int,
        decision: ReviewDecision,
        notes: Optional[str] = None,
    ) -> Withdrawal:
        """审核提现；驳回退款受 PENDING 前置条件保护，只会发生一次"""
        withdrawal = await self._get_locked(withdrawal_id)
        decision = ReviewDecision(decision)

        if decision == ReviewDecision.APPROVED:
            withdrawal.approve(reviewer_id, notes)
            action = AuditAction.WITHDRAWAL_APPROVED
        else:
            withdrawal.reject(reviewer_id, notes)
            action = AuditAction.WITHDRAWAL_REJECTED
            await self.wallet_service.credit(
                withdrawal.seller_id,
                withdrawal.amount,
                source=TransactionSource.REFUND,
                description=f"Refund for rejected withdrawal {withdrawal.withdrawal_number}",
                withdrawal_id=withdrawal.id,
            )

        updated = await self.withdrawal_repository.update(withdrawal)
        await self._audit(reviewer_id, action, updated, {
            "status": updated.status.value,
            "amount": str(updated.amount),
            "notes": notes,
        })

        self.events.append(WithdrawalReviewed(
            withdrawal_id=updated.id,
            withdrawal_number=updated.withdrawal_number,
            seller_id=updated.seller_id,
            amount=str(updated.amount),
            status=updated.status.value,
            notes=notes,
        ))
        return updated

    async def start_processing(self, withdrawal_id: int, admin_id: int) -> Withdrawal:
        withdrawal = await self._get_locked(withdrawal_id)
        withdrawal.mark_processing()
        updated = await self.withdrawal_repository.update(withdrawal)
        await self._audit(admin_id, AuditAction.WITHDRAWAL_PROCESSING, updated, {
            "status": updated.status.value,
        })
        return updated

    async def complete(
        self,
        withdrawal_id: int,
        admin_id: int,
        transaction_id: str,
        payment_proof: Optional[str] = None,
    ) -> Withdrawal:
        withdrawal = await self._get_locked(withdrawal_id)
        withdrawal.complete(transaction_id, payment_proof)
        updated = await self.withdrawal_repository.update(withdrawal)
        await self._audit(admin_id, AuditAction.WITHDRAWAL_COMPLETED, updated, {
            "status": updated.status.value,
            "transaction_id": updated.transaction_id,
            "payment_proof": updated.payment_proof,
        })

        self.events.append(WithdrawalCompleted(
            withdrawal_id=updated.id,
            withdrawal_number=updated.withdrawal_number,
            seller_id=updated.seller_id,
            amount=str(updated.amount),
            transaction_id=updated.transaction_id or "",
        ))
        return updated

    async def _audit(self, actor_id: int, action: AuditAction, withdrawal: Withdrawal, changes: dict) -> None:
        await self.audit_repository.add(AuditLog(
            id=None,
            actor_id=actor_id,
            action=action,
            entity_type="withdrawal",
            entity_id=str(withdrawal.id),
            changes=changes,
        ))

    def clear_events(self) -> List:
        """清空并返回领域事件"""
        events = self.events.copy()
        self.events.clear()
        return events
