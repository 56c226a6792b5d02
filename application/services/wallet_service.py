"""
钱包应用服务（application/services）- 余额查询、提现申请与审核、对账
"""
from __future__ import annotations

from decimal import Decimal
from typing import Callable, List, Optional

from application.dto import (
    LedgerReportDTO,
    PageDTO,
    WalletBalanceDTO,
    WalletTransactionDTO,
    WithdrawalResponseDTO,
)
from application.ports.notification import NotificationPort
from application.services.notifications import publish_events
from application.services.platform_settings_service import PlatformSettingsService
from application.services.retry import retry_on_conflict
from core.logging_config import get_logger
from domain.common.exceptions import UserNotFoundException
from domain.common.money import to_money
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.wallet.entity import WalletTransaction
from domain.wallet.service import WalletDomainService
from domain.withdrawal.entity import OPEN_STATUSES, ReviewDecision, Withdrawal
from domain.withdrawal.service import WithdrawalDomainService


logger = get_logger(__name__)


class WalletService:
    """钱包应用服务"""

    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        settings_provider: PlatformSettingsService,
        notifier: Optional[NotificationPort] = None,
    ):
        self._uow_factory = uow_factory
        self._settings = settings_provider
        self._notifier = notifier

    @staticmethod
    def _withdrawal_service(uow: AbstractUnitOfWork) -> WithdrawalDomainService:
        wallet_service = WalletDomainService(uow.user_repository, uow.wallet_transaction_repository)
        return WithdrawalDomainService(uow.withdrawal_repository, wallet_service, uow.audit_log_repository)

    # ------------------------------------------------------------ 查询

    async def get_balance(self, user_id: int) -> WalletBalanceDTO:
        async with self._uow_factory(readonly=True) as uow:
            user = await uow.user_repository.get_by_id(user_id)
        if not user:
            raise UserNotFoundException(user_id)
        currency = await self._settings.get_currency()
        return WalletBalanceDTO(user_id=user.id, balance=user.wallet_balance, currency=currency)

    async def list_transactions(self, user_id: int, page: int = 1, size: int = 20) -> PageDTO:
        """流水列表，按时间倒序"""
        async with self._uow_factory(readonly=True) as uow:
            items = await uow.wallet_transaction_repository.list_by_user(user_id, (page - 1) * size, size)
            total = await uow.wallet_transaction_repository.count_by_user(user_id)
        return PageDTO(
            items=[WalletTransactionDTO.model_validate(item) for item in items],
            total=int(total),
            page=page,
            size=size,
        )

    async def list_withdrawals(self, seller_id: int, page: int = 1, size: int = 20) -> PageDTO:
        async with self._uow_factory(readonly=True) as uow:
            items = await uow.withdrawal_repository.list_by_seller(seller_id, (page - 1) * size, size)
            total = await uow.withdrawal_repository.count_by_seller(seller_id)
        return PageDTO(
            items=[self._to_withdrawal_dto(item) for item in items],
            total=int(total),
            page=page,
            size=size,
        )

    async def list_open_withdrawals(self) -> List[WithdrawalResponseDTO]:
        """待处理提现（PENDING/APPROVED/PROCESSING），最早提交的在前"""
        async with self._uow_factory(readonly=True) as uow:
            items = await uow.withdrawal_repository.list_by_statuses(OPEN_STATUSES)
        return [self._to_withdrawal_dto(item) for item in items]

    async def verify_ledger(self, user_id: int) -> LedgerReportDTO:
        """
        对账

        1. 余额 == 全部流水带符号金额之和
        2. 每笔流水的 balance_before 等于上一笔的 balance_after（首笔从 0 开始）
        3. 余额 == 最后一笔流水的 balance_after
        """
        async with self._uow_factory(readonly=True) as uow:
            user = await uow.user_repository.get_by_id(user_id)
            if not user:
                raise UserNotFoundException(user_id)
            transactions: List[WalletTransaction] = await uow.wallet_transaction_repository.list_chronological(user_id)
            ledger_sum = to_money(await uow.wallet_transaction_repository.sum_signed_amounts(user_id))

        running = Decimal("0.00")
        broken_id: Optional[int] = None
        for tx in transactions:
            if tx.balance_before != running:
                broken_id = tx.id
                break
            running = tx.balance_after

        chain_ok = broken_id is None and running == user.wallet_balance
        consistent = chain_ok and ledger_sum == user.wallet_balance
        if not consistent:
            logger.error(
                "ledger_inconsistent",
                user_id=user_id,
                balance=str(user.wallet_balance),
                ledger_sum=str(ledger_sum),
                broken_transaction_id=broken_id,
            )
        return LedgerReportDTO(
            user_id=user_id,
            balance=user.wallet_balance,
            ledger_sum=ledger_sum,
            transaction_count=len(transactions),
            chain_ok=chain_ok,
            consistent=consistent,
            broken_transaction_id=broken_id,
        )

    # ------------------------------------------------------------ 提现

    async def request_withdrawal(self, seller_id: int, amount: Decimal) -> WithdrawalResponseDTO:
        """提交提现：扣款、创建 PENDING 申请与流水在同一事务内"""
        minimum = await self._settings.get_minimum_withdrawal()
        currency = await self._settings.get_currency()
        async def _request():
            async with self._uow_factory() as uow:
                service = self._withdrawal_service(uow)
                created = await service.request_withdrawal(seller_id, amount, minimum=minimum, currency=currency)
                return created, service.clear_events()

        withdrawal, events = await retry_on_conflict(_request)

        logger.info(
            "withdrawal_requested",
            withdrawal_id=withdrawal.id,
            withdrawal_number=withdrawal.withdrawal_number,
            seller_id=seller_id,
            amount=str(withdrawal.amount),
        )
        await publish_events(self._notifier, events)
        return self._to_withdrawal_dto(withdrawal)

    async def review_withdrawal(
        self,
        withdrawal_id: int,
        admin_id: int,
        decision: ReviewDecision,
        notes: Optional[str] = None,
    ) -> WithdrawalResponseDTO:
        async def _review():
            async with self._uow_factory() as uow:
                service = self._withdrawal_service(uow)
                reviewed = await service.review(withdrawal_id, admin_id, decision, notes)
                return reviewed, service.clear_events()

        withdrawal, events = await retry_on_conflict(_review)

        logger.info(
            "withdrawal_reviewed",
            withdrawal_id=withdrawal.id,
            status=withdrawal.status.value,
            admin_id=admin_id,
        )
        await publish_events(self._notifier, events)
        return self._to_withdrawal_dto(withdrawal)

    async def start_processing(self, withdrawal_id: int, admin_id: int) -> WithdrawalResponseDTO:
        async with self._uow_factory() as uow:
            service = self._withdrawal_service(uow)
            withdrawal = await service.start_processing(withdrawal_id, admin_id)

        logger.info("withdrawal_processing", withdrawal_id=withdrawal.id, admin_id=admin_id)
        return self._to_withdrawal_dto(withdrawal)

    async def complete_withdrawal(
        self,
        withdrawal_id: int,
        admin_id: int,
        transaction_id: str,
        payment_proof: Optional[str] = None,
    ) -> WithdrawalResponseDTO:
        async with self._uow_factory() as uow:
            service = self._withdrawal_service(uow)
            withdrawal = await service.complete(withdrawal_id, admin_id, transaction_id, payment_proof)
            events = service.clear_events()

        logger.info(
            "withdrawal_completed",
            withdrawal_id=withdrawal.id,
            transaction_id=withdrawal.transaction_id,
            admin_id=admin_id,
        )
        await publish_events(self._notifier, events)
        return self._to_withdrawal_dto(withdrawal)

    @staticmethod
    def _to_withdrawal_dto(withdrawal: Withdrawal) -> WithdrawalResponseDTO:
        return WithdrawalResponseDTO.model_validate(withdrawal)
