from decimal import Decimal

import pytest
from sqlalchemy import func, select

from domain.common.exceptions import (
    BelowMinimumWithdrawalException,
    IncompletePayoutDetailsException,
    InsufficientFundsException,
    PreconditionFailedException,
    WithdrawalAlreadyReviewedException,
)
from domain.platform_setting.entity import MINIMUM_WITHDRAWAL
from domain.user.entity import UserRole
from domain.wallet.entity import TransactionSource, TransactionType
from domain.withdrawal.entity import ReviewDecision, WithdrawalStatus
from infrastructure.models import WithdrawalModel
from shared.codes import BusinessCode


async def _balance(uow_factory, user_id):
    async with uow_factory(readonly=True) as uow:
        return (await uow.user_repository.get_by_id(user_id)).wallet_balance


@pytest.fixture
def funded_seller(seeder, make_sale):
    """Seller with 5000.00 earned from one 10000.00 sale at 50%."""

    async def _funded(price: str = "10000.00"):
        seller = await seeder.seller()
        buyer = await seeder.user()
        await make_sale(seller, buyer, price=price)
        return seller

    return _funded


@pytest.mark.asyncio
async def test_request_withdrawal_debits_immediately(funded_seller, wallet_service, uow_factory, notifier):
    seller = await funded_seller()

    withdrawal = await wallet_service.request_withdrawal(seller.id, Decimal("3000.00"))

    assert withdrawal.status == WithdrawalStatus.PENDING
    assert withdrawal.amount == Decimal("3000.00")
    assert withdrawal.bank_details["ifsc_code"] == "SBIN0000001"
    assert await _balance(uow_factory, seller.id) == Decimal("2000.00")

    page = await wallet_service.list_transactions(seller.id)
    latest = page.items[0]
    assert latest.type == TransactionType.DEBIT
    assert latest.source == TransactionSource.WITHDRAWAL
    assert latest.withdrawal_id == withdrawal.id
    assert (latest.balance_before, latest.balance_after) == (Decimal("5000.00"), Decimal("2000.00"))
    assert notifier.events()[-1] == "withdrawal.requested"


@pytest.mark.asyncio
async def test_reject_refunds_in_full(funded_seller, wallet_service, seeder, uow_factory, notifier):
    seller = await funded_seller()
    admin = await seeder.user(UserRole.ADMIN)
    withdrawal = await wallet_service.request_withdrawal(seller.id, Decimal("3000.00"))

    rejected = await wallet_service.review_withdrawal(withdrawal.id, admin.id, ReviewDecision.REJECTED, "Account mismatch")

    assert rejected.status == WithdrawalStatus.REJECTED
    assert rejected.review_notes == "Account mismatch"
    assert rejected.rejected_at is not None
    assert await _balance(uow_factory, seller.id) == Decimal("5000.00")

    page = await wallet_service.list_transactions(seller.id)
    refund = page.items[0]
    assert refund.type == TransactionType.CREDIT
    assert refund.source == TransactionSource.REFUND
    assert refund.amount == Decimal("3000.00")

    reviewed = [data for event, _, data in notifier.sent if event == "withdrawal.reviewed"]
    assert reviewed == [{
        "withdrawal_id": withdrawal.id,
        "withdrawal_number": withdrawal.withdrawal_number,
        "amount": "3000.00",
        "status": "REJECTED",
        "notes": "Account mismatch",
    }]


@pytest.mark.asyncio
async def test_second_review_is_rejected_without_second_refund(funded_seller, wallet_service, seeder, uow_factory):
    seller = await funded_seller()
    admin = await seeder.user(UserRole.ADMIN)
    withdrawal = await wallet_service.request_withdrawal(seller.id, Decimal("3000.00"))
    await wallet_service.review_withdrawal(withdrawal.id, admin.id, ReviewDecision.REJECTED)

    with pytest.raises(WithdrawalAlreadyReviewedException) as exc_info:
        await wallet_service.review_withdrawal(withdrawal.id, admin.id, ReviewDecision.REJECTED)

    assert exc_info.value.code == BusinessCode.PRECONDITION_FAILED
    assert await _balance(uow_factory, seller.id) == Decimal("5000.00")
    page = await wallet_service.list_transactions(seller.id)
    assert page.total == 3  # sale, withdrawal, one refund


@pytest.mark.asyncio
async def test_below_minimum_is_rejected(funded_seller, wallet_service, uow_factory):
    seller = await funded_seller()

    with pytest.raises(BelowMinimumWithdrawalException) as exc_info:
        await wallet_service.request_withdrawal(seller.id, Decimal("299.99"))

    assert exc_info.value.message == "Minimum withdrawal amount is INR 300.00"
    assert await _balance(uow_factory, seller.id) == Decimal("5000.00")


@pytest.mark.asyncio
async def test_minimum_follows_platform_setting(funded_seller, wallet_service, settings_service):
    seller = await funded_seller()
    await settings_service.set_setting(MINIMUM_WITHDRAWAL, "100", updated_by=None)

    withdrawal = await wallet_service.request_withdrawal(seller.id, Decimal("150.00"))
    assert withdrawal.amount == Decimal("150.00")


@pytest.mark.asyncio
async def test_incomplete_payout_details_are_rejected(seeder, make_sale, wallet_service, uow_factory):
    seller = await seeder.seller(complete_payout=False)
    buyer = await seeder.user()
    await make_sale(seller, buyer)

    with pytest.raises(IncompletePayoutDetailsException) as exc_info:
        await wallet_service.request_withdrawal(seller.id, Decimal("1000.00"))

    assert exc_info.value.message == "Please complete your bank details before requesting a withdrawal"
    assert set(exc_info.value.details["missing"]) == {"account_number", "ifsc_code", "account_holder_name"}
    assert await _balance(uow_factory, seller.id) == Decimal("5000.00")


@pytest.mark.asyncio
async def test_insufficient_funds_leaves_no_withdrawal(funded_seller, wallet_service, uow_factory, session_factory):
    seller = await funded_seller(price="2000.00")
    assert await _balance(uow_factory, seller.id) == Decimal("1000.00")

    with pytest.raises(InsufficientFundsException):
        await wallet_service.request_withdrawal(seller.id, Decimal("2000.00"))

    assert await _balance(uow_factory, seller.id) == Decimal("1000.00")
    async with session_factory() as session:
        count = (await session.execute(select(func.count(WithdrawalModel.id)))).scalar_one()
    assert count == 0


@pytest.mark.asyncio
async def test_approve_process_complete(funded_seller, wallet_service, seeder, uow_factory, notifier):
    seller = await funded_seller()
    admin = await seeder.user(UserRole.ADMIN)
    withdrawal = await wallet_service.request_withdrawal(seller.id, Decimal("1000.00"))

    approved = await wallet_service.review_withdrawal(withdrawal.id, admin.id, ReviewDecision.APPROVED)
    assert approved.status == WithdrawalStatus.APPROVED
    assert approved.reviewed_by == admin.id

    processing = await wallet_service.start_processing(withdrawal.id, admin.id)
    assert processing.status == WithdrawalStatus.PROCESSING

    completed = await wallet_service.complete_withdrawal(withdrawal.id, admin.id, "UTR0001", "https://proofs.example.com/1")
    assert completed.status == WithdrawalStatus.COMPLETED
    assert completed.transaction_id == "UTR0001"
    assert completed.completed_at is not None

    # approval and payout leave the balance untouched
    assert await _balance(uow_factory, seller.id) == Decimal("4000.00")
    assert notifier.events()[-3:] == ["withdrawal.requested", "withdrawal.reviewed", "withdrawal.completed"]

    async with uow_factory(readonly=True) as uow:
        entries = await uow.audit_log_repository.list_for_entity("withdrawal", str(withdrawal.id))
    assert [entry.action.value for entry in entries] == [
        "WITHDRAWAL_APPROVED",
        "WITHDRAWAL_PROCESSING",
        "WITHDRAWAL_COMPLETED",
    ]


@pytest.mark.asyncio
async def test_complete_requires_approval(funded_seller, wallet_service, seeder):
    seller = await funded_seller()
    admin = await seeder.user(UserRole.ADMIN)
    withdrawal = await wallet_service.request_withdrawal(seller.id, Decimal("1000.00"))

    with pytest.raises(PreconditionFailedException):
        await wallet_service.complete_withdrawal(withdrawal.id, admin.id, "UTR0001")


@pytest.mark.asyncio
async def test_open_withdrawals_oldest_first(funded_seller, wallet_service, seeder):
    seller = await funded_seller()
    admin = await seeder.user(UserRole.ADMIN)
    first = await wallet_service.request_withdrawal(seller.id, Decimal("500.00"))
    second = await wallet_service.request_withdrawal(seller.id, Decimal("600.00"))
    third = await wallet_service.request_withdrawal(seller.id, Decimal("700.00"))
    await wallet_service.review_withdrawal(second.id, admin.id, ReviewDecision.REJECTED)

    open_items = await wallet_service.list_open_withdrawals()
    assert [item.id for item in open_items] == [first.id, third.id]

    mine = await wallet_service.list_withdrawals(seller.id)
    assert mine.total == 3


@pytest.mark.asyncio
async def test_payout_edits_do_not_change_submitted_withdrawal(funded_seller, wallet_service, uow_factory):
    seller = await funded_seller()
    withdrawal = await wallet_service.request_withdrawal(seller.id, Decimal("1000.00"))

    async with uow_factory() as uow:
        user = await uow.user_repository.get_by_id(seller.id, for_update=True)
        user.payout.account_number = "999988887777"
        user.payout.ifsc_code = "HDFC0000009"
        await uow.user_repository.update(user)

    async with uow_factory(readonly=True) as uow:
        stored = await uow.withdrawal_repository.get_by_id(withdrawal.id)
        updated_user = await uow.user_repository.get_by_id(seller.id)
    assert updated_user.payout.account_number == "999988887777"
    assert stored.bank_details["account_number"] == "001122334455"
    assert stored.bank_details["ifsc_code"] == "SBIN0000001"
    assert stored.bank_details["account_holder_name"] == "Asha Rao"
