from decimal import Decimal

import pytest
from sqlalchemy import update

from domain.common.exceptions import ConcurrentUpdateException, UserNotFoundException
from domain.user.entity import UserRole
from domain.withdrawal.entity import ReviewDecision
from application.services.retry import retry_on_conflict
from infrastructure.models import UserModel


@pytest.mark.asyncio
async def test_ledger_consistent_after_mixed_activity(seeder, make_sale, wallet_service):
    seller = await seeder.seller()
    buyer = await seeder.user()
    admin = await seeder.user(UserRole.ADMIN)
    await make_sale(seller, buyer, price="10000.00", payment_id="pay_1")
    await make_sale(seller, buyer, price="999.99", payment_id="pay_2")
    first = await wallet_service.request_withdrawal(seller.id, Decimal("3000.00"))
    await wallet_service.request_withdrawal(seller.id, Decimal("400.00"))
    await wallet_service.review_withdrawal(first.id, admin.id, ReviewDecision.REJECTED)

    report = await wallet_service.verify_ledger(seller.id)

    # 999.99 at 50%: commission rounds up to 500.00, seller keeps 499.99
    assert report.balance == Decimal("5000.00") + Decimal("499.99") - Decimal("400.00")
    assert report.ledger_sum == report.balance
    assert report.transaction_count == 5
    assert report.chain_ok is True
    assert report.consistent is True
    assert report.broken_transaction_id is None


@pytest.mark.asyncio
async def test_ledger_detects_tampered_balance(seeder, make_sale, wallet_service, session_factory):
    seller = await seeder.seller()
    buyer = await seeder.user()
    await make_sale(seller, buyer)

    async with session_factory() as session:
        await session.execute(
            update(UserModel).where(UserModel.id == seller.id).values(wallet_balance=Decimal("4999.00"))
        )
        await session.commit()

    report = await wallet_service.verify_ledger(seller.id)

    assert report.consistent is False
    assert report.chain_ok is False
    assert report.ledger_sum == Decimal("5000.00")
    assert report.balance == Decimal("4999.00")


@pytest.mark.asyncio
async def test_ledger_for_empty_wallet(seeder, wallet_service):
    buyer = await seeder.user()
    report = await wallet_service.verify_ledger(buyer.id)
    assert report.transaction_count == 0
    assert report.consistent is True


@pytest.mark.asyncio
async def test_balance_reports_currency(seeder, make_sale, wallet_service):
    seller = await seeder.seller()
    buyer = await seeder.user()
    await make_sale(seller, buyer)

    balance = await wallet_service.get_balance(seller.id)
    assert balance.balance == Decimal("5000.00")
    assert balance.currency == "INR"

    with pytest.raises(UserNotFoundException):
        await wallet_service.get_balance(9999)


@pytest.mark.asyncio
async def test_stale_version_is_reported_as_conflict(seeder, uow_factory):
    seller = await seeder.seller()
    async with uow_factory(readonly=True) as uow:
        stale = await uow.user_repository.get_by_id(seller.id)

    async with uow_factory() as uow:
        fresh = await uow.user_repository.get_by_id(seller.id, for_update=True)
        fresh.credit(Decimal("10.00"))
        await uow.user_repository.update(fresh)

    stale.credit(Decimal("20.00"))
    with pytest.raises(ConcurrentUpdateException):
        async with uow_factory() as uow:
            await uow.user_repository.update(stale)


@pytest.mark.asyncio
async def test_retry_on_conflict_retries_then_succeeds():
    calls = []

    async def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise ConcurrentUpdateException("User", 1)
        return "ok"

    assert await retry_on_conflict(flaky) == "ok"
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_retry_on_conflict_gives_up():
    calls = []

    async def always_conflicts():
        calls.append(1)
        raise ConcurrentUpdateException("User", 1)

    with pytest.raises(ConcurrentUpdateException):
        await retry_on_conflict(always_conflicts, attempts=2)
    assert len(calls) == 2
