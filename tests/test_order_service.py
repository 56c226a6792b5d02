from decimal import Decimal

import pytest

from application.dto import OrderCreateDTO
from core.exceptions import ForbiddenException
from domain.common.exceptions import (
    DomainValidationException,
    OrderNotFoundException,
    PreconditionFailedException,
    ProjectNotPurchasableException,
)
from domain.order.entity import OrderStatus
from domain.platform_setting.entity import COMMISSION_PERCENTAGE
from domain.project.entity import ProjectStatus
from domain.user.entity import UserRole
from domain.wallet.entity import TransactionSource, TransactionType
from infrastructure.repositories.wallet_transaction_repository import SQLAlchemyWalletTransactionRepository


async def _balance(uow_factory, user_id):
    async with uow_factory(readonly=True) as uow:
        user = await uow.user_repository.get_by_id(user_id)
    return user.wallet_balance


@pytest.mark.asyncio
async def test_create_order_snapshots_commission(seeder, order_service):
    seller = await seeder.seller()
    buyer = await seeder.user()
    project = await seeder.project(seller.id, price="10000.00")

    order = await order_service.create_order(buyer.id, OrderCreateDTO(project_id=project.id, payment_order_id="order_rzp_1"))

    assert order.status == OrderStatus.CREATED
    assert order.seller_id == seller.id
    assert order.platform_commission == Decimal("5000.00")
    assert order.seller_earning == Decimal("5000.00")
    assert order.commission_rate == Decimal("50")
    assert order.order_number.startswith("ORD")


@pytest.mark.asyncio
async def test_commission_change_does_not_affect_existing_order(seeder, order_service, settings_service, uow_factory):
    seller = await seeder.seller()
    buyer = await seeder.user()
    project = await seeder.project(seller.id, price="10000.00")
    order = await order_service.create_order(buyer.id, OrderCreateDTO(project_id=project.id))

    await settings_service.set_setting(COMMISSION_PERCENTAGE, "20", updated_by=None)
    result = await order_service.confirm_payment(order.id, "pay_1")

    assert result.order.seller_earning == Decimal("5000.00")
    assert await _balance(uow_factory, seller.id) == Decimal("5000.00")

    later = await order_service.create_order(buyer.id, OrderCreateDTO(project_id=project.id))
    assert later.platform_commission == Decimal("2000.00")
    assert later.seller_earning == Decimal("8000.00")


@pytest.mark.asyncio
async def test_create_order_rejects_unapproved_or_own_project(seeder, order_service):
    seller = await seeder.seller()
    draft = await seeder.project(seller.id, status=ProjectStatus.PENDING)
    approved = await seeder.project(seller.id)

    with pytest.raises(ProjectNotPurchasableException):
        await order_service.create_order(seller.id + 100, OrderCreateDTO(project_id=draft.id))
    with pytest.raises(DomainValidationException):
        await order_service.create_order(seller.id, OrderCreateDTO(project_id=approved.id))


@pytest.mark.asyncio
async def test_confirm_payment_credits_seller(seeder, order_service, uow_factory, notifier):
    seller = await seeder.seller()
    buyer = await seeder.user()
    project = await seeder.project(seller.id, price="10000.00")
    order = await order_service.create_order(buyer.id, OrderCreateDTO(project_id=project.id))

    result = await order_service.confirm_payment(order.id, "pay_1")

    assert result.already_processed is False
    assert result.order.status == OrderStatus.COMPLETED
    assert result.order.payment_id == "pay_1"
    assert await _balance(uow_factory, seller.id) == Decimal("5000.00")

    async with uow_factory(readonly=True) as uow:
        transactions = await uow.wallet_transaction_repository.list_by_order(order.id)
        stored_project = await uow.project_repository.get_by_id(project.id)
    assert len(transactions) == 1
    tx = transactions[0]
    assert tx.type == TransactionType.CREDIT
    assert tx.source == TransactionSource.SALE
    assert (tx.amount, tx.balance_before, tx.balance_after) == (
        Decimal("5000.00"), Decimal("0.00"), Decimal("5000.00"),
    )
    assert tx.metadata["order_number"] == order.order_number
    assert stored_project.sales_count == 1

    assert notifier.sent == [
        ("order.confirmed", buyer.id, {
            "order_id": order.id,
            "order_number": order.order_number,
            "project_id": project.id,
            "amount": "10000.00",
        }),
        ("sale.completed", seller.id, {
            "order_id": order.id,
            "order_number": order.order_number,
            "project_id": project.id,
            "amount": "10000.00",
            "earning": "5000.00",
        }),
    ]


@pytest.mark.asyncio
async def test_duplicate_confirmation_is_a_no_op(seeder, order_service, uow_factory, notifier):
    seller = await seeder.seller()
    buyer = await seeder.user()
    project = await seeder.project(seller.id)
    order = await order_service.create_order(buyer.id, OrderCreateDTO(project_id=project.id))

    await order_service.confirm_payment(order.id, "pay_1")
    again = await order_service.confirm_payment(order.id, "pay_1")

    assert again.already_processed is True
    assert again.order.status == OrderStatus.COMPLETED
    assert await _balance(uow_factory, seller.id) == Decimal("5000.00")
    async with uow_factory(readonly=True) as uow:
        assert len(await uow.wallet_transaction_repository.list_by_order(order.id)) == 1
        assert (await uow.project_repository.get_by_id(project.id)).sales_count == 1
    assert notifier.events() == ["order.confirmed", "sale.completed"]


@pytest.mark.asyncio
async def test_confirmation_rolls_back_when_ledger_write_fails(seeder, order_service, uow_factory, notifier, monkeypatch):
    seller = await seeder.seller()
    buyer = await seeder.user()
    project = await seeder.project(seller.id)
    order = await order_service.create_order(buyer.id, OrderCreateDTO(project_id=project.id))

    async def broken_add(self, transaction):
        raise RuntimeError("disk full")

    monkeypatch.setattr(SQLAlchemyWalletTransactionRepository, "add", broken_add)

    with pytest.raises(RuntimeError):
        await order_service.confirm_payment(order.id, "pay_1")

    async with uow_factory(readonly=True) as uow:
        stored = await uow.order_repository.get_by_id(order.id)
        stored_project = await uow.project_repository.get_by_id(project.id)
    assert stored.status == OrderStatus.CREATED
    assert stored.payment_id is None
    assert stored_project.sales_count == 0
    assert await _balance(uow_factory, seller.id) == Decimal("0.00")
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_manual_confirmation_writes_audit_log(seeder, order_service, uow_factory):
    seller = await seeder.seller()
    buyer = await seeder.user()
    admin = await seeder.user(UserRole.ADMIN)
    project = await seeder.project(seller.id)
    order = await order_service.create_order(buyer.id, OrderCreateDTO(project_id=project.id))

    await order_service.confirm_payment(order.id, None, actor_id=admin.id)

    async with uow_factory(readonly=True) as uow:
        entries = await uow.audit_log_repository.list_for_entity("order", str(order.id))
    assert [entry.action.value for entry in entries] == ["ORDER_MANUALLY_CONFIRMED"]
    assert entries[0].actor_id == admin.id


@pytest.mark.asyncio
async def test_failed_order_cannot_be_confirmed(seeder, order_service, notifier):
    seller = await seeder.seller()
    buyer = await seeder.user()
    project = await seeder.project(seller.id)
    order = await order_service.create_order(buyer.id, OrderCreateDTO(project_id=project.id))

    failed = await order_service.mark_payment_failed(order.id, "Payment failed: BAD_REQUEST_ERROR - declined")
    assert failed.status == OrderStatus.PAYMENT_FAILED
    assert failed.failure_reason.startswith("Payment failed")
    assert notifier.events() == ["payment.failed"]

    with pytest.raises(PreconditionFailedException):
        await order_service.confirm_payment(order.id, "pay_late")


@pytest.mark.asyncio
async def test_confirm_unknown_order(order_service, seeder):
    with pytest.raises(OrderNotFoundException):
        await order_service.confirm_payment(4242, "pay_1")


@pytest.mark.asyncio
async def test_order_visibility(seeder, order_service):
    seller = await seeder.seller()
    buyer = await seeder.user()
    stranger = await seeder.user()
    project = await seeder.project(seller.id)
    order = await order_service.create_order(buyer.id, OrderCreateDTO(project_id=project.id))

    assert (await order_service.get_order(order.id, viewer_id=seller.id)).id == order.id
    assert (await order_service.get_order(order.id, viewer_id=stranger.id, viewer_is_admin=True)).id == order.id
    with pytest.raises(ForbiddenException):
        await order_service.get_order(order.id, viewer_id=stranger.id)

    page = await order_service.list_buyer_orders(buyer.id, page=1, size=10)
    assert page.total == 1
    assert [item.id for item in page.items] == [order.id]


@pytest.mark.asyncio
@pytest.mark.parametrize("commission, price", [("100", "10000.00"), ("50", "0.01")])
async def test_zero_earning_order_completes_without_credit(
    seeder, order_service, settings_service, uow_factory, notifier, commission, price,
):
    await settings_service.set_setting(COMMISSION_PERCENTAGE, commission, updated_by=None)
    seller = await seeder.seller()
    buyer = await seeder.user()
    project = await seeder.project(seller.id, price=price)
    order = await order_service.create_order(buyer.id, OrderCreateDTO(project_id=project.id))
    assert order.seller_earning == Decimal("0.00")
    assert order.platform_commission == Decimal(price)

    result = await order_service.confirm_payment(order.id, "pay_1")

    assert result.already_processed is False
    assert result.order.status == OrderStatus.COMPLETED
    assert await _balance(uow_factory, seller.id) == Decimal("0.00")
    async with uow_factory(readonly=True) as uow:
        assert await uow.wallet_transaction_repository.list_by_order(order.id) == []
        assert (await uow.project_repository.get_by_id(project.id)).sales_count == 1
    assert notifier.events() == ["order.confirmed", "sale.completed"]

    again = await order_service.confirm_payment(order.id, "pay_1")
    assert again.already_processed is True
