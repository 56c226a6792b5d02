from decimal import Decimal

import pytest

from application.dto import OrderCreateDTO
from application.ports.notification import safe_notify
from application.services.notifications import notifications_for, publish_events
from application.services.order_service import OrderService
from application.services.wallet_service import WalletService
from domain.order.events import OrderPaymentConfirmed
from domain.withdrawal.events import WithdrawalCompleted
from infrastructure.notifications import CeleryNotifier, LoggingNotifier, build_notifier
from infrastructure.tasks import TaskDispatcher
from infrastructure.tasks.tasks.notifications import render_subject


class RecordingDispatcher:
    def __init__(self) -> None:
        self.calls = []

    def send_notification(self, event, recipient_id, data):
        self.calls.append((event, recipient_id, data))


@pytest.mark.asyncio
async def test_notification_failure_does_not_undo_confirmation(seeder, uow_factory, settings_service, failing_notifier):
    service = OrderService(uow_factory, settings_service, failing_notifier)
    seller = await seeder.seller()
    buyer = await seeder.user()
    project = await seeder.project(seller.id)
    order = await service.create_order(buyer.id, OrderCreateDTO(project_id=project.id))

    result = await service.confirm_payment(order.id, "pay_1")

    assert result.already_processed is False
    async with uow_factory(readonly=True) as uow:
        assert (await uow.user_repository.get_by_id(seller.id)).wallet_balance == Decimal("5000.00")


@pytest.mark.asyncio
async def test_notification_failure_does_not_undo_withdrawal(seeder, make_sale, uow_factory, settings_service, failing_notifier):
    seller = await seeder.seller()
    buyer = await seeder.user()
    await make_sale(seller, buyer)
    service = WalletService(uow_factory, settings_service, failing_notifier)

    withdrawal = await service.request_withdrawal(seller.id, Decimal("1000.00"))

    assert withdrawal.id is not None
    async with uow_factory(readonly=True) as uow:
        assert (await uow.user_repository.get_by_id(seller.id)).wallet_balance == Decimal("4000.00")


@pytest.mark.asyncio
async def test_safe_notify_reports_outcome(notifier, failing_notifier):
    assert await safe_notify(None, "order.confirmed", 1, {}) is False
    assert await safe_notify(failing_notifier, "order.confirmed", 1, {}) is False
    assert await safe_notify(notifier, "order.confirmed", 1, {"order_id": 1}) is True
    assert notifier.sent == [("order.confirmed", 1, {"order_id": 1})]


@pytest.mark.asyncio
async def test_publish_events_fans_out_confirmation(notifier):
    event = OrderPaymentConfirmed(
        order_id=1,
        order_number="ORD-1",
        buyer_id=10,
        seller_id=20,
        project_id=30,
        project_price="10000.00",
        seller_earning="5000.00",
        payment_id="pay_1",
    )

    assert await publish_events(notifier, [event, object()]) == 2
    assert [(name, recipient) for name, recipient, _ in notifier.sent] == [
        ("order.confirmed", 10),
        ("sale.completed", 20),
    ]


def test_completed_withdrawal_notifies_seller():
    event = WithdrawalCompleted(
        withdrawal_id=5,
        withdrawal_number="WD-5",
        seller_id=20,
        amount="1000.00",
        transaction_id="UTR0001",
    )
    assert notifications_for(event) == [("withdrawal.completed", 20, {
        "withdrawal_id": 5,
        "withdrawal_number": "WD-5",
        "amount": "1000.00",
        "transaction_id": "UTR0001",
    })]


@pytest.mark.asyncio
async def test_celery_notifier_hands_off_to_dispatcher():
    dispatcher = RecordingDispatcher()
    notifier = CeleryNotifier(dispatcher=dispatcher)

    await notifier.notify("withdrawal.requested", 7, {"amount": "300.00"})

    assert dispatcher.calls == [("withdrawal.requested", 7, {"amount": "300.00"})]


def test_build_notifier_defaults_to_logging():
    assert isinstance(build_notifier("log"), LoggingNotifier)
    assert isinstance(build_notifier("carrier-pigeon"), LoggingNotifier)


def test_render_subject():
    assert render_subject("sale.completed", {"order_number": "ORD-9"}) == "You made a sale: order ORD-9"
    assert render_subject("withdrawal.reviewed", {"withdrawal_number": "WD-1", "status": "REJECTED"}) == (
        "Withdrawal WD-1 rejected"
    )
    assert render_subject("unknown.event", {}) == "Notification: unknown.event"


def test_dispatcher_runs_task_inline_when_eager():
    result = TaskDispatcher().send_notification("withdrawal.completed", 7, {"withdrawal_number": "WD-7"})

    assert result.successful()
    assert result.get() == {
        "event": "withdrawal.completed",
        "recipient_id": 7,
        "subject": "Withdrawal WD-7 paid out",
    }
