from decimal import Decimal

import pytest

from domain.common.exceptions import (
    DomainValidationException,
    PreconditionFailedException,
    WithdrawalAlreadyReviewedException,
)
from domain.common.money import to_money
from domain.order.entity import Order, OrderStatus, calculate_commission
from domain.user.entity import PayoutDetails, User
from domain.wallet.entity import TransactionSource, TransactionType, WalletTransaction
from domain.withdrawal.entity import Withdrawal, WithdrawalStatus


@pytest.mark.parametrize(
    "price,rate,commission,earning",
    [
        ("10000.00", "50", "5000.00", "5000.00"),
        ("999.99", "15", "150.00", "849.99"),
        ("0.05", "50", "0.03", "0.02"),
        ("1234.00", "0", "0.00", "1234.00"),
        ("1234.00", "100", "1234.00", "0.00"),
    ],
)
def test_commission_split_sums_to_price(price, rate, commission, earning):
    got_commission, got_earning = calculate_commission(Decimal(price), Decimal(rate))
    assert got_commission == Decimal(commission)
    assert got_earning == Decimal(earning)
    assert got_commission + got_earning == Decimal(price)


def test_commission_rejects_out_of_range_rate():
    with pytest.raises(DomainValidationException):
        calculate_commission(Decimal("100.00"), Decimal("101"))
    with pytest.raises(DomainValidationException):
        calculate_commission(Decimal("100.00"), Decimal("-1"))


def test_to_money_rejects_float():
    with pytest.raises(DomainValidationException, match="not float"):
        to_money(10.5)
    assert to_money("10.005") == Decimal("10.01")
    assert to_money(7) == Decimal("7.00")


def test_order_snapshot_and_transitions():
    order = Order.place(
        order_number="ORD-1",
        buyer_id=1,
        project_id=2,
        seller_id=3,
        price=Decimal("10000.00"),
        commission_rate=Decimal("50"),
    )
    assert order.status == OrderStatus.CREATED
    assert order.platform_commission == Decimal("5000.00")
    assert order.seller_earning == Decimal("5000.00")

    order.mark_completed("pay_1")
    assert order.is_settled()
    assert order.payment_id == "pay_1"
    assert order.paid_at is not None

    with pytest.raises(PreconditionFailedException):
        order.mark_failed("late failure")


def test_order_rejects_inconsistent_split():
    with pytest.raises(DomainValidationException):
        Order(
            id=None,
            order_number="ORD-2",
            buyer_id=1,
            project_id=2,
            seller_id=3,
            project_price=Decimal("100.00"),
            platform_commission=Decimal("40.00"),
            seller_earning=Decimal("50.00"),
            commission_rate=Decimal("40"),
        )


def _withdrawal(**kwargs) -> Withdrawal:
    return Withdrawal(id=1, withdrawal_number="WD-1", seller_id=7, amount=Decimal("500.00"), **kwargs)


def test_withdrawal_review_only_from_pending():
    withdrawal = _withdrawal()
    withdrawal.approve(reviewer_id=99, notes="ok")
    assert withdrawal.status == WithdrawalStatus.APPROVED
    assert withdrawal.reviewed_by == 99

    with pytest.raises(WithdrawalAlreadyReviewedException):
        withdrawal.reject(reviewer_id=99)


def test_withdrawal_completion_requires_approval_and_reference():
    withdrawal = _withdrawal()
    with pytest.raises(PreconditionFailedException):
        withdrawal.complete("UTR123")

    withdrawal.approve(reviewer_id=99)
    withdrawal.mark_processing()
    with pytest.raises(DomainValidationException):
        withdrawal.complete("   ")

    withdrawal.complete(" UTR123 ", payment_proof="https://files.example.com/proof.pdf")
    assert withdrawal.status == WithdrawalStatus.COMPLETED
    assert withdrawal.transaction_id == "UTR123"
    assert not withdrawal.is_open()


def test_rejected_withdrawal_cannot_be_processed():
    withdrawal = _withdrawal()
    withdrawal.reject(reviewer_id=99, notes="mismatched account")
    assert withdrawal.rejected_at is not None
    with pytest.raises(PreconditionFailedException):
        withdrawal.mark_processing()


def test_wallet_transaction_enforces_balance_arithmetic():
    tx = WalletTransaction(
        id=None,
        user_id=1,
        type=TransactionType.DEBIT,
        source=TransactionSource.WITHDRAWAL,
        amount=Decimal("300.00"),
        balance_before=Decimal("500.00"),
        balance_after=Decimal("200.00"),
    )
    assert tx.signed_amount == Decimal("-300.00")

    with pytest.raises(DomainValidationException):
        WalletTransaction(
            id=None,
            user_id=1,
            type=TransactionType.CREDIT,
            source=TransactionSource.SALE,
            amount=Decimal("300.00"),
            balance_before=Decimal("0.00"),
            balance_after=Decimal("200.00"),
        )


def test_payout_details_completeness():
    payout = PayoutDetails(bank_name="State Bank", account_number=" ", ifsc_code="SBIN0000001")
    assert payout.missing_fields() == ["account_number", "account_holder_name"]
    assert not payout.is_complete()


def test_user_debit_cannot_overdraw():
    user = User(id=1, email="seller@example.com", name="Seller", wallet_balance=Decimal("100.00"))
    with pytest.raises(DomainValidationException):
        user.debit(Decimal("100.01"))
    assert user.debit(Decimal("100.00")) == (Decimal("100.00"), Decimal("0.00"))


def test_wallet_rule_messages_are_readable():
    user = User(id=1, email="seller@example.com", name="Seller", wallet_balance=Decimal("10.00"))
    with pytest.raises(DomainValidationException, match="Credit amount must be greater than 0"):
        user.credit(Decimal("0"))
    with pytest.raises(DomainValidationException, match="exceeds balance 10.00"):
        user.debit(Decimal("10.01"))
    with pytest.raises(DomainValidationException, match="Invalid amount"):
        to_money("ten")
