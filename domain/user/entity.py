"""
用户领域实体 - 钱包持有人（买家/卖家/管理员）
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
import re

from domain.common.exceptions import DomainValidationException
from domain.common.money import to_money


class UserRole(str, Enum):
    """用户角色"""
    BUYER = "BUYER"
    SELLER = "SELLER"
    ADMIN = "ADMIN"


@dataclass
class PayoutDetails:
    """收款信息值对象"""

    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    ifsc_code: Optional[str] = None
    account_holder_name: Optional[str] = None
    upi_id: Optional[str] = None

    REQUIRED_FIELDS = ("bank_name", "account_number", "ifsc_code", "account_holder_name")

    def missing_fields(self) -> list[str]:
        return [name for name in self.REQUIRED_FIELDS if not (getattr(self, name) or "").strip()]

    def is_complete(self) -> bool:
        """业务规则：银行名、账号、IFSC、户名四项都必须填写"""
        return not self.missing_fields()

    def snapshot(self) -> dict:
        """提现申请时复制一份，后续修改资料不影响已提交的申请"""
        return {
            "bank_name": self.bank_name,
            "account_number": self.account_number,
            "ifsc_code": self.ifsc_code,
            "account_holder_name": self.account_holder_name,
            "upi_id": self.upi_id,
        }


@dataclass
class User:
    """用户实体 - 钱包余额是交易流水的冗余汇总"""

    id: Optional[int]
    email: str
    name: str
    role: UserRole = UserRole.BUYER
    wallet_balance: Decimal = field(default_factory=lambda: Decimal("0.00"))
    payout: PayoutDetails = field(default_factory=PayoutDetails)
    version: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.validate_email()
        self.wallet_balance = to_money(self.wallet_balance)
        if self.wallet_balance < 0:
            raise DomainValidationException(
                f"Wallet balance cannot be negative: {self.wallet_balance}",
                field="wallet_balance",
            )
        if isinstance(self.role, str):
            self.role = UserRole(self.role)

    def validate_email(self) -> None:
        """业务规则：邮箱格式验证"""
        email_pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        if not re.match(email_pattern, self.email):
            raise DomainValidationException(f"Invalid email address: {self.email}", field="email")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def credit(self, amount: Decimal) -> tuple[Decimal, Decimal]:
        """入账，返回 (变更前余额, 变更后余额)"""
        amount = to_money(amount)
        if amount <= 0:
            raise DomainValidationException(f"Credit amount must be greater than 0: {amount}", field="amount")
        before = self.wallet_balance
        self.wallet_balance = before + amount
        self.updated_at = datetime.now(timezone.utc)
        return before, self.wallet_balance

    def debit(self, amount: Decimal) -> tuple[Decimal, Decimal]:
        """出账，余额不足时由调用方先行校验"""
        amount = to_money(amount)
        if amount <= 0:
            raise DomainValidationException(f"Debit amount must be greater than 0: {amount}", field="amount")
        if amount > self.wallet_balance:
            raise DomainValidationException(
                f"Debit amount {amount} exceeds balance {self.wallet_balance}",
                field="amount",
            )
        before = self.wallet_balance
        self.wallet_balance = before - amount
        self.updated_at = datetime.now(timezone.utc)
        return before, self.wallet_balance
