"""
金额工具 - 统一使用 Decimal 定点运算，精确到最小货币单位（两位小数）
"""
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

from domain.common.exceptions import DomainValidationException

MINOR_UNIT = Decimal("0.01")

MoneyLike = Union[Decimal, int, str]


def to_money(value: MoneyLike) -> Decimal:
    """转换为两位小数的 Decimal；拒绝 float，避免二进制浮点误差混入账本"""
    if isinstance(value, bool) or isinstance(value, float):
        raise DomainValidationException(
            f"Money amounts must be Decimal or string, not float: {value!r}",
            field="amount",
        )
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as exc:
        raise DomainValidationException(f"Invalid amount: {value!r}", field="amount") from exc
    if not amount.is_finite():
        raise DomainValidationException(f"Invalid amount: {value!r}", field="amount")
    return amount.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)
