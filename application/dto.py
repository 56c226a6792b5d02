"""
数据传输对象（DTO）- 应用层与表现层之间的数据传输

金额字段统一为 Decimal，JSON 输出为字符串，避免浮点误差。
"""
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator, model_serializer, ConfigDict
from typing import Optional, Any, List
from datetime import datetime
from core.config import settings
from core.response import utc_isoformat
from domain.order.entity import OrderStatus, PaymentGatewayName
from domain.wallet.entity import TransactionSource, TransactionType
from domain.withdrawal.entity import ReviewDecision, WithdrawalStatus


class DTOBase(BaseModel):
    """Base DTO: unify datetime serialization to UTC-Z for all subclasses."""

    @model_serializer(mode="wrap")
    def _serialize_model(self, handler):  # type: ignore[override]
        data = handler(self)

        def convert(value):
            if isinstance(value, datetime):
                return utc_isoformat(value)
            if isinstance(value, list):
                return [convert(v) for v in value]
            if isinstance(value, tuple):
                return tuple(convert(v) for v in value)
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            return value

        return convert(data)


# ---------------------------------------------------------------- 订单

class OrderCreateDTO(DTOBase):
    """下单请求DTO"""
    project_id: int = Field(..., gt=0, description="项目ID")
    payment_gateway: PaymentGatewayName = Field(PaymentGatewayName.RAZORPAY, description="支付渠道")
    payment_order_id: Optional[str] = Field(None, max_length=100, description="支付网关侧订单号")

    @field_validator("payment_order_id")
    def _strip_empty(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class OrderConfirmDTO(DTOBase):
    """管理员手动确认支付DTO"""
    payment_id: Optional[str] = Field(None, max_length=100, description="支付网关流水号")


class PaymentVerifyDTO(DTOBase):
    """前端支付回调校验DTO（字段名与 Razorpay Checkout 回调一致）"""
    order_id: int = Field(..., gt=0, description="订单ID")
    razorpay_payment_id: str = Field(..., min_length=1, max_length=100)
    razorpay_signature: str = Field(..., min_length=1, max_length=256)


class OrderResponseDTO(DTOBase):
    """订单响应DTO"""
    id: int
    order_number: str
    buyer_id: int
    project_id: int
    seller_id: int
    project_price: Decimal
    platform_commission: Decimal
    seller_earning: Decimal
    commission_rate: Decimal
    status: OrderStatus
    payment_gateway: PaymentGatewayName
    payment_order_id: Optional[str]
    payment_id: Optional[str]
    failure_reason: Optional[str]
    paid_at: Optional[datetime]
    completed_at: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class PaymentConfirmationDTO(DTOBase):
    """支付确认结果；already_processed 为 True 表示重复确认未产生任何修改"""
    order: OrderResponseDTO
    already_processed: bool = False


# ---------------------------------------------------------------- 钱包

class WalletBalanceDTO(DTOBase):
    user_id: int
    balance: Decimal
    currency: str


class WalletTransactionDTO(DTOBase):
    """钱包流水DTO"""
    id: int
    user_id: int
    type: TransactionType
    source: TransactionSource
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    description: str
    order_id: Optional[int]
    withdrawal_id: Optional[int]
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class LedgerReportDTO(DTOBase):
    """对账结果：余额与流水汇总是否一致，前后余额链是否连续"""
    user_id: int
    balance: Decimal
    ledger_sum: Decimal
    transaction_count: int
    chain_ok: bool
    consistent: bool
    broken_transaction_id: Optional[int] = None


# ---------------------------------------------------------------- 提现

class WithdrawalCreateDTO(DTOBase):
    """提现申请DTO"""
    amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2, description="提现金额")


class WithdrawalReviewDTO(DTOBase):
    """提现审核DTO"""
    decision: ReviewDecision = Field(..., description="APPROVED 或 REJECTED")
    notes: Optional[str] = Field(None, max_length=1000, description="审核备注")


class WithdrawalCompleteDTO(DTOBase):
    """提现完成DTO（线下转账后回填凭证）"""
    transaction_id: str = Field(..., min_length=1, max_length=100, description="银行转账流水号")
    payment_proof: Optional[str] = Field(None, max_length=500, description="转账凭证链接")


class WithdrawalResponseDTO(DTOBase):
    """提现响应DTO"""
    id: int
    withdrawal_number: str
    seller_id: int
    amount: Decimal
    bank_details: dict[str, Any] = Field(default_factory=dict)
    status: WithdrawalStatus
    reviewed_by: Optional[int]
    reviewed_at: Optional[datetime]
    review_notes: Optional[str]
    rejected_at: Optional[datetime]
    transaction_id: Optional[str]
    payment_proof: Optional[str]
    completed_at: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------- 平台配置

class PlatformSettingDTO(DTOBase):
    key: str
    value: str
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PlatformSettingUpdateDTO(DTOBase):
    value: str = Field(..., min_length=1, max_length=255)


# ---------------------------------------------------------------- 通用

class PaginationParams(DTOBase):
    """分页查询参数"""
    page: int = Field(1, ge=1, description="页码，从1开始")
    size: int = Field(
        default=settings.DEFAULT_PAGE_SIZE,
        ge=1,
        le=settings.MAX_PAGE_SIZE,
        description="每页大小",
    )


class PageDTO(DTOBase):
    """应用层分页结果，表现层转换为统一分页响应"""
    items: List[Any]
    total: int
    page: int
    size: int
