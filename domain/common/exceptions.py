"""领域层业务异常定义，供领域与基础设施使用。

核心（core）层仅负责全局映射与异常处理，尽量避免领域层反向依赖核心层。
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional
from shared.codes import BusinessCode


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class DomainValidationException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
        error_type: str = "DomainValidationError",
    ):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type=error_type,
            details=details,
            field=field,
        )


class ResourceNotFoundException(BusinessException):
    """通用资源不存在异常"""

    resource: str = "Resource"

    def __init__(self, identifier: Optional[object] = None):
        details = {"id": identifier} if identifier is not None else None
        super().__init__(
            code=BusinessCode.NOT_FOUND,
            message=f"{self.resource} not found",
            error_type=f"{self.resource}NotFound",
            details=details,
        )


class UserNotFoundException(ResourceNotFoundException):
    resource = "User"

    def __init__(self, user_id: Optional[int] = None):
        super().__init__(user_id)
        self.code = BusinessCode.USER_NOT_FOUND


class ProjectNotFoundException(ResourceNotFoundException):
    resource = "Project"


class OrderNotFoundException(ResourceNotFoundException):
    resource = "Order"


class WithdrawalNotFoundException(ResourceNotFoundException):
    resource = "Withdrawal"


class PreconditionFailedException(BusinessException):
    """实体状态不允许当前操作"""

    def __init__(
        self,
        message: str,
        *,
        error_type: str = "PreconditionFailed",
        details: Optional[dict] = None,
    ):
        super().__init__(
            code=BusinessCode.PRECONDITION_FAILED,
            message=message,
            error_type=error_type,
            details=details,
            field="status",
        )


class ProjectNotPurchasableException(PreconditionFailedException):
    def __init__(self, project_id: int, status: str):
        super().__init__(
            "Project is not available for purchase",
            error_type="ProjectNotPurchasable",
            details={"project_id": project_id, "status": status},
        )


class WithdrawalAlreadyReviewedException(PreconditionFailedException):
    def __init__(self, withdrawal_id: int, status: str):
        super().__init__(
            "Withdrawal has already been reviewed",
            error_type="WithdrawalAlreadyReviewed",
            details={"withdrawal_id": withdrawal_id, "status": status},
        )


class InsufficientFundsException(BusinessException):
    def __init__(self, requested: Decimal, available: Decimal):
        super().__init__(
            code=BusinessCode.INSUFFICIENT_FUNDS,
            message="Insufficient balance",
            error_type="InsufficientFunds",
            details={"requested": str(requested), "available": str(available)},
            field="amount",
        )


class BelowMinimumWithdrawalException(DomainValidationException):
    def __init__(self, amount: Decimal, minimum: Decimal, currency: str = ""):
        prefix = f"{currency} " if currency else ""
        super().__init__(
            f"Minimum withdrawal amount is {prefix}{minimum}",
            field="amount",
            details={"amount": str(amount), "minimum": str(minimum)},
            error_type="BelowMinimumWithdrawal",
        )


class IncompletePayoutDetailsException(DomainValidationException):
    def __init__(self, missing: list[str]):
        super().__init__(
            "Please complete your bank details before requesting a withdrawal",
            field="bank_details",
            details={"missing": missing},
            error_type="IncompletePayoutDetails",
        )


class ConcurrentUpdateException(BusinessException):
    """乐观锁版本冲突（并发修改同一行）"""

    def __init__(self, entity: str, entity_id: Optional[int] = None):
        super().__init__(
            code=BusinessCode.CONCURRENT_UPDATE,
            message=f"{entity} was modified concurrently, please retry",
            error_type="ConcurrentUpdate",
            details={"entity": entity, "id": entity_id},
        )
