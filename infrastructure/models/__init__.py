"""Infrastructure models package exports."""
from .base import Base, metadata
from .user import UserModel
from .project import ProjectModel
from .order import OrderModel
from .withdrawal import WithdrawalModel
from .wallet_transaction import WalletTransactionModel
from .platform_setting import PlatformSettingModel
from .audit_log import AuditLogModel

__all__ = [
    "Base",
    "metadata",
    "UserModel",
    "ProjectModel",
    "OrderModel",
    "WithdrawalModel",
    "WalletTransactionModel",
    "PlatformSettingModel",
    "AuditLogModel",
]
