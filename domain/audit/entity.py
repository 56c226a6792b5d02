"""
审计日志实体 - 管理员对资金相关实体的操作记录
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class AuditAction(str, Enum):
    WITHDRAWAL_APPROVED = "WITHDRAWAL_APPROVED"
    WITHDRAWAL_REJECTED = "WITHDRAWAL_REJECTED"
    WITHDRAWAL_PROCESSING = "WITHDRAWAL_PROCESSING"
    WITHDRAWAL_COMPLETED = "WITHDRAWAL_COMPLETED"
    ORDER_MANUALLY_CONFIRMED = "ORDER_MANUALLY_CONFIRMED"
    SETTING_UPDATED = "SETTING_UPDATED"


@dataclass
class AuditLog:
    id: Optional[int]
    actor_id: Optional[int]
    action: AuditAction
    entity_type: str
    entity_id: str
    changes: dict = field(default_factory=dict)
    created_at: Optional[datetime] = None
