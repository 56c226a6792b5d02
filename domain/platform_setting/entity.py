"""
平台配置实体 - 简单键值对
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


COMMISSION_PERCENTAGE = "commission_percentage"
MINIMUM_WITHDRAWAL = "minimum_withdrawal"
CURRENCY = "currency"


@dataclass
class PlatformSetting:
    key: str
    value: str
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None
