"""
项目（商品）领域实体
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from domain.common.money import to_money


class ProjectStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


@dataclass
class Project:
    id: Optional[int]
    seller_id: int
    title: str
    price: Decimal
    status: ProjectStatus = ProjectStatus.DRAFT
    sales_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.price = to_money(self.price)
        if isinstance(self.status, str):
            self.status = ProjectStatus(self.status)

    def is_purchasable(self) -> bool:
        return self.status == ProjectStatus.APPROVED
