"""
用户数据库模型 - SQLAlchemy ORM模型
注意：这是基础设施层的实现细节，不是领域模型
"""
from sqlalchemy import CheckConstraint, Column, Integer, String, Numeric, DateTime
from datetime import datetime, timezone

from .base import Base


class UserModel(Base):
    """
    用户数据库模型

    wallet_balance 是流水的冗余汇总；version 为乐观锁版本号，
    每次 UPDATE 自动 +1 并校验，防止并发读改写丢失更新。
    """
    __tablename__ = "users"

    # 主键
    id = Column(Integer, primary_key=True, index=True)

    # 用户基本信息
    email = Column(String(100), unique=True, index=True, nullable=False, comment="邮箱")
    name = Column(String(100), nullable=False, comment="姓名")
    role = Column(String(20), nullable=False, default="BUYER", comment="角色: BUYER/SELLER/ADMIN")

    # 钱包
    wallet_balance = Column(
        Numeric(precision=15, scale=2),
        nullable=False,
        default=0,
        comment="钱包余额（流水冗余）"
    )

    # 收款信息
    bank_name = Column(String(100), nullable=True, comment="开户行")
    account_number = Column(String(50), nullable=True, comment="银行账号")
    ifsc_code = Column(String(20), nullable=True, comment="IFSC 路由码")
    account_holder_name = Column(String(100), nullable=True, comment="户名")
    upi_id = Column(String(100), nullable=True, comment="UPI ID")

    # 乐观锁
    version = Column(Integer, nullable=False, default=1, comment="行版本号")

    # 时间信息
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间"
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="更新时间"
    )

    __table_args__ = (
        CheckConstraint("wallet_balance >= 0", name="ck_users_wallet_balance_non_negative"),
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<UserModel(id={self.id}, email='{self.email}', balance={self.wallet_balance})>"
