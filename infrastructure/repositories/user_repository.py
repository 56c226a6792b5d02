"""
用户仓储实现 - 使用SQLAlchemy实现数据访问
"""
from typing import Optional
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm.exc import StaleDataError

from domain.common.exceptions import ConcurrentUpdateException, UserNotFoundException
from domain.user.entity import User, UserRole, PayoutDetails
from domain.user.repository import UserRepository
from infrastructure.models.user import UserModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyUserRepository(UserRepository):
    """用户仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: UserModel) -> User:
        """将数据库模型转换为领域实体"""
        return User(
            id=model.id,
            email=model.email,
            name=model.name,
            role=UserRole(model.role),
            wallet_balance=Decimal(str(model.wallet_balance)),
            payout=PayoutDetails(
                bank_name=model.bank_name,
                account_number=model.account_number,
                ifsc_code=model.ifsc_code,
                account_holder_name=model.account_holder_name,
                upi_id=model.upi_id,
            ),
            version=model.version,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _apply(self, model: UserModel, entity: User) -> None:
        model.email = entity.email
        model.name = entity.name
        model.role = entity.role.value
        model.wallet_balance = entity.wallet_balance
        model.bank_name = entity.payout.bank_name
        model.account_number = entity.payout.account_number
        model.ifsc_code = entity.payout.ifsc_code
        model.account_holder_name = entity.payout.account_holder_name
        model.upi_id = entity.payout.upi_id

    async def create(self, user: User) -> User:
        """创建用户"""
        db_user = UserModel(id=user.id)
        self._apply(db_user, user)
        self.session.add(db_user)
        await self.session.flush()
        await self.session.refresh(db_user)
        logger.info("user_created", user_id=db_user.id, role=db_user.role)
        return self._to_entity(db_user)

    async def get_by_id(self, user_id: int, *, for_update: bool = False) -> Optional[User]:
        """根据ID获取用户"""
        stmt = select(UserModel).where(UserModel.id == user_id)
        if for_update:
            # 行锁 + 强制刷新身份映射中的旧值，保证读到的是当前已提交余额
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        db_user = result.scalar_one_or_none()
        return self._to_entity(db_user) if db_user else None

    async def update(self, user: User) -> User:
        """更新用户（版本号不一致时视为并发修改）"""
        result = await self.session.execute(
            select(UserModel).where(UserModel.id == user.id)
        )
        db_user = result.scalar_one_or_none()
        if not db_user:
            raise UserNotFoundException(user.id)
        if db_user.version != user.version:
            raise ConcurrentUpdateException("User", user.id)

        self._apply(db_user, user)
        try:
            await self.session.flush()
        except StaleDataError as exc:
            logger.warning("user_update_conflict", user_id=user.id, version=user.version)
            raise ConcurrentUpdateException("User", user.id) from exc
        await self.session.refresh(db_user)

        user.version = db_user.version
        logger.info(
            "user_wallet_updated",
            user_id=db_user.id,
            wallet_balance=str(db_user.wallet_balance),
            version=db_user.version,
        )
        return self._to_entity(db_user)
