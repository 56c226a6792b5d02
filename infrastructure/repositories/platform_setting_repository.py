"""
平台配置仓储实现
"""
from typing import Optional, List
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from domain.platform_setting.entity import PlatformSetting
from domain.platform_setting.repository import PlatformSettingRepository
from infrastructure.models.platform_setting import PlatformSettingModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyPlatformSettingRepository(PlatformSettingRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: PlatformSettingModel) -> PlatformSetting:
        return PlatformSetting(
            key=model.key,
            value=model.value,
            updated_by=model.updated_by,
            updated_at=model.updated_at,
        )

    async def get(self, key: str) -> Optional[PlatformSetting]:
        result = await self.session.execute(
            select(PlatformSettingModel).where(PlatformSettingModel.key == key)
        )
        db_setting = result.scalar_one_or_none()
        return self._to_entity(db_setting) if db_setting else None

    async def list_all(self) -> List[PlatformSetting]:
        result = await self.session.execute(
            select(PlatformSettingModel).order_by(PlatformSettingModel.key)
        )
        return [self._to_entity(s) for s in result.scalars().all()]

    async def upsert(self, setting: PlatformSetting) -> PlatformSetting:
        # 先锁定已有行，避免两个管理员同时写入时互相覆盖审计信息
        result = await self.session.execute(
            select(PlatformSettingModel)
            .where(PlatformSettingModel.key == setting.key)
            .with_for_update()
        )
        db_setting = result.scalar_one_or_none()
        if db_setting is None:
            db_setting = PlatformSettingModel(key=setting.key)
            self.session.add(db_setting)
        db_setting.value = setting.value
        db_setting.updated_by = setting.updated_by
        db_setting.updated_at = datetime.now(timezone.utc)

        await self.session.flush()
        await self.session.refresh(db_setting)
        logger.info("platform_setting_saved", key=setting.key, value=setting.value, updated_by=setting.updated_by)
        return self._to_entity(db_setting)
