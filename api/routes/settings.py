"""
平台配置API路由（管理员）
"""
from typing import Dict

from fastapi import APIRouter, Depends

from api.dependencies import Actor, get_settings_service, require_admin
from application.dto import PlatformSettingDTO, PlatformSettingUpdateDTO
from application.services.platform_settings_service import PlatformSettingsService
from core.response import Response as ApiResponse, success_response

router = APIRouter(
    prefix="/settings",
    tags=["Platform Settings"]
)


@router.get("", summary="全部平台配置", response_model=ApiResponse[Dict[str, str]])
async def list_settings(
    _admin: Actor = Depends(require_admin),
    service: PlatformSettingsService = Depends(get_settings_service),
):
    return success_response(data=await service.get_all())


@router.put("/{key}", summary="更新平台配置", response_model=ApiResponse[PlatformSettingDTO])
async def update_setting(
    key: str,
    payload: PlatformSettingUpdateDTO,
    admin: Actor = Depends(require_admin),
    service: PlatformSettingsService = Depends(get_settings_service),
):
    """新值对已创建的订单不生效（订单保存下单时的佣金比例）"""
    setting = await service.set_setting(key, payload.value, admin.id)
    return success_response(data=setting, message="Setting updated")


@router.delete("/cache", summary="清空平台配置缓存", response_model=ApiResponse[None])
async def clear_settings_cache(
    admin: Actor = Depends(require_admin),
    service: PlatformSettingsService = Depends(get_settings_service),
):
    """直接改库后调用，下一次读取回源数据库"""
    await service.clear_cache()
    return success_response(message="Settings cache cleared")
