"""
订单API路由 - 下单、查询与管理员手动确认支付
"""
from fastapi import APIRouter, Depends

from api.dependencies import Actor, get_current_actor, get_order_service, require_admin
from application.dto import (
    OrderConfirmDTO,
    OrderCreateDTO,
    OrderResponseDTO,
    PaginationParams,
    PaymentConfirmationDTO,
)
from application.services.order_service import OrderService
from core.response import PaginatedData, Response as ApiResponse, paginated_response, success_response

router = APIRouter(
    prefix="/orders",
    tags=["Orders"]
)


@router.post("", summary="创建订单", response_model=ApiResponse[OrderResponseDTO])
async def create_order(
    payload: OrderCreateDTO,
    actor: Actor = Depends(get_current_actor),
    service: OrderService = Depends(get_order_service),
):
    """
    以当前用户为买家创建订单

    佣金按下单时的平台比例计算并写入订单，之后不再变化。
    """
    order = await service.create_order(actor.id, payload)
    return success_response(data=order, message="Order created")


@router.get("", summary="我的订单", response_model=ApiResponse[PaginatedData[OrderResponseDTO]])
async def list_my_orders(
    params: PaginationParams = Depends(),
    actor: Actor = Depends(get_current_actor),
    service: OrderService = Depends(get_order_service),
):
    page = await service.list_buyer_orders(actor.id, params.page, params.size)
    return paginated_response(page)


@router.get("/{order_id}", summary="订单详情", response_model=ApiResponse[OrderResponseDTO])
async def get_order(
    order_id: int,
    actor: Actor = Depends(get_current_actor),
    service: OrderService = Depends(get_order_service),
):
    order = await service.get_order(order_id, viewer_id=actor.id, viewer_is_admin=actor.is_admin)
    return success_response(data=order)


@router.post(
    "/{order_id}/confirm",
    summary="手动确认支付（管理员）",
    response_model=ApiResponse[PaymentConfirmationDTO],
)
async def confirm_order_payment(
    order_id: int,
    payload: OrderConfirmDTO,
    admin: Actor = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    """重复确认不会重复入账，返回 already_processed=true"""
    result = await service.confirm_payment(
        order_id,
        payload.payment_id,
        source="manual",
        actor_id=admin.id,
    )
    message = "Order already processed" if result.already_processed else "Payment confirmed"
    return success_response(data=result, message=message)
