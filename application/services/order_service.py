"""
订单应用服务（application/services）- 下单、支付确认与网关回调编排

一次调用对应一个 Unit of Work；通知只在事务提交之后发送。
"""
from __future__ import annotations

from typing import Callable, Optional

from application.dto import OrderCreateDTO, OrderResponseDTO, PageDTO, PaymentConfirmationDTO, PaymentVerifyDTO
from application.dtos.payments import PaymentEventResult, PaymentEventType, WebhookEvent
from application.ports.notification import NotificationPort
from application.ports.payment_gateway import PaymentGateway
from application.services.notifications import publish_events
from application.services.platform_settings_service import PlatformSettingsService
from application.services.retry import retry_on_conflict
from core.exceptions import ForbiddenException
from core.logging_config import get_logger
from domain.common.exceptions import OrderNotFoundException, PreconditionFailedException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.entity import Order
from domain.order.service import OrderDomainService
from domain.wallet.service import WalletDomainService


logger = get_logger(__name__)


class OrderService:
    """订单应用服务"""

    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        settings_provider: PlatformSettingsService,
        notifier: Optional[NotificationPort] = None,
    ):
        self._uow_factory = uow_factory
        self._settings = settings_provider
        self._notifier = notifier

    @staticmethod
    def _domain_service(uow: AbstractUnitOfWork) -> OrderDomainService:
        wallet_service = WalletDomainService(uow.user_repository, uow.wallet_transaction_repository)
        return OrderDomainService(
            uow.order_repository,
            uow.project_repository,
            wallet_service,
            uow.audit_log_repository,
        )

    async def create_order(self, buyer_id: int, data: OrderCreateDTO) -> OrderResponseDTO:
        """创建订单；佣金比例在此读取一次并快照到订单"""
        commission_rate = await self._settings.get_commission_rate()
        async with self._uow_factory() as uow:
            service = self._domain_service(uow)
            order = await service.place_order(
                buyer_id,
                data.project_id,
                commission_rate=commission_rate,
                payment_gateway=data.payment_gateway,
                payment_order_id=data.payment_order_id,
            )
            service.clear_events()

        logger.info(
            "order_created",
            order_id=order.id,
            order_number=order.order_number,
            buyer_id=buyer_id,
            project_id=order.project_id,
            commission_rate=str(order.commission_rate),
        )
        return self._to_response_dto(order)

    async def confirm_payment(
        self,
        order_id: int,
        payment_id: Optional[str] = None,
        *,
        source: str = "manual",
        actor_id: Optional[int] = None,
    ) -> PaymentConfirmationDTO:
        """
        确认支付并为卖家入账

        订单行在事务内加锁后再判断状态：已入账的订单直接返回，
        不产生第二笔入账，也不发送通知。任何一步失败整体回滚。
        """
        async def _confirm():
            async with self._uow_factory() as uow:
                service = self._domain_service(uow)
                locked = await service.get_locked_order(order_id)
                confirmed, changed = await service.confirm_payment(locked, payment_id, actor_id=actor_id)
                return confirmed, changed, service.clear_events()

        order, processed, events = await retry_on_conflict(_confirm)

        if not processed:
            logger.info(
                "order_already_processed",
                order_id=order.id,
                status=order.status.value,
                source=source,
            )
            return PaymentConfirmationDTO(order=self._to_response_dto(order), already_processed=True)

        logger.info(
            "order_confirmed",
            order_id=order.id,
            order_number=order.order_number,
            seller_id=order.seller_id,
            seller_earning=str(order.seller_earning),
            payment_id=order.payment_id,
            source=source,
            actor_id=actor_id,
        )
        await publish_events(self._notifier, events)
        return PaymentConfirmationDTO(order=self._to_response_dto(order), already_processed=False)

    async def verify_client_payment(
        self,
        buyer_id: int,
        data: PaymentVerifyDTO,
        gateway: PaymentGateway,
    ) -> PaymentConfirmationDTO:
        """
        校验前端支付回调并确认支付

        签名基于网关侧订单号与支付流水号；只有订单买家可提交。
        校验通过后与 webhook 走同一条幂等确认路径。
        """
        async with self._uow_factory(readonly=True) as uow:
            order = await uow.order_repository.get_by_id(data.order_id)
        if not order:
            raise OrderNotFoundException(data.order_id)
        if order.buyer_id != buyer_id:
            raise ForbiddenException("You do not have access to this order")
        if not order.payment_order_id:
            raise PreconditionFailedException(
                "Order has no gateway order to verify against",
                error_type="MissingGatewayOrder",
                details={"order_id": order.id, "status": order.status.value},
            )

        gateway.verify_payment(order.payment_order_id, data.razorpay_payment_id, data.razorpay_signature)
        return await self.confirm_payment(
            order.id,
            data.razorpay_payment_id,
            source=f"callback:{gateway.provider}",
        )

    async def mark_payment_failed(self, order_id: int, reason: Optional[str] = None) -> OrderResponseDTO:
        async with self._uow_factory() as uow:
            service = self._domain_service(uow)
            order = await service.get_locked_order(order_id)
            order, processed = await service.mark_payment_failed(order, reason)
            events = service.clear_events()

        if processed:
            logger.info("order_payment_failed", order_id=order.id, reason=reason)
            await publish_events(self._notifier, events)
        return self._to_response_dto(order)

    async def handle_payment_event(self, event: WebhookEvent) -> PaymentEventResult:
        """
        处理已验签的网关事件

        找不到对应订单或事件类型未知时只记录日志并返回未处理，
        由调用方正常应答，避免网关无限重试。
        """
        if event.type not in (PaymentEventType.CAPTURED, PaymentEventType.FAILED):
            logger.info("payment_event_ignored", provider=event.provider, event_type=event.type, event_id=event.id)
            return PaymentEventResult(event_type=event.type, handled=False, reason="unsupported_event")

        order = await self._find_by_payment_order_id(event.payment_order_id)
        if order is None:
            logger.warning(
                "payment_event_order_not_found",
                provider=event.provider,
                event_type=event.type,
                payment_order_id=event.payment_order_id,
            )
            return PaymentEventResult(event_type=event.type, handled=False, reason="order_not_found")

        try:
            if event.type == PaymentEventType.CAPTURED:
                confirmation = await self.confirm_payment(order.id, event.payment_id, source=f"webhook:{event.provider}")
                result = confirmation.order
                already_processed = confirmation.already_processed
            else:
                result = await self.mark_payment_failed(order.id, event.error_description)
                already_processed = False
        except PreconditionFailedException as exc:
            # 例如失败订单又收到成功回调，需人工核对，不让网关重试；
            # 状态取自加锁后读到的订单（异常 details），而非事务前的查询
            logger.error(
                "payment_event_rejected",
                order_id=order.id,
                event_type=event.type,
                error=exc.message,
            )
            return PaymentEventResult(
                event_type=event.type,
                handled=False,
                order_id=order.id,
                order_status=(exc.details or {}).get("status") or order.status.value,
                reason=exc.error_type,
            )

        return PaymentEventResult(
            event_type=event.type,
            handled=True,
            order_id=result.id,
            order_status=result.status.value,
            already_processed=already_processed,
        )

    async def _find_by_payment_order_id(self, payment_order_id: Optional[str]) -> Optional[Order]:
        if not payment_order_id:
            return None
        async with self._uow_factory(readonly=True) as uow:
            return await uow.order_repository.get_by_payment_order_id(payment_order_id)

    async def get_order(
        self,
        order_id: int,
        *,
        viewer_id: Optional[int] = None,
        viewer_is_admin: bool = False,
    ) -> OrderResponseDTO:
        """获取订单；指定 viewer 时仅买家、卖家与管理员可见"""
        async with self._uow_factory(readonly=True) as uow:
            order = await uow.order_repository.get_by_id(order_id)
        if not order:
            raise OrderNotFoundException(order_id)
        if viewer_id is not None and not viewer_is_admin and viewer_id not in (order.buyer_id, order.seller_id):
            raise ForbiddenException("You do not have access to this order")
        return self._to_response_dto(order)

    async def list_buyer_orders(self, buyer_id: int, page: int = 1, size: int = 20) -> PageDTO:
        """买家订单列表（带总数）"""
        async with self._uow_factory(readonly=True) as uow:
            orders = await uow.order_repository.list_by_buyer(buyer_id, (page - 1) * size, size)
            total = await uow.order_repository.count_by_buyer(buyer_id)
        return PageDTO(
            items=[self._to_response_dto(order) for order in orders],
            total=int(total),
            page=page,
            size=size,
        )

    @staticmethod
    def _to_response_dto(order: Order) -> OrderResponseDTO:
        return OrderResponseDTO.model_validate(order)
