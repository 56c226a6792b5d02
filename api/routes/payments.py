"""
Payments API routes.

Receives gateway webhooks and buyer checkout callbacks, authenticates them
through the gateway adapter and hands them to the order service. Keep this
thin: no SDK details here.
"""
from __future__ import annotations

import ipaddress

from fastapi import APIRouter, Depends, Request

from api.dependencies import Actor, get_current_actor, get_order_service
from application.dto import PaymentConfirmationDTO, PaymentVerifyDTO
from application.dtos.payments import PaymentEventResult
from application.services.order_service import OrderService
from core.exceptions import ForbiddenException
from core.logging_config import get_logger
from core.response import Response as ApiResponse, success_response
from core.settings import payment_settings
from infrastructure.external.payments import get_payment_gateway


router = APIRouter(prefix="/payments", tags=["Payments"])
logger = get_logger(__name__)


def _ip_permitted(remote_ip: str, allowlist: list[str]) -> bool:
    try:
        rip = ipaddress.ip_address(remote_ip)
    except ValueError:
        return False
    for entry in allowlist:
        try:
            if "/" in entry:
                if rip in ipaddress.ip_network(entry, strict=False):
                    return True
            elif remote_ip == entry:
                return True
        except ValueError:
            continue
    return False


@router.post("/webhooks/{provider}", response_model=ApiResponse[PaymentEventResult])
async def payments_webhook(
    provider: str,
    request: Request,
    service: OrderService = Depends(get_order_service),
):
    """
    Gateway webhook.

    Signature failures return 401. Authenticated events are always
    acknowledged with 200, including unknown orders, so the gateway stops
    retrying; duplicates are absorbed by the idempotent confirmation.
    """
    allowlist = payment_settings.webhook.ip_allowlist or []
    if allowlist:
        remote_ip = request.client.host if request.client else ""
        if not _ip_permitted(remote_ip, allowlist):
            logger.warning("webhook_ip_rejected", provider=provider, remote_ip=remote_ip)
            raise ForbiddenException("Webhook source not allowed")

    raw_body = await request.body()
    headers = {k: v for k, v in request.headers.items()}
    gateway = get_payment_gateway(provider)
    event = gateway.parse_webhook(headers, raw_body)
    logger.info("payment_webhook_parsed", provider=gateway.provider, event_type=event.type, event_id=event.id)

    result = await service.handle_payment_event(event)
    return success_response(data=result, message="Webhook received")


@router.post("/verify", response_model=ApiResponse[PaymentConfirmationDTO])
async def verify_payment(
    payload: PaymentVerifyDTO,
    actor: Actor = Depends(get_current_actor),
    service: OrderService = Depends(get_order_service),
):
    """
    Checkout callback from the buyer's browser.

    The signature over ``payment_order_id|payment_id`` is checked with the
    gateway key secret before the order is confirmed; repeated calls and a
    webhook for the same payment confirm only once.
    """
    gateway = get_payment_gateway()
    confirmation = await service.verify_client_payment(actor.id, payload, gateway)
    return success_response(data=confirmation, message="Payment verified")
