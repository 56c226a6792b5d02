"""
Razorpay adapter using the official razorpay-python SDK.

Notes on SDK usage:
- Webhooks: ``client.utility.verify_webhook_signature(body, signature, secret)``
  checks the ``X-Razorpay-Signature`` header against the raw body with the
  webhook secret.
- Checkout callback: ``client.utility.verify_payment_signature`` checks the
  signature over ``razorpay_order_id|razorpay_payment_id`` with the API key
  secret.
Both raise ``razorpay.errors.SignatureVerificationError`` on mismatch. Gateway
order creation is not handled here.
"""
from __future__ import annotations

import json
from typing import Any, Mapping, Optional

from application.dtos.payments import WebhookEvent
from application.ports.payment_gateway import PaymentGateway
from core.logging_config import get_logger
from core.settings import payment_settings
from infrastructure.external.payments.exceptions import PaymentProviderError, PaymentSignatureError
from shared.codes.payment_codes import PROVIDER_EVENT_TO_INTERNAL


logger = get_logger(__name__)

try:  # optional import to keep repo install-light
    import razorpay  # type: ignore
    from razorpay.errors import SignatureVerificationError  # type: ignore
except Exception:  # pragma: no cover - graceful degradation
    razorpay = None  # type: ignore
    SignatureVerificationError = None  # type: ignore

SIGNATURE_HEADER = "X-Razorpay-Signature"
EVENT_ID_HEADER = "X-Razorpay-Event-Id"


def _header(headers: Mapping[str, Any], name: str) -> Optional[str]:
    lowered = name.lower()
    for key, value in headers.items():
        if str(key).lower() == lowered:
            return str(value)
    return None


def _entity(payload: dict, name: str) -> dict:
    return ((payload.get(name) or {}).get("entity") or {}) if isinstance(payload, dict) else {}


class RazorpayClient(PaymentGateway):
    provider: str = "razorpay"

    def __init__(
        self,
        *,
        webhook_secret: Optional[str] = None,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
    ) -> None:
        if not razorpay:
            raise RuntimeError("razorpay SDK not installed. Add 'razorpay' to dependencies and install.")
        config = payment_settings.razorpay
        self._webhook_secret = webhook_secret if webhook_secret is not None else config.webhook_secret
        self._key_secret = key_secret if key_secret is not None else config.key_secret
        self._client = razorpay.Client(auth=(key_id if key_id is not None else (config.key_id or ""), self._key_secret or ""))

    def verify_signature(self, body: bytes, signature: Optional[str]) -> None:
        if not self._webhook_secret:
            raise PaymentProviderError("Webhook not configured: missing RAZORPAY__WEBHOOK_SECRET", provider=self.provider)
        if not signature:
            raise PaymentSignatureError(f"Missing {SIGNATURE_HEADER} header", provider=self.provider)
        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise PaymentProviderError("Malformed webhook payload", provider=self.provider) from exc
        try:
            self._client.utility.verify_webhook_signature(text, signature.strip(), self._webhook_secret)
        except SignatureVerificationError as exc:
            logger.warning("razorpay_signature_invalid", kind="webhook")
            raise PaymentSignatureError("Invalid webhook signature", provider=self.provider) from exc

    def verify_payment(self, payment_order_id: str, payment_id: str, signature: str) -> None:
        if not self._key_secret:
            raise PaymentProviderError("Gateway not configured: missing RAZORPAY__KEY_SECRET", provider=self.provider)
        try:
            self._client.utility.verify_payment_signature({
                "razorpay_order_id": payment_order_id,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": signature,
            })
        except SignatureVerificationError as exc:
            logger.warning("razorpay_signature_invalid", kind="payment", payment_order_id=payment_order_id)
            raise PaymentSignatureError(
                "Invalid payment signature",
                provider=self.provider,
                details={"payment_order_id": payment_order_id},
            ) from exc

    def parse_webhook(self, headers: Mapping[str, Any], body: bytes) -> WebhookEvent:  # type: ignore[override]
        self.verify_signature(body, _header(headers, SIGNATURE_HEADER))

        try:
            event = json.loads(body)
        except ValueError as exc:
            raise PaymentProviderError("Malformed webhook payload", provider=self.provider) from exc
        if not isinstance(event, dict):
            raise PaymentProviderError("Malformed webhook payload", provider=self.provider)

        raw_type = str(event.get("event") or "")
        payload = event.get("payload") or {}
        payment = _entity(payload, "payment")
        order = _entity(payload, "order")

        error_description = None
        if payment.get("error_code") or payment.get("error_description"):
            error_description = f"Payment failed: {payment.get('error_code')} - {payment.get('error_description')}"

        mapping = PROVIDER_EVENT_TO_INTERNAL.get(self.provider, {})
        return WebhookEvent(
            id=_header(headers, EVENT_ID_HEADER) or str(payment.get("id") or event.get("created_at") or ""),
            type=mapping.get(raw_type, raw_type),
            provider=self.provider,
            data=payload if isinstance(payload, dict) else {},
            payment_order_id=payment.get("order_id") or order.get("id"),
            payment_id=payment.get("id"),
            error_description=error_description,
            raw_headers=dict(headers),
            raw_body=body,
        )
