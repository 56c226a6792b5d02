from dataclasses import dataclass, field
from datetime import datetime, timezone

from api.middleware.logging import MASK, sanitize
from api.routes.payments import _ip_permitted
from core.exceptions import business_code_to_http_status
from core.logging_config import SENSITIVE_KEYS, redact_sensitive
from core.response import paginated_response, utc_isoformat
from shared.codes import BusinessCode
from shared.codes.payment_codes import PaymentCode


@dataclass
class Page:
    items: list = field(default_factory=list)
    total: int = 0
    page: int = 1
    size: int = 20


def test_log_processor_masks_payout_fields():
    event = {"event": "withdrawal_requested", "account_number": "001122334455", "amount": "300.00"}

    redacted = redact_sensitive(None, "info", event)

    assert redacted["account_number"] == "***"
    assert redacted["amount"] == "300.00"


def test_request_body_sanitizer_is_recursive():
    body = {"payout": {"ifsc_code": "SBIN0000001", "bank_name": "State Bank"}, "items": [{"upi_id": "a@upi"}]}

    clean = sanitize(body, SENSITIVE_KEYS)

    assert clean == {"payout": {"ifsc_code": MASK, "bank_name": "State Bank"}, "items": [{"upi_id": MASK}]}


def test_paginated_response_computes_pages():
    resp = paginated_response(Page(items=[1, 2], total=5, page=1, size=2))
    assert resp.code == BusinessCode.SUCCESS
    assert resp.data.pages == 3

    empty = paginated_response(Page(total=0, size=0))
    assert empty.data.pages == 0


def test_utc_isoformat_normalizes_naive_values():
    assert utc_isoformat(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02T03:04:05Z"
    assert utc_isoformat(datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)) == "2024-01-02T03:04:05Z"


def test_business_codes_map_to_http_status():
    assert business_code_to_http_status(BusinessCode.PRECONDITION_FAILED) == 409
    assert business_code_to_http_status(BusinessCode.INSUFFICIENT_FUNDS) == 400
    assert business_code_to_http_status(BusinessCode.PARAM_VALIDATION_ERROR) == 422
    assert business_code_to_http_status(PaymentCode.SIGNATURE_ERROR) == 401
    assert business_code_to_http_status(99999) == 400


def test_webhook_ip_allowlist():
    allowlist = ["10.0.0.0/8", "203.0.113.7"]
    assert _ip_permitted("10.1.2.3", allowlist) is True
    assert _ip_permitted("203.0.113.7", allowlist) is True
    assert _ip_permitted("192.168.1.1", allowlist) is False
    assert _ip_permitted("not-an-ip", allowlist) is False
