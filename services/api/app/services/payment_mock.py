from __future__ import annotations

import os
from typing import Any
from uuid import uuid4

from services.api.app.services.payment_base import (
    CaptureResult,
    PaymentLinkUrls,
    PaymentResult,
    checksum_matches,
)

DEFAULT_MOCK_CALLBACK_KEY = "mock-callback-key"

# Shared across adapter instances; the factory builds a new adapter per request.
_PAYMENTS: dict[str, dict[str, Any]] = {}


class MockPaymentGateway:
    vendor = "QUICKPAY_MOCK"

    def __init__(self, callback_key: str | None = None) -> None:
        self._callback_key = callback_key or os.getenv(
            "QUICKPAY_CALLBACK_KEY", DEFAULT_MOCK_CALLBACK_KEY
        )

    def create_payment(self, *, order_id: str, currency: str) -> PaymentResult:
        payment_id = str(uuid4().int % 10**9)
        payment = {
            "id": payment_id,
            "order_id": order_id,
            "currency": currency,
            "state": "initial",
            "accepted": False,
            "operations": [],
        }
        _PAYMENTS[payment_id] = payment
        return PaymentResult(payment_id=payment_id, details=dict(payment))

    def create_payment_link(self, *, payment_id: str, amount: int, urls: PaymentLinkUrls) -> str:
        payment = _PAYMENTS.setdefault(payment_id, {"id": payment_id, "operations": []})
        payment["link"] = {
            "amount": amount,
            "continue_url": urls.continue_url,
            "cancel_url": urls.cancel_url,
            "callback_url": urls.callback_url,
        }
        return f"https://payment.quickpay.net/payments/mock-{payment_id}"

    def get_payment(self, payment_id: str) -> dict[str, Any]:
        return dict(_PAYMENTS.get(payment_id) or {"id": payment_id, "operations": []})

    def capture(self, *, payment_id: str, amount: int) -> CaptureResult:
        operation = {
            "id": len(_PAYMENTS.get(payment_id, {}).get("operations", [])) + 1,
            "type": "capture",
            "amount": amount,
            "pending": False,
            "qp_status_code": "20000",
            "qp_status_msg": "Approved",
        }
        payment = _PAYMENTS.setdefault(payment_id, {"id": payment_id, "operations": []})
        payment.setdefault("operations", []).append(operation)
        payment["state"] = "processed"
        return CaptureResult(state="processed", operation=operation, details=dict(payment))

    def verify_callback(self, raw_body: bytes, checksum: str | None) -> bool:
        return checksum_matches(raw_body, checksum, self._callback_key)


def mock_payments() -> dict[str, dict[str, Any]]:
    return _PAYMENTS
