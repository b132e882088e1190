from __future__ import annotations

import os

from services.api.app.services.payment_base import PaymentGateway
from services.api.app.services.payment_mock import MockPaymentGateway


def get_payment_gateway() -> PaymentGateway:
    """Select the payment provider based on env vars.

    Defaults to the mock gateway so tests and local dev never reach QuickPay unless
    explicitly configured.
    """

    mode = os.getenv("SHOP_PAYMENT_ADAPTER", "mock").strip().lower()

    if mode == "mock":
        return MockPaymentGateway()

    if mode == "quickpay":
        from services.api.app.services.quickpay import QuickPayGateway

        return QuickPayGateway.from_env()

    raise ValueError(f"Unknown SHOP_PAYMENT_ADAPTER={mode!r}. Expected mock or quickpay.")
