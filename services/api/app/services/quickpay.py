from __future__ import annotations

import base64
import json
import os
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any

from services.api.app.logging import get_logger
from services.api.app.services.payment_base import (
    CaptureResult,
    PaymentAdapterError,
    PaymentCapturePendingError,
    PaymentLinkUrls,
    PaymentNotConfiguredError,
    PaymentProviderHTTPError,
    PaymentResult,
    checksum_matches,
)

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class _QuickPayConfig:
    base_url: str
    api_key: str
    callback_key: str
    timeout_s: float


class QuickPayGateway:
    """QuickPay payments via the v10 REST API.

    Env vars:
    - SHOP_PAYMENT_ADAPTER=quickpay
    - QUICKPAY_API_KEY (required; the API user key)
    - QUICKPAY_CALLBACK_KEY (private key used to sign callbacks; defaults to the API key)
    - QUICKPAY_BASE_URL (default: https://api.quickpay.net)
    - QUICKPAY_TIMEOUT_S (default: 30)
    """

    vendor = "QUICKPAY"

    def __init__(self, cfg: _QuickPayConfig) -> None:
        self._cfg = cfg

    @classmethod
    def from_env(cls) -> "QuickPayGateway":
        api_key = os.getenv("QUICKPAY_API_KEY", "").strip()
        if not api_key:
            raise PaymentNotConfiguredError("QUICKPAY_API_KEY")

        return cls(
            _QuickPayConfig(
                base_url=os.getenv("QUICKPAY_BASE_URL", "https://api.quickpay.net").rstrip("/"),
                api_key=api_key,
                callback_key=os.getenv("QUICKPAY_CALLBACK_KEY", "").strip() or api_key,
                timeout_s=float(os.getenv("QUICKPAY_TIMEOUT_S", "30")),
            )
        )

    def create_payment(self, *, order_id: str, currency: str) -> PaymentResult:
        payment = self._request("POST", "/payments", {"currency": currency, "order_id": order_id})
        payment_id = payment.get("id")
        if payment_id is None:
            raise PaymentAdapterError(f"Unexpected QuickPay payment response: {payment!r}")
        return PaymentResult(payment_id=str(payment_id), details=payment)

    def create_payment_link(self, *, payment_id: str, amount: int, urls: PaymentLinkUrls) -> str:
        link = self._request(
            "PUT",
            f"/payments/{urllib.parse.quote(payment_id)}/link",
            {
                "amount": str(amount),
                "continue_url": urls.continue_url,
                "cancel_url": urls.cancel_url,
                "callback_url": urls.callback_url,
            },
        )
        url = link.get("url")
        if not url:
            raise PaymentAdapterError(f"Unexpected QuickPay link response: {link!r}")
        return str(url)

    def get_payment(self, payment_id: str) -> dict[str, Any]:
        return self._request("GET", f"/payments/{urllib.parse.quote(payment_id)}")

    def capture(self, *, payment_id: str, amount: int) -> CaptureResult:
        status, payment = self._request_with_status(
            "POST",
            f"/payments/{urllib.parse.quote(payment_id)}/capture",
            {"amount": str(amount)},
        )
        if status == 202 or payment.get("state") == "pending":
            raise PaymentCapturePendingError(payment_id)

        captures = [op for op in payment.get("operations") or [] if op.get("type") == "capture"]
        if not captures:
            raise PaymentAdapterError(f"QuickPay capture returned no capture operation: {payment!r}")

        return CaptureResult(
            state=str(payment.get("state") or ""),
            operation=captures[-1],
            details=payment,
        )

    def verify_callback(self, raw_body: bytes, checksum: str | None) -> bool:
        return checksum_matches(raw_body, checksum, self._cfg.callback_key)

    def _request(self, method: str, path: str, form: dict[str, str] | None = None) -> dict[str, Any]:
        _status, payload = self._request_with_status(method, path, form)
        return payload

    def _request_with_status(
        self, method: str, path: str, form: dict[str, str] | None = None
    ) -> tuple[int, dict[str, Any]]:
        url = f"{self._cfg.base_url}{path}"
        data = urllib.parse.urlencode(form).encode("utf-8") if form is not None else None

        req = urllib.request.Request(url, data=data, method=method)
        token = base64.b64encode(f":{self._cfg.api_key}".encode("utf-8")).decode("ascii")
        req.add_header("Authorization", f"Basic {token}")
        req.add_header("Accept-Version", "v10")
        req.add_header("Accept", "application/json")
        if data is not None:
            req.add_header("Content-Type", "application/x-www-form-urlencoded")

        try:
            with urllib.request.urlopen(req, timeout=self._cfg.timeout_s) as resp:
                status = resp.status
                raw = resp.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            logger.error("QuickPay %s %s failed: HTTP %s %s", method, path, e.code, body)
            raise PaymentProviderHTTPError(e.code, body) from e
        except urllib.error.URLError as e:
            raise PaymentAdapterError(f"QuickPay unreachable: {e.reason}") from e

        try:
            payload = json.loads(raw) if raw else {}
        except ValueError as e:
            raise PaymentAdapterError(f"QuickPay returned invalid JSON: {raw[:200]!r}") from e

        if not isinstance(payload, dict):
            raise PaymentAdapterError(f"Unexpected QuickPay response shape: {payload!r}")
        return status, payload
