from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass, field
from typing import Any, Protocol


class PaymentAdapterError(Exception):
    """Base class for payment provider errors."""


class PaymentNotConfiguredError(PaymentAdapterError):
    def __init__(self, setting: str) -> None:
        super().__init__(f"Payment provider is not configured. Set {setting}.")
        self.setting = setting


class PaymentProviderHTTPError(PaymentAdapterError):
    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Payment provider HTTP {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class PaymentCapturePendingError(PaymentAdapterError):
    def __init__(self, payment_id: str) -> None:
        super().__init__(f"Capture of payment {payment_id} was accepted but is not processed yet")
        self.payment_id = payment_id


@dataclass(frozen=True, slots=True)
class PaymentResult:
    payment_id: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class PaymentLinkUrls:
    continue_url: str
    cancel_url: str
    callback_url: str


@dataclass(frozen=True, slots=True)
class CaptureResult:
    state: str
    operation: dict[str, Any]
    details: dict[str, Any] = field(default_factory=dict)


class PaymentGateway(Protocol):
    vendor: str

    def create_payment(self, *, order_id: str, currency: str) -> PaymentResult: ...

    def create_payment_link(
        self, *, payment_id: str, amount: int, urls: PaymentLinkUrls
    ) -> str: ...

    def get_payment(self, payment_id: str) -> dict[str, Any]: ...

    def capture(self, *, payment_id: str, amount: int) -> CaptureResult: ...

    def verify_callback(self, raw_body: bytes, checksum: str | None) -> bool: ...


def callback_checksum(raw_body: bytes, key: str) -> str:
    """Hex HMAC-SHA256 of the raw callback body, as sent in QuickPay-Checksum-Sha256."""

    return hmac.new(key.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


def checksum_matches(raw_body: bytes, checksum: str | None, key: str) -> bool:
    if not checksum or not key:
        return False
    return hmac.compare_digest(callback_checksum(raw_body, key), checksum.strip().lower())
