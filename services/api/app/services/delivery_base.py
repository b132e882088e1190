from __future__ import annotations

import json
import urllib.error
import urllib.request
from typing import Any, Protocol

from services.api.app.models.delivery import PickupPoint


class DeliveryLookupError(Exception):
    """Base class for address and pickup-point lookup errors."""


class DeliveryLookupNotConfiguredError(DeliveryLookupError):
    def __init__(self, setting: str) -> None:
        super().__init__(f"Delivery lookup is not configured. Set {setting}.")
        self.setting = setting


class AddressValidator(Protocol):
    vendor: str

    def wash(self, address_text: str) -> dict[str, Any]: ...


class PickupPointFinder(Protocol):
    vendor: str

    def nearest(
        self,
        *,
        city: str,
        postal_code: str,
        street_name: str,
        street_number: str,
        limit: int = 5,
    ) -> list[PickupPoint]: ...


def fetch_json(url: str, *, timeout_s: float, vendor: str) -> Any:
    req = urllib.request.Request(url, method="GET")
    req.add_header("Accept", "application/json")

    try:
        with urllib.request.urlopen(req, timeout=timeout_s) as resp:
            raw = resp.read().decode("utf-8")
    except urllib.error.HTTPError as e:
        body = e.read().decode("utf-8", errors="replace")
        raise DeliveryLookupError(f"{vendor} HTTP {e.code}: {body}") from e
    except urllib.error.URLError as e:
        raise DeliveryLookupError(f"{vendor} unreachable: {e.reason}") from e

    try:
        return json.loads(raw)
    except ValueError as e:
        raise DeliveryLookupError(f"{vendor} returned invalid JSON") from e
