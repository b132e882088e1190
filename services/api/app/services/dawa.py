from __future__ import annotations

import os
import urllib.parse
from typing import Any

from services.api.app.services.delivery_base import DeliveryLookupError, fetch_json


class DawaAddressValidator:
    """Danish address washing via the Dataforsyningen "datavask" endpoint.

    Env vars:
    - SHOP_ADDRESS_ADAPTER=dawa
    - DAWA_BASE_URL (default: https://api.dataforsyningen.dk)
    - DAWA_TIMEOUT_S (default: 15)
    """

    vendor = "DAWA"

    def __init__(self, *, base_url: str, timeout_s: float) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s

    @classmethod
    def from_env(cls) -> "DawaAddressValidator":
        return cls(
            base_url=os.getenv("DAWA_BASE_URL", "https://api.dataforsyningen.dk"),
            timeout_s=float(os.getenv("DAWA_TIMEOUT_S", "15")),
        )

    def wash(self, address_text: str) -> dict[str, Any]:
        query = urllib.parse.urlencode({"betegnelse": address_text})
        data = fetch_json(
            f"{self._base_url}/datavask/adresser?{query}",
            timeout_s=self._timeout_s,
            vendor=self.vendor,
        )
        if not isinstance(data, dict):
            raise DeliveryLookupError(f"Unexpected DAWA response shape: {data!r}")
        return data
