from __future__ import annotations

import os
import urllib.parse
from typing import Any

from services.api.app.models.delivery import PickupPoint
from services.api.app.services.delivery_base import (
    DeliveryLookupError,
    DeliveryLookupNotConfiguredError,
    fetch_json,
)


class PostNordPickupPointFinder:
    """Nearest PostNord service points for a Danish address.

    Env vars:
    - SHOP_PICKUP_ADAPTER=postnord
    - POSTNORD_API_KEY (required)
    - POSTNORD_BASE_URL (default: https://api2.postnord.com)
    - POSTNORD_TIMEOUT_S (default: 15)
    """

    vendor = "POSTNORD"

    def __init__(self, *, api_key: str, base_url: str, timeout_s: float) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s

    @classmethod
    def from_env(cls) -> "PostNordPickupPointFinder":
        api_key = os.getenv("POSTNORD_API_KEY", "").strip()
        if not api_key:
            raise DeliveryLookupNotConfiguredError("POSTNORD_API_KEY")

        return cls(
            api_key=api_key,
            base_url=os.getenv("POSTNORD_BASE_URL", "https://api2.postnord.com"),
            timeout_s=float(os.getenv("POSTNORD_TIMEOUT_S", "15")),
        )

    def nearest(
        self,
        *,
        city: str,
        postal_code: str,
        street_name: str,
        street_number: str,
        limit: int = 5,
    ) -> list[PickupPoint]:
        query = urllib.parse.urlencode(
            {
                "returnType": "json",
                "countryCode": "DK",
                "agreementCountry": "DK",
                "city": city,
                "postalCode": postal_code,
                "streetName": street_name,
                "streetNumber": street_number,
                "numberOfServicePoints": str(limit),
                "srId": "EPSG:4326",
                "context": "optionalservicepoint",
                "responseFilter": "public",
                "located": "all",
                "whiteLabelName": "false",
                "apikey": self._api_key,
            }
        )
        data = fetch_json(
            f"{self._base_url}/rest/businesslocation/v5/servicepoints/nearest/byaddress?{query}",
            timeout_s=self._timeout_s,
            vendor=self.vendor,
        )

        try:
            raw_points = data["servicePointInformationResponse"].get("servicePoints") or []
        except (KeyError, TypeError, AttributeError) as e:
            raise DeliveryLookupError(f"Unexpected PostNord response shape: {data!r}") from e

        return [_to_pickup_point(p) for p in raw_points if isinstance(p, dict)]


def _to_pickup_point(raw: dict[str, Any]) -> PickupPoint:
    address = raw.get("visitingAddress") or {}
    coordinates = raw.get("coordinates") or []
    coordinate = coordinates[0] if coordinates and isinstance(coordinates[0], dict) else {}
    opening = (raw.get("openingHours") or {}).get("postalServices") or []

    distance = raw.get("routeDistance")
    return PickupPoint(
        id=str(raw.get("servicePointId") or ""),
        name=str(raw.get("name") or ""),
        street_name=address.get("streetName"),
        street_number=address.get("streetNumber"),
        postal_code=address.get("postalCode"),
        city=address.get("city"),
        country_code=address.get("countryCode"),
        latitude=coordinate.get("northing"),
        longitude=coordinate.get("easting"),
        distance_m=int(distance) if isinstance(distance, (int, float)) else None,
        opening_hours=[o for o in opening if isinstance(o, dict)],
    )
