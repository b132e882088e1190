from __future__ import annotations

import re
from typing import Any

from services.api.app.models.delivery import PickupPoint

_POSTAL_CODE_RE = re.compile(r"\b\d{4}\b")


class MockAddressValidator:
    """Treats any address containing a 4-digit postal code as a precise match."""

    vendor = "DAWA_MOCK"

    def wash(self, address_text: str) -> dict[str, Any]:
        if not _POSTAL_CODE_RE.search(address_text):
            return {"kategori": "C", "resultater": []}

        return {
            "kategori": "A",
            "resultater": [
                {
                    "kategori": "A",
                    "adresse": {"betegnelse": address_text.strip()},
                    "vaskeresultat": {"afstand": 0},
                }
            ],
        }


class MockPickupPointFinder:
    vendor = "POSTNORD_MOCK"

    def nearest(
        self,
        *,
        city: str,
        postal_code: str,
        street_name: str,
        street_number: str,
        limit: int = 5,
    ) -> list[PickupPoint]:
        del street_number

        points = [
            PickupPoint(
                id=f"{postal_code}-{i}",
                name=f"Pakkeshop {city} {i}",
                street_name=street_name,
                street_number=str(10 * i),
                postal_code=postal_code,
                city=city,
                country_code="DK",
                latitude=55.7 + i / 1000,
                longitude=12.5 + i / 1000,
                distance_m=250 * i,
            )
            for i in range(1, 4)
        ]
        return points[:limit]
