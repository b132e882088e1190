from __future__ import annotations

import os

from services.api.app.services.delivery_base import AddressValidator, PickupPointFinder
from services.api.app.services.delivery_mock import MockAddressValidator, MockPickupPointFinder


def get_address_validator() -> AddressValidator:
    mode = os.getenv("SHOP_ADDRESS_ADAPTER", "mock").strip().lower()

    if mode == "mock":
        return MockAddressValidator()

    if mode == "dawa":
        from services.api.app.services.dawa import DawaAddressValidator

        return DawaAddressValidator.from_env()

    raise ValueError(f"Unknown SHOP_ADDRESS_ADAPTER={mode!r}. Expected mock or dawa.")


def get_pickup_point_finder() -> PickupPointFinder:
    mode = os.getenv("SHOP_PICKUP_ADAPTER", "mock").strip().lower()

    if mode == "mock":
        return MockPickupPointFinder()

    if mode == "postnord":
        from services.api.app.services.postnord import PostNordPickupPointFinder

        return PostNordPickupPointFinder.from_env()

    raise ValueError(f"Unknown SHOP_PICKUP_ADAPTER={mode!r}. Expected mock or postnord.")
