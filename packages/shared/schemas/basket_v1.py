"""Shared basket document schema (v1).

A session row stores its basket as one JSON document. The storefront and the
order snapshot both read this shape, so it lives here rather than in the API models.
All amounts are integers in øre (1/100 DKK).
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SugarPreferenceV1(str, Enum):
    SUGAR_FREE = "uden_sukker"
    WITH_SUGAR = "med_sukker"
    ALL = "alle"


class DeliveryTypeV1(str, Enum):
    HOME_DELIVERY = "home_delivery"
    PICKUP_POINT = "pickup_point"


class BasketItemV1(BaseModel):
    slug: str
    title: str | None = None
    quantity: int = Field(..., ge=1)
    package_size: int | None = None

    # Drink slug -> number of cans in one package.
    selected_drinks: dict[str, int] = Field(default_factory=dict)

    price_per_package: int = 0
    recycling_fee_per_package: int = 0
    total_price: int = 0
    total_recycling_fee: int = 0
    sugar_preference: SugarPreferenceV1 = SugarPreferenceV1.ALL


class CustomerDetailsV1(BaseModel):
    model_config = ConfigDict(extra="allow")

    full_name: str | None = None
    mobile_number: str | None = None
    email: str | None = None
    address: str | None = None
    street_number: str | None = None
    postal_code: str | None = None
    city: str | None = None
    country: str | None = None
    customer_type: str | None = None


class DeliveryDetailsV1(BaseModel):
    provider: str = "postnord"
    tracking_number: str | None = None
    estimated_delivery_date: str | None = None
    # Usually a DeliveryTypeV1 value; other types are kept as sent and billed at home rates.
    delivery_type: str | None = None
    delivery_fee: int = 0
    currency: str = "DKK"
    delivery_address: dict[str, Any] = Field(default_factory=dict)
    provider_details: dict[str, Any] = Field(default_factory=dict)
    created_at: str | None = None


class BasketV1(BaseModel):
    items: list[BasketItemV1] = Field(default_factory=list)
    customer_details: CustomerDetailsV1 = Field(default_factory=CustomerDetailsV1)
    delivery_details: DeliveryDetailsV1 | None = None
    payment_details: dict[str, Any] = Field(default_factory=dict)

    def items_total(self) -> int:
        return sum(item.total_price for item in self.items)

    def recycling_total(self) -> int:
        return sum(item.total_recycling_fee for item in self.items)

    def delivery_fee(self) -> int:
        return self.delivery_details.delivery_fee if self.delivery_details else 0

    def grand_total(self) -> int:
        return self.items_total() + self.recycling_total() + self.delivery_fee()


class PriceDataV1(BaseModel):
    price_per_package: int
    recycling_fee_per_package: int
    original_total_price: int


class TemporarySelectionV1(BaseModel):
    """An in-progress drink mix, kept on the session until it is added to the basket."""

    package_slug: str
    selected_size: int
    selected_products: dict[str, int] = Field(default_factory=dict)
    sugar_preference: SugarPreferenceV1 = SugarPreferenceV1.ALL
    is_mystery_box: bool = False
    is_custom_selection: bool = False
    created_at: str

    price_data: PriceDataV1 | None = None
