from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from packages.shared.schemas.basket_v1 import BasketV1, SugarPreferenceV1


class SessionResponse(BaseModel):
    newly_created: bool
    session: dict[str, Any]


class SessionActionRequest(BaseModel):
    """One basket action. Which of the optional fields matter depends on ``action``."""

    action: str = Field(..., min_length=1)
    session_id: str | None = None

    selection_id: str | None = None
    quantity: int | None = None
    item_index: int | None = None
    customer_details: dict[str, Any] | None = None
    delivery_option: str | None = None
    delivery_address: dict[str, Any] | None = None
    provider_details: dict[str, Any] | None = None


class BasketResponse(BaseModel):
    basket_details: BasketV1


class TemporarySelectionRequest(BaseModel):
    package_slug: str = Field(..., min_length=1)
    selected_size: int = Field(..., ge=1)
    sugar_preference: SugarPreferenceV1 = SugarPreferenceV1.ALL
    is_mystery_box: bool = False
    selected_products: dict[str, int] = Field(default_factory=dict)


class TemporarySelectionResponse(BaseModel):
    success: bool
    selection_id: str
    selected_products: dict[str, int]
    price_per_package: int
    recycling_fee_per_package: int
    original_total_price: int


class RandomSelectionRequest(BaseModel):
    slug: str = Field(..., min_length=1)
    selected_size: int = Field(..., ge=1)
    sugar_preference: SugarPreferenceV1 = SugarPreferenceV1.ALL
    is_custom_selection: bool = False
    selected_products: dict[str, int] = Field(default_factory=dict)


class RandomSelectionResponse(BaseModel):
    success: bool
    selection_id: str
    selected_products: dict[str, int]


class DeleteOldSessionsResponse(BaseModel):
    message: str
    deleted: int
