from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class AddressValidateRequest(BaseModel):
    address: str = Field(..., min_length=1)


class AddressValidateResponse(BaseModel):
    data: dict[str, Any]


class AddressWashRequest(BaseModel):
    address: str | None = None
    street_number: str | None = None
    postal_code: str | None = None
    city: str | None = None
    country: str | None = None
    customer_type: str | None = None
    email: str | None = None
    full_name: str | None = None
    mobile_number: str | None = None


class AddressWashResponse(BaseModel):
    customer_details: dict[str, Any]
    dawa_response: dict[str, Any]


class PickupPoint(BaseModel):
    id: str
    name: str
    street_name: str | None = None
    street_number: str | None = None
    postal_code: str | None = None
    city: str | None = None
    country_code: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    distance_m: int | None = None
    opening_hours: list[dict[str, Any]] = Field(default_factory=list)


class PickupPointsResponse(BaseModel):
    vendor: str
    pickup_points: list[PickupPoint]
