from __future__ import annotations

from typing import Any

from services.api.app.models.delivery import AddressWashRequest
from services.api.app.services.delivery_base import AddressValidator


class AddressNotFoundError(ValueError):
    def __init__(self) -> None:
        super().__init__("Adresse ikke fundet eller ikke præcis.")


class AddressWashError(ValueError):
    """The address could not be washed into a known Danish address."""


def precise_match(response: dict[str, Any]) -> dict[str, Any] | None:
    """Return the first washed result when DAWA classifies it as category A (exact)."""

    results = response.get("resultater") or []
    if not results or not isinstance(results[0], dict):
        return None

    first = results[0]
    category = first.get("kategori") or response.get("kategori")
    return first if category == "A" else None


def validate_address(validator: AddressValidator, address: str) -> dict[str, Any]:
    match = precise_match(validator.wash(address))
    if match is None:
        raise AddressNotFoundError()
    return match


def wash_address(validator: AddressValidator, request: AddressWashRequest) -> dict[str, Any]:
    if not request.address or not request.city or not request.postal_code:
        raise AddressWashError("Address, city, and postalCode are required fields.")

    street = request.address
    if request.street_number:
        street = f"{street} {request.street_number}"

    response = validator.wash(f"{street}, {request.postal_code} {request.city}")
    if not response.get("resultater"):
        raise AddressWashError("Address validation failed.")

    return {
        "customer_details": request.model_dump(),
        "dawa_response": response,
    }
