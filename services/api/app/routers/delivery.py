from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query
from services.api.app.models.delivery import (
    AddressValidateRequest,
    AddressValidateResponse,
    AddressWashRequest,
    AddressWashResponse,
    PickupPointsResponse,
)
from services.api.app.services.delivery import (
    AddressNotFoundError,
    AddressWashError,
    validate_address,
    wash_address,
)
from services.api.app.services.delivery_base import (
    DeliveryLookupError,
    DeliveryLookupNotConfiguredError,
)
from services.api.app.services.delivery_factory import (
    get_address_validator,
    get_pickup_point_finder,
)

router = APIRouter()


def _raise_lookup_http_error(e: Exception) -> None:
    if isinstance(e, (AddressNotFoundError, AddressWashError)):
        raise HTTPException(status_code=400, detail=str(e)) from e

    if isinstance(e, DeliveryLookupNotConfiguredError):
        raise HTTPException(status_code=503, detail=str(e)) from e

    if isinstance(e, DeliveryLookupError):
        raise HTTPException(status_code=502, detail=str(e)) from e

    raise HTTPException(status_code=500, detail="Internal Server Error") from e


@router.post("/v1/address/validate", response_model=AddressValidateResponse)
def post_validate_address(payload: AddressValidateRequest) -> AddressValidateResponse:
    try:
        validator = get_address_validator()
    except DeliveryLookupError as e:
        _raise_lookup_http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e

    try:
        match = validate_address(validator, payload.address)
    except Exception as e:
        _raise_lookup_http_error(e)

    return AddressValidateResponse(data=match)


@router.post("/v1/address/wash", response_model=AddressWashResponse)
def post_wash_address(payload: AddressWashRequest) -> AddressWashResponse:
    try:
        validator = get_address_validator()
    except DeliveryLookupError as e:
        _raise_lookup_http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e

    try:
        washed = wash_address(validator, payload)
    except Exception as e:
        _raise_lookup_http_error(e)

    return AddressWashResponse(**washed)


@router.get("/v1/pickup-points", response_model=PickupPointsResponse)
def get_pickup_points(
    city: str = Query(..., min_length=1),
    postal_code: str = Query(..., min_length=1),
    street_name: str = Query(..., min_length=1),
    street_number: str = Query(..., min_length=1),
) -> PickupPointsResponse:
    try:
        finder = get_pickup_point_finder()
    except DeliveryLookupError as e:
        _raise_lookup_http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e

    try:
        points = finder.nearest(
            city=city,
            postal_code=postal_code,
            street_name=street_name,
            street_number=street_number,
        )
    except Exception as e:
        _raise_lookup_http_error(e)

    return PickupPointsResponse(vendor=finder.vendor, pickup_points=points)
