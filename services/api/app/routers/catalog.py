from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from services.api.app.db.deps import get_db
from services.api.app.models.catalog import (
    DrinkResponse,
    DrinksBySlugsRequest,
    DrinksResponse,
    PackageDrinksResponse,
    PackagePriceRequest,
    PackagePriceResponse,
    PackageResponse,
    PackagesResponse,
)
from services.api.app.services import catalog
from services.api.app.services.pricing import PricingError
from services.api.app.services.sessions import calculate_package_price
from sqlalchemy.orm import Session

router = APIRouter()


def _raise_catalog_http_error(e: Exception) -> None:
    if isinstance(e, (catalog.PackageNotFoundError, catalog.DrinkNotFoundError)):
        raise HTTPException(status_code=404, detail=str(e)) from e

    if isinstance(e, catalog.EmptyPackageError):
        raise HTTPException(status_code=404, detail=str(e)) from e

    if isinstance(e, PricingError):
        raise HTTPException(status_code=400, detail=str(e)) from e

    raise HTTPException(status_code=500, detail="Internal Server Error") from e


@router.get("/v1/drinks", response_model=DrinksResponse)
def list_drinks(db: Session = Depends(get_db)) -> DrinksResponse:
    return DrinksResponse(drinks={d.slug: catalog.drink_out(d) for d in catalog.list_drinks(db)})


@router.post("/v1/drinks/by-slugs", response_model=DrinksResponse)
def get_drinks_by_slugs(
    payload: DrinksBySlugsRequest, db: Session = Depends(get_db)
) -> DrinksResponse:
    drinks = catalog.drinks_by_slugs(db, payload.slugs)
    return DrinksResponse(drinks={d.slug: catalog.drink_out(d) for d in drinks})


@router.get("/v1/drinks/{slug}", response_model=DrinkResponse)
def get_drink(slug: str, db: Session = Depends(get_db)) -> DrinkResponse:
    try:
        drink = catalog.get_drink(db, slug)
    except Exception as e:
        _raise_catalog_http_error(e)

    return DrinkResponse(drink=catalog.drink_out(drink))


@router.get("/v1/packages", response_model=PackagesResponse)
def list_packages(db: Session = Depends(get_db)) -> PackagesResponse:
    return PackagesResponse(packages=[catalog.package_out(p) for p in catalog.list_packages(db)])


@router.get("/v1/packages/{slug}", response_model=PackageResponse)
def get_package(slug: str, db: Session = Depends(get_db)) -> PackageResponse:
    try:
        package = catalog.get_package(db, slug)
    except Exception as e:
        _raise_catalog_http_error(e)

    return PackageResponse(package=catalog.package_out(package))


@router.get("/v1/packages/{slug}/drinks", response_model=PackageDrinksResponse)
def get_package_drinks(slug: str, db: Session = Depends(get_db)) -> PackageDrinksResponse:
    try:
        package = catalog.get_package(db, slug)
    except Exception as e:
        _raise_catalog_http_error(e)

    drinks = sorted(package.drinks, key=lambda d: d.slug)
    return PackageDrinksResponse(drinks=[catalog.drink_out(d) for d in drinks])


@router.post("/v1/packages/{slug}/price", response_model=PackagePriceResponse)
def get_package_price(
    slug: str, payload: PackagePriceRequest, db: Session = Depends(get_db)
) -> PackagePriceResponse:
    try:
        price = calculate_package_price(
            db,
            slug=slug,
            selected_size=payload.selected_size,
            selected_products=payload.selected_products,
            is_mystery_box=payload.is_mystery_box,
            sugar_preference=payload.sugar_preference,
        )
    except Exception as e:
        _raise_catalog_http_error(e)

    return PackagePriceResponse(**price.as_dict())
