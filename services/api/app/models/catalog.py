from __future__ import annotations

from pydantic import BaseModel, Field

from packages.shared.schemas.basket_v1 import SugarPreferenceV1


class DrinkOut(BaseModel):
    slug: str
    title: str
    description: str | None = None
    image: str | None = None
    size: str | None = None
    is_sugar_free: bool
    sale_price: int
    recycling_fee: int


class PackageSizeOut(BaseModel):
    size: int
    discount: float | None = None
    round_up_or_down: int | None = None


class PackageOut(BaseModel):
    id: str
    slug: str
    title: str
    description: str | None = None
    image: str | None = None
    category: str | None = None
    sizes: list[PackageSizeOut] = Field(default_factory=list)


class DrinksResponse(BaseModel):
    drinks: dict[str, DrinkOut]


class DrinkResponse(BaseModel):
    drink: DrinkOut


class DrinksBySlugsRequest(BaseModel):
    slugs: list[str]


class PackagesResponse(BaseModel):
    packages: list[PackageOut]


class PackageResponse(BaseModel):
    package: PackageOut


class PackageDrinksResponse(BaseModel):
    drinks: list[DrinkOut]


class PackagePriceRequest(BaseModel):
    selected_size: int = Field(..., ge=1)
    selected_products: dict[str, int] = Field(default_factory=dict)
    is_mystery_box: bool = False
    sugar_preference: SugarPreferenceV1 = SugarPreferenceV1.ALL


class PackagePriceResponse(BaseModel):
    price_per_package: int
    recycling_fee_per_package: int
    original_total_price: int
