from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from services.api.app.db.models import Drink, Package
from services.api.app.models.catalog import DrinkOut, PackageOut, PackageSizeOut
from services.api.app.services.pricing import DrinkInfo, PackageOption
from sqlalchemy.orm import Session, selectinload


class CatalogError(Exception):
    """Base class for catalog lookup errors."""


class PackageNotFoundError(CatalogError, LookupError):
    def __init__(self, slug: str) -> None:
        super().__init__(f'Package not found for slug "{slug}"')
        self.slug = slug


class DrinkNotFoundError(CatalogError, LookupError):
    def __init__(self, slug: str) -> None:
        super().__init__(f'Drink not found for slug "{slug}"')
        self.slug = slug


class EmptyPackageError(CatalogError):
    def __init__(self, slug: str) -> None:
        super().__init__(f'No drinks linked to package "{slug}".')
        self.slug = slug


@dataclass(frozen=True, slots=True)
class PackageContents:
    """A package with everything needed to price a selection of it."""

    slug: str
    title: str
    options: list[PackageOption]
    drinks: dict[str, DrinkInfo]


def drink_out(drink: Drink) -> DrinkOut:
    # purchase_price stays internal.
    return DrinkOut(
        slug=drink.slug,
        title=drink.title,
        description=drink.description,
        image=drink.image,
        size=drink.size,
        is_sugar_free=drink.is_sugar_free,
        sale_price=drink.sale_price,
        recycling_fee=drink.recycling_fee or 0,
    )


def package_out(package: Package) -> PackageOut:
    return PackageOut(
        id=package.slug,
        slug=package.slug,
        title=package.title,
        description=package.description,
        image=package.image,
        category=package.category,
        sizes=[
            PackageSizeOut(
                size=s.size,
                discount=s.discount,
                round_up_or_down=s.round_up_or_down,
            )
            for s in package.sizes
        ],
    )


def list_drinks(db: Session) -> list[Drink]:
    return db.query(Drink).order_by(Drink.slug).all()


def get_drink(db: Session, slug: str) -> Drink:
    drink = db.query(Drink).filter(Drink.slug == slug).first()
    if drink is None:
        raise DrinkNotFoundError(slug)
    return drink


def drinks_by_slugs(db: Session, slugs: Iterable[str]) -> list[Drink]:
    wanted = sorted(set(slugs))
    if not wanted:
        return []
    return db.query(Drink).filter(Drink.slug.in_(wanted)).order_by(Drink.slug).all()


def drink_sizes(db: Session, slugs: Iterable[str]) -> dict[str, str | None]:
    return {d.slug: d.size for d in drinks_by_slugs(db, slugs)}


def list_packages(db: Session) -> list[Package]:
    return (
        db.query(Package)
        .options(selectinload(Package.sizes))
        .order_by(Package.slug)
        .all()
    )


def get_package(db: Session, slug: str) -> Package:
    package = (
        db.query(Package)
        .options(selectinload(Package.sizes), selectinload(Package.drinks))
        .filter(Package.slug == slug)
        .first()
    )
    if package is None:
        raise PackageNotFoundError(slug)
    return package


def load_package_contents(db: Session, slug: str) -> PackageContents:
    package = get_package(db, slug)
    if not package.drinks:
        raise EmptyPackageError(slug)

    return PackageContents(
        slug=package.slug,
        title=package.title,
        options=[
            PackageOption(size=s.size, discount=s.discount, round_up_or_down=s.round_up_or_down)
            for s in package.sizes
        ],
        drinks={
            d.slug: DrinkInfo(
                slug=d.slug,
                sale_price=d.sale_price,
                recycling_fee=d.recycling_fee or 0,
                is_sugar_free=d.is_sugar_free,
                size=d.size,
            )
            for d in package.drinks
        },
    )
