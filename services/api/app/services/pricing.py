"""Package pricing for mix-and-match drink boxes.

Amounts are integers in øre. A package price is the summed sale price of the chosen
drinks, multiplied by the size's discount and rounded up to a whole multiple of
``round_up_or_down`` kroner. The recycling fee (pant) is never discounted.
"""

from __future__ import annotations

import random
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from decimal import ROUND_CEILING, Decimal

from packages.shared.schemas.basket_v1 import SugarPreferenceV1

DEFAULT_DISCOUNT = Decimal(1)
DEFAULT_ROUND_TO_KR = 5


class PricingError(ValueError):
    """Raised when a drink selection cannot be priced for a package."""


@dataclass(frozen=True, slots=True)
class PackageOption:
    size: int
    discount: float | None = None
    round_up_or_down: int | None = None


@dataclass(frozen=True, slots=True)
class DrinkInfo:
    slug: str
    sale_price: int
    recycling_fee: int = 0
    is_sugar_free: bool = False
    size: str | None = None


@dataclass(frozen=True, slots=True)
class PriceResult:
    price_per_package: int
    recycling_fee_per_package: int
    original_total_price: int

    def as_dict(self) -> dict[str, int]:
        return {
            "price_per_package": self.price_per_package,
            "recycling_fee_per_package": self.recycling_fee_per_package,
            "original_total_price": self.original_total_price,
        }


def find_option(options: Iterable[PackageOption], selected_size: int) -> PackageOption:
    for option in options:
        if option.size == selected_size:
            return option
    raise PricingError(f"No package option found for size={selected_size}")


def calculate_price(
    *,
    options: Iterable[PackageOption],
    selected_size: int,
    selected_products: Mapping[str, int],
    drinks: Mapping[str, DrinkInfo],
) -> PriceResult:
    total_drink_price = 0
    total_recycling_fee = 0
    total_quantity = 0

    for slug, quantity in selected_products.items():
        drink = drinks.get(slug)
        if drink is None:
            raise PricingError(f"Drink not found in package: slug={slug!r}")
        if quantity < 0:
            raise PricingError(f"Quantity for {slug!r} must not be negative")

        total_drink_price += drink.sale_price * quantity
        total_recycling_fee += (drink.recycling_fee or 0) * quantity
        total_quantity += quantity

    if total_quantity != selected_size:
        raise PricingError(
            f"Selected products total ({total_quantity}) != selectedSize ({selected_size})"
        )

    option = find_option(options, selected_size)

    discount = Decimal(str(option.discount)) if option.discount else DEFAULT_DISCOUNT
    round_to_ore = (option.round_up_or_down or DEFAULT_ROUND_TO_KR) * 100

    discounted = Decimal(total_drink_price) * discount
    steps = (discounted / round_to_ore).to_integral_value(rounding=ROUND_CEILING)

    return PriceResult(
        price_per_package=int(steps) * round_to_ore,
        recycling_fee_per_package=total_recycling_fee,
        original_total_price=total_drink_price,
    )


def filter_by_sugar_preference(
    drinks: Sequence[DrinkInfo], sugar_preference: SugarPreferenceV1 | str
) -> list[DrinkInfo]:
    preference = SugarPreferenceV1(sugar_preference)
    if preference is SugarPreferenceV1.SUGAR_FREE:
        return [d for d in drinks if d.is_sugar_free]
    if preference is SugarPreferenceV1.WITH_SUGAR:
        return [d for d in drinks if not d.is_sugar_free]
    return list(drinks)


def random_selection(
    drinks: Sequence[DrinkInfo],
    selected_size: int,
    sugar_preference: SugarPreferenceV1 | str = SugarPreferenceV1.ALL,
    rng: random.Random | None = None,
) -> dict[str, int]:
    """Pick ``selected_size`` cans uniformly, with replacement, among matching drinks."""

    candidates = filter_by_sugar_preference(drinks, sugar_preference)
    if not candidates:
        raise PricingError(
            f"No drinks match sugarPreference={SugarPreferenceV1(sugar_preference).value!r}"
        )

    rng = rng or random.Random()
    picked: dict[str, int] = {}
    for _ in range(selected_size):
        slug = rng.choice(candidates).slug
        picked[slug] = picked.get(slug, 0) + 1
    return picked


def same_selection(a: Mapping[str, int], b: Mapping[str, int]) -> bool:
    return dict(a) == dict(b)
