from __future__ import annotations

import random

import pytest
from services.api.app.services.pricing import (
    DrinkInfo,
    PackageOption,
    PricingError,
    calculate_price,
    random_selection,
)

DRINKS = {
    "monster": DrinkInfo(slug="monster", sale_price=1500, recycling_fee=100, size="0,5 l"),
    "ultra": DrinkInfo(
        slug="ultra", sale_price=1500, recycling_fee=100, is_sugar_free=True, size="0,5 l"
    ),
    "redbull": DrinkInfo(slug="redbull", sale_price=1200, recycling_fee=100, size="0,25 l"),
}


def test_discount_is_applied_and_rounded_up_to_whole_kroner_multiple() -> None:
    result = calculate_price(
        options=[PackageOption(size=8, discount=0.95, round_up_or_down=5)],
        selected_size=8,
        selected_products={"monster": 8},
        drinks=DRINKS,
    )

    # 12000 * 0.95 = 11400, next multiple of 500 øre
    assert result.price_per_package == 11500
    assert result.recycling_fee_per_package == 800
    assert result.original_total_price == 12000


def test_exact_multiple_is_not_rounded_further() -> None:
    result = calculate_price(
        options=[PackageOption(size=10, discount=0.9, round_up_or_down=10)],
        selected_size=10,
        selected_products={"monster": 10},
        drinks=DRINKS,
    )

    assert result.price_per_package == 14000


def test_missing_discount_and_rounding_fall_back_to_defaults() -> None:
    result = calculate_price(
        options=[PackageOption(size=3, discount=None, round_up_or_down=0)],
        selected_size=3,
        selected_products={"redbull": 2, "monster": 1},
        drinks=DRINKS,
    )

    # 3900 undiscounted, rounded up to 5 kr
    assert result.price_per_package == 4000
    assert result.original_total_price == 3900


def test_zero_discount_means_no_discount() -> None:
    result = calculate_price(
        options=[PackageOption(size=2, discount=0, round_up_or_down=1)],
        selected_size=2,
        selected_products={"redbull": 2},
        drinks=DRINKS,
    )

    assert result.price_per_package == 2400


def test_zero_quantities_are_allowed() -> None:
    result = calculate_price(
        options=[PackageOption(size=2)],
        selected_size=2,
        selected_products={"redbull": 2, "monster": 0},
        drinks=DRINKS,
    )

    assert result.original_total_price == 2400


@pytest.mark.parametrize(
    ("products", "size", "message"),
    [
        ({"unknown": 8}, 8, "Drink not found"),
        ({"monster": -1, "ultra": 9}, 8, "must not be negative"),
        ({"monster": 7}, 8, "!= selectedSize"),
        ({"monster": 12}, 12, "No package option found"),
    ],
)
def test_invalid_selections_are_rejected(products: dict, size: int, message: str) -> None:
    with pytest.raises(PricingError, match=message):
        calculate_price(
            options=[PackageOption(size=8, discount=0.95, round_up_or_down=5)],
            selected_size=size,
            selected_products=products,
            drinks=DRINKS,
        )


def test_random_selection_fills_the_package() -> None:
    picked = random_selection(list(DRINKS.values()), 12, rng=random.Random(7))

    assert sum(picked.values()) == 12
    assert set(picked) <= set(DRINKS)


def test_random_selection_honours_sugar_preference() -> None:
    sugar_free = random_selection(list(DRINKS.values()), 6, "uden_sukker", random.Random(1))
    with_sugar = random_selection(list(DRINKS.values()), 6, "med_sukker", random.Random(1))

    assert sugar_free == {"ultra": 6}
    assert set(with_sugar) <= {"monster", "redbull"}
    assert sum(with_sugar.values()) == 6


def test_random_selection_without_candidates_fails() -> None:
    with pytest.raises(PricingError, match="uden_sukker"):
        random_selection([DRINKS["monster"]], 4, "uden_sukker")
