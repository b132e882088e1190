from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from packages.shared.schemas.basket_v1 import BasketItemV1, DeliveryTypeV1

# (max weight in kg, fee in øre). Weights above the last bracket pay the last fee.
PICKUP_POINT_FEES: tuple[tuple[float, int], ...] = (
    (1, 3200),
    (2, 3900),
    (5, 5500),
    (10, 7500),
    (15, 8500),
    (20, 8900),
    (25, 11000),
    (30, 12500),
    (35, 13500),
)

HOME_DELIVERY_FEES: tuple[tuple[float, int], ...] = (
    (1, 4300),
    (2, 5000),
    (5, 6500),
    (10, 8300),
    (15, 10000),
    (20, 11000),
    (25, 12000),
    (30, 12500),
    (35, 13500),
)

_VOLUME_RE = re.compile(r"(\d*[.,]?\d+)\s*l", re.IGNORECASE)


def approximate_weight_from_size(size: str | None) -> float:
    """Estimate the shipping weight in kg of one can from a label like "0.5 l"."""

    match = _VOLUME_RE.search(size or "")
    if not match:
        return 0.0

    litres = float(match.group(1).replace(",", "."))
    weight = litres  # ~1 kg per litre
    if litres == 0.5:
        weight += 0.02
    elif litres == 0.25:
        weight += 0.015
    else:
        weight += 0.04 * litres
    return weight


def drink_counts(items: Iterable[BasketItemV1]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for item in items:
        for slug, count in item.selected_drinks.items():
            counts[slug] = counts.get(slug, 0) + count * item.quantity
    return counts


def basket_weight(items: Iterable[BasketItemV1], sizes: Mapping[str, str | None]) -> float:
    """Total weight in kg; ``sizes`` maps drink slug to its size label."""

    total = 0.0
    for slug, count in drink_counts(items).items():
        total += approximate_weight_from_size(sizes.get(slug)) * count
    return total


def delivery_fee(weight: float, delivery_type: DeliveryTypeV1 | str) -> int:
    """Fee in øre. Pickup points have their own table; every other type pays home rates."""

    kind = delivery_type.value if isinstance(delivery_type, DeliveryTypeV1) else str(delivery_type)
    table = PICKUP_POINT_FEES if kind == DeliveryTypeV1.PICKUP_POINT.value else HOME_DELIVERY_FEES
    for max_weight, fee in table:
        if weight <= max_weight:
            return fee
    return table[-1][1]
