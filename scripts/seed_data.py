from __future__ import annotations

import argparse
import os

from services.api.app.db.database import db_session
from services.api.app.db.init_db import init_db
from services.api.app.db.models import Drink, Package, PackageDrink, PackageSize
from sqlalchemy.orm import Session

# slug, title, size, is_sugar_free, sale_price, recycling_fee, purchase_price (øre)
DRINKS: tuple[tuple[str, str, str, bool, int, int, int], ...] = (
    ("monster-energy", "Monster Energy", "0,5 l", False, 1500, 100, 900),
    ("monster-ultra-white", "Monster Ultra White", "0,5 l", True, 1500, 100, 900),
    ("red-bull", "Red Bull", "0,25 l", False, 1200, 100, 750),
    ("red-bull-sugarfree", "Red Bull Sugarfree", "0,25 l", True, 1200, 100, 750),
    ("booster-original", "Booster Original", "0,5 l", False, 1000, 100, 450),
)

# slug, title, category, drink slugs (None = every drink), sizes (size, discount, round kr)
PACKAGES = (
    (
        "mixed-any",
        "Mixed Energy",
        "mix",
        None,
        ((8, 0.95, 5), (12, 0.9, 5), (18, 0.85, 10)),
    ),
    (
        "monster-mix",
        "Monster Mix",
        "brand",
        ("monster-energy", "monster-ultra-white"),
        ((8, None, None), (12, 0.95, 5)),
    ),
    (
        "red-bull-mix",
        "Red Bull Mix",
        "brand",
        ("red-bull", "red-bull-sugarfree"),
        ((12, 0.95, 5), (24, 0.9, 10)),
    ),
)


def seed_catalog(db: Session) -> None:
    """Insert the demo catalog. Rows that already exist (by slug) are left alone."""

    drinks: dict[str, Drink] = {d.slug: d for d in db.query(Drink).all()}
    for slug, title, size, sugar_free, sale_price, recycling_fee, purchase_price in DRINKS:
        if slug in drinks:
            continue
        drink = Drink(
            id=slug,
            slug=slug,
            title=title,
            description=f"{title} {size}",
            image=f"/images/drinks/{slug}.png",
            size=size,
            is_sugar_free=sugar_free,
            sale_price=sale_price,
            recycling_fee=recycling_fee,
            purchase_price=purchase_price,
        )
        db.add(drink)
        drinks[slug] = drink

    for slug, title, category, drink_slugs, sizes in PACKAGES:
        if db.query(Package).filter(Package.slug == slug).first() is not None:
            continue

        db.add(
            Package(
                id=slug,
                slug=slug,
                title=title,
                description=f"{title}: vælg selv eller få en tilfældig blanding",
                image=f"/images/packages/{slug}.png",
                category=category,
            )
        )
        db.flush()

        for size, discount, round_up_or_down in sizes:
            db.add(
                PackageSize(
                    package_id=slug,
                    size=size,
                    discount=discount,
                    round_up_or_down=round_up_or_down,
                )
            )

        for drink_slug in drink_slugs or tuple(drinks):
            db.add(PackageDrink(package_id=slug, drink_id=drinks[drink_slug].id))

    db.commit()


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the Mixed Energy drink catalog")
    parser.add_argument("--database-url", default=None, help="Overrides DATABASE_URL")
    args = parser.parse_args()

    if args.database_url:
        os.environ["DATABASE_URL"] = args.database_url

    init_db()

    db = db_session()
    try:
        seed_catalog(db)
        print(f"Seeded {len(DRINKS)} drinks and {len(PACKAGES)} packages")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
