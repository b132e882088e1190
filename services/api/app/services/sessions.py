"""Browser sessions, temporary drink selections and the basket stored on them.

Every mutation is a read-modify-write of the session row's JSON columns: fetch the row,
apply the action, recompute derived amounts (line totals, delivery fee) and write the
documents back. Two concurrent requests for one session can overwrite each other.
"""

from __future__ import annotations

import random
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

from packages.shared.schemas.basket_v1 import (
    BasketItemV1,
    BasketV1,
    CustomerDetailsV1,
    DeliveryDetailsV1,
    PriceDataV1,
    SugarPreferenceV1,
    TemporarySelectionV1,
)
from packages.shared.schemas.events import EntityTypeV1, EventTypeV1
from services.api.app.db.models import Order, ShopSession
from services.api.app.logging import get_logger
from services.api.app.services.catalog import drink_sizes, load_package_contents
from services.api.app.services.events import log_event
from services.api.app.services.pricing import (
    PriceResult,
    calculate_price,
    random_selection,
    same_selection,
)
from services.api.app.services.shipping import basket_weight, delivery_fee, drink_counts
from sqlalchemy.orm import Session

logger = get_logger(__name__)

SESSION_ID_LENGTH = 20
MAX_SESSION_ID_ATTEMPTS = 10

REQUIRED_CUSTOMER_FIELDS = ("full_name", "mobile_number", "email", "address", "postal_code", "city")
OPTIONAL_CUSTOMER_FIELDS = ("street_number", "country", "customer_type")

_CUSTOMER_VALIDATORS: dict[str, tuple[re.Pattern[str], str]] = {
    "mobile_number": (re.compile(r"\d{8}"), "Mobilnummer skal være 8 cifre"),
    "email": (re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+"), "E-mail format er ugyldigt"),
    "postal_code": (re.compile(r"\d{4}"), "Postnummer skal være 4 cifre"),
}


class SessionError(Exception):
    """Base class for session and basket errors."""


class SessionNotFoundError(SessionError, LookupError):
    def __init__(self, session_id: str) -> None:
        super().__init__("Session not found")
        self.session_id = session_id


class SessionIdExhaustedError(SessionError):
    def __init__(self) -> None:
        super().__init__(
            f"Unable to generate a unique session_id after {MAX_SESSION_ID_ATTEMPTS} attempts"
        )


class BasketActionError(SessionError, ValueError):
    """The requested basket action or its arguments are invalid."""


class SelectionNotFoundError(BasketActionError):
    def __init__(self, selection_id: str) -> None:
        super().__init__("Invalid or expired selectionId")
        self.selection_id = selection_id


@dataclass(frozen=True, slots=True)
class SessionLookup:
    newly_created: bool
    session_id: str
    session: dict[str, Any]


def _now_iso() -> str:
    return datetime.utcnow().isoformat()


def session_payload(row: ShopSession, *, no_basket: bool = False) -> dict[str, Any]:
    out: dict[str, Any] = {
        "session_id": row.session_id,
        "allow_cookies": row.allow_cookies,
        "temporary_selections": row.temporary_selections or {},
        "created_at": row.created_at.isoformat() if row.created_at else None,
    }
    if not no_basket:
        out["basket_details"] = row.basket_details
    return out


def _is_used_by_order(db: Session, session_id: str) -> bool:
    return db.query(Order.id).filter(Order.session_id == session_id).first() is not None


def generate_unique_session_id(db: Session) -> str:
    """Return a random id present in neither the sessions nor the orders table."""

    for _ in range(MAX_SESSION_ID_ATTEMPTS):
        candidate = uuid4().hex[:SESSION_ID_LENGTH]
        if db.get(ShopSession, candidate) is None and not _is_used_by_order(db, candidate):
            return candidate
    raise SessionIdExhaustedError()


def get_or_create_session(
    db: Session, cookie_session_id: str | None, *, no_basket: bool = False
) -> SessionLookup:
    session_id = (cookie_session_id or "").strip() or None

    # A session that already turned into an order is never reused.
    if session_id and _is_used_by_order(db, session_id):
        logger.warning("session_id %s already used by an order; issuing a new one", session_id)
        session_id = None

    if session_id:
        row = db.get(ShopSession, session_id)
        if row is not None:
            return SessionLookup(
                newly_created=False,
                session_id=row.session_id,
                session=session_payload(row, no_basket=no_basket),
            )
        logger.warning("No session row for cookie session_id %s; issuing a new one", session_id)

    new_id = generate_unique_session_id(db)
    row = ShopSession(
        session_id=new_id,
        allow_cookies=False,
        basket_details=BasketV1().model_dump(mode="json"),
        temporary_selections={},
    )
    db.add(row)
    log_event(
        db,
        entity_type=EntityTypeV1.SESSION,
        entity_id=new_id,
        event_type=EventTypeV1.SESSION_CREATED,
    )
    db.commit()
    logger.info("Created session %s", new_id)

    return SessionLookup(
        newly_created=True,
        session_id=new_id,
        session=session_payload(row, no_basket=no_basket),
    )


def get_session_row(db: Session, session_id: str) -> ShopSession:
    row = db.get(ShopSession, session_id)
    if row is None:
        raise SessionNotFoundError(session_id)
    return row


def delete_session(db: Session, session_id: str) -> None:
    row = db.get(ShopSession, session_id)
    if row is None:
        return

    db.delete(row)
    log_event(
        db,
        entity_type=EntityTypeV1.SESSION,
        entity_id=session_id,
        event_type=EventTypeV1.SESSION_DELETED,
    )
    db.commit()
    logger.info("Deleted session %s", session_id)


def accept_cookies(db: Session, session_id: str) -> dict[str, bool]:
    row = get_session_row(db, session_id)
    row.allow_cookies = True
    row.updated_at = datetime.utcnow()
    log_event(
        db,
        entity_type=EntityTypeV1.SESSION,
        entity_id=session_id,
        event_type=EventTypeV1.COOKIES_ACCEPTED,
    )
    db.commit()
    return {"success": True}


def load_basket(row: ShopSession) -> BasketV1:
    return BasketV1.model_validate(row.basket_details or {})


def get_basket(db: Session, session_id: str) -> BasketV1:
    return load_basket(get_session_row(db, session_id))


def _store_basket(row: ShopSession, basket: BasketV1) -> None:
    # Assign a fresh document so SQLAlchemy sees the JSON column as changed.
    row.basket_details = basket.model_dump(mode="json")
    row.updated_at = datetime.utcnow()


def recalc_delivery_fee(db: Session, basket: BasketV1) -> None:
    details = basket.delivery_details
    if details is None or details.delivery_type is None:
        return

    sizes = drink_sizes(db, drink_counts(basket.items).keys())
    weight = basket_weight(basket.items, sizes)
    details.delivery_fee = delivery_fee(weight, details.delivery_type)


def _basket_result(basket: BasketV1) -> dict[str, Any]:
    return {
        "success": True,
        "items": [item.model_dump(mode="json") for item in basket.items],
        "delivery_details": (
            basket.delivery_details.model_dump(mode="json") if basket.delivery_details else None
        ),
    }


def _positive_quantity(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise BasketActionError("Quantity must be > 0")
    return value


def _item_index(value: Any, basket: BasketV1) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise BasketActionError("Invalid item index")
    if value < 0 or value >= len(basket.items):
        raise BasketActionError("Invalid item index")
    return value


def _add_item(
    db: Session, row: ShopSession, basket: BasketV1, body: Mapping[str, Any]
) -> dict[str, Any]:
    selection_id = body.get("selection_id")
    if not selection_id:
        raise BasketActionError("Missing selectionId")
    quantity = _positive_quantity(body.get("quantity"))

    raw = (row.temporary_selections or {}).get(selection_id)
    if raw is None:
        raise SelectionNotFoundError(selection_id)
    selection = TemporarySelectionV1.model_validate(raw)

    contents = load_package_contents(db, selection.package_slug)
    price = calculate_price(
        options=contents.options,
        selected_size=selection.selected_size,
        selected_products=selection.selected_products,
        drinks=contents.drinks,
    )
    total_price = price.price_per_package * quantity
    total_recycling_fee = price.recycling_fee_per_package * quantity

    for item in basket.items:
        if (
            item.slug == selection.package_slug
            and item.package_size == selection.selected_size
            and same_selection(item.selected_drinks, selection.selected_products)
        ):
            item.quantity += quantity
            item.total_price += total_price
            item.total_recycling_fee += total_recycling_fee
            break
    else:
        basket.items.append(
            BasketItemV1(
                slug=selection.package_slug,
                title=contents.title,
                quantity=quantity,
                package_size=selection.selected_size,
                selected_drinks=dict(selection.selected_products),
                price_per_package=price.price_per_package,
                recycling_fee_per_package=price.recycling_fee_per_package,
                total_price=total_price,
                total_recycling_fee=total_recycling_fee,
                sugar_preference=selection.sugar_preference,
            )
        )

    recalc_delivery_fee(db, basket)
    return _basket_result(basket)


def _remove_item(
    db: Session, row: ShopSession, basket: BasketV1, body: Mapping[str, Any]
) -> dict[str, Any]:
    del row
    index = _item_index(body.get("item_index"), basket)
    del basket.items[index]

    recalc_delivery_fee(db, basket)
    return _basket_result(basket)


def _update_quantity(
    db: Session, row: ShopSession, basket: BasketV1, body: Mapping[str, Any]
) -> dict[str, Any]:
    del row
    index = _item_index(body.get("item_index"), basket)
    quantity = _positive_quantity(body.get("quantity"))

    item = basket.items[index]
    item.quantity = quantity
    item.total_price = item.price_per_package * quantity
    item.total_recycling_fee = item.recycling_fee_per_package * quantity

    recalc_delivery_fee(db, basket)
    return _basket_result(basket)


def _update_customer_details(
    db: Session, row: ShopSession, basket: BasketV1, body: Mapping[str, Any]
) -> dict[str, Any]:
    del db, row
    raw = body.get("customer_details")
    if not isinstance(raw, Mapping):
        raise BasketActionError("Invalid customerDetails object")

    errors: dict[str, str] = {}
    updated: dict[str, str | None] = {}

    for field in REQUIRED_CUSTOMER_FIELDS:
        value = raw.get(field)
        if not isinstance(value, str) or not value.strip():
            updated[field] = None
            errors[field] = f"{field} er påkrævet"
            continue

        value = value.strip()
        validator = _CUSTOMER_VALIDATORS.get(field)
        if validator is not None and not validator[0].fullmatch(value):
            updated[field] = None
            errors[field] = validator[1]
            continue

        updated[field] = value

    for field in OPTIONAL_CUSTOMER_FIELDS:
        value = raw.get(field)
        if isinstance(value, str) and value.strip():
            updated[field] = value.strip()

    merged = {**basket.customer_details.model_dump(), **updated}
    basket.customer_details = CustomerDetailsV1.model_validate(merged)

    # Invalid fields are stored as null; the caller decides what to do with the errors.
    return {"success": True, "errors": errors}


def _update_delivery_details(
    db: Session, row: ShopSession, basket: BasketV1, body: Mapping[str, Any]
) -> dict[str, Any]:
    del row
    option = body.get("delivery_option")
    address = body.get("delivery_address")
    provider_details = body.get("provider_details")
    if not option or not address or not provider_details:
        raise BasketActionError("Missing delivery details")
    if not isinstance(address, Mapping) or not isinstance(provider_details, Mapping):
        raise BasketActionError("Delivery address and provider details must be objects")

    if not isinstance(option, str):
        raise BasketActionError("Delivery option must be a string")

    basket.delivery_details = DeliveryDetailsV1(
        provider="postnord",
        tracking_number=None,
        estimated_delivery_date=None,
        delivery_type=option,
        delivery_fee=0,
        currency="DKK",
        delivery_address=dict(address),
        provider_details=dict(provider_details),
        created_at=_now_iso(),
    )

    recalc_delivery_fee(db, basket)
    return {
        "success": True,
        "delivery_details": basket.delivery_details.model_dump(mode="json"),
    }


_BasketAction = Callable[[Session, ShopSession, BasketV1, Mapping[str, Any]], dict[str, Any]]

BASKET_ACTIONS: dict[str, _BasketAction] = {
    "add_item": _add_item,
    "remove_item": _remove_item,
    "update_quantity": _update_quantity,
    "update_customer_details": _update_customer_details,
    "update_delivery_details": _update_delivery_details,
}


def update_session(
    db: Session, session_id: str, action: str, body: Mapping[str, Any]
) -> dict[str, Any]:
    row = get_session_row(db, session_id)

    handler = BASKET_ACTIONS.get(action)
    if handler is None:
        raise BasketActionError("Invalid action")

    basket = load_basket(row)
    result = handler(db, row, basket, body)
    _store_basket(row, basket)

    log_event(
        db,
        entity_type=EntityTypeV1.SESSION,
        entity_id=session_id,
        event_type=EventTypeV1.BASKET_UPDATED,
        event_payload={"action": action, "items": len(basket.items)},
    )
    db.commit()
    logger.info("Session %s: %s (%d items)", session_id, action, len(basket.items))
    return result


def _store_selection(
    db: Session, row: ShopSession, selection_id: str, selection: TemporarySelectionV1
) -> None:
    selections = dict(row.temporary_selections or {})
    selections[selection_id] = selection.model_dump(mode="json")
    row.temporary_selections = selections
    row.updated_at = datetime.utcnow()

    log_event(
        db,
        entity_type=EntityTypeV1.SESSION,
        entity_id=row.session_id,
        event_type=EventTypeV1.SELECTION_CREATED,
        event_payload={"selection_id": selection_id, "package_slug": selection.package_slug},
    )
    db.commit()


def create_temporary_selection(
    db: Session,
    *,
    session_id: str,
    package_slug: str,
    selected_size: int,
    sugar_preference: SugarPreferenceV1 = SugarPreferenceV1.ALL,
    is_mystery_box: bool = False,
    selected_products: Mapping[str, int] | None = None,
    rng: random.Random | None = None,
) -> dict[str, Any]:
    """Price a drink mix and park it on the session under a deterministic key.

    The key is ``"{package_slug}-{selected_size}-{sugar_preference}"`` so choosing the
    same package again replaces the earlier selection. A mystery box, or an empty
    product map, gets a random mix that honours the sugar preference.
    """

    row = get_session_row(db, session_id)
    preference = SugarPreferenceV1(sugar_preference)
    contents = load_package_contents(db, package_slug)

    products = dict(selected_products or {})
    if is_mystery_box or not products:
        products = random_selection(
            list(contents.drinks.values()), selected_size, preference, rng
        )

    price = calculate_price(
        options=contents.options,
        selected_size=selected_size,
        selected_products=products,
        drinks=contents.drinks,
    )

    selection_id = f"{package_slug}-{selected_size}-{preference.value}"
    _store_selection(
        db,
        row,
        selection_id,
        TemporarySelectionV1(
            package_slug=package_slug,
            selected_size=selected_size,
            selected_products=products,
            sugar_preference=preference,
            is_mystery_box=is_mystery_box,
            created_at=_now_iso(),
            price_data=PriceDataV1(**price.as_dict()),
        ),
    )

    return {
        "success": True,
        "selection_id": selection_id,
        "selected_products": products,
        **price.as_dict(),
    }


def generate_random_selection(
    db: Session,
    *,
    session_id: str,
    slug: str,
    selected_size: int,
    sugar_preference: SugarPreferenceV1 = SugarPreferenceV1.ALL,
    is_custom_selection: bool = False,
    selected_products: Mapping[str, int] | None = None,
    rng: random.Random | None = None,
) -> dict[str, Any]:
    row = get_session_row(db, session_id)
    preference = SugarPreferenceV1(sugar_preference)
    contents = load_package_contents(db, slug)

    if is_custom_selection:
        products = dict(selected_products or {})
    else:
        products = random_selection(
            list(contents.drinks.values()), selected_size, preference, rng
        )

    # Pricing also rejects custom mixes that do not fill the package.
    price = calculate_price(
        options=contents.options,
        selected_size=selected_size,
        selected_products=products,
        drinks=contents.drinks,
    )

    selection_id = uuid4().hex
    _store_selection(
        db,
        row,
        selection_id,
        TemporarySelectionV1(
            package_slug=slug,
            selected_size=selected_size,
            selected_products=products,
            sugar_preference=preference,
            is_custom_selection=is_custom_selection,
            created_at=_now_iso(),
            price_data=PriceDataV1(**price.as_dict()),
        ),
    )

    return {"success": True, "selected_products": products, "selection_id": selection_id}


def calculate_package_price(
    db: Session,
    *,
    slug: str,
    selected_size: int,
    selected_products: Mapping[str, int] | None = None,
    is_mystery_box: bool = False,
    sugar_preference: SugarPreferenceV1 = SugarPreferenceV1.ALL,
    rng: random.Random | None = None,
) -> PriceResult:
    contents = load_package_contents(db, slug)

    products = dict(selected_products or {})
    if is_mystery_box:
        products = random_selection(
            list(contents.drinks.values()), selected_size, sugar_preference, rng
        )

    return calculate_price(
        options=contents.options,
        selected_size=selected_size,
        selected_products=products,
        drinks=contents.drinks,
    )


def delete_old_sessions(
    db: Session, *, max_age: timedelta, now: datetime | None = None
) -> int:
    cutoff = (now or datetime.utcnow()) - max_age
    deleted = (
        db.query(ShopSession)
        .filter(ShopSession.created_at < cutoff)
        .delete(synchronize_session=False)
    )

    log_event(
        db,
        entity_type=EntityTypeV1.SESSION,
        entity_id="sessions",
        event_type=EventTypeV1.SESSIONS_PURGED,
        event_payload={"deleted": deleted, "cutoff": cutoff.isoformat()},
    )
    db.commit()

    if deleted:
        logger.info("Deleted %d sessions created before %s", deleted, cutoff.isoformat())
    else:
        logger.info("No old sessions to delete")
    return deleted
