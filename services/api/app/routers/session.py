from __future__ import annotations

import os
from typing import Any

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response
from services.api.app.db.deps import get_db
from services.api.app.models.session import (
    BasketResponse,
    RandomSelectionRequest,
    RandomSelectionResponse,
    SessionActionRequest,
    SessionResponse,
    TemporarySelectionRequest,
    TemporarySelectionResponse,
)
from services.api.app.services import sessions
from services.api.app.services.catalog import CatalogError, EmptyPackageError
from services.api.app.services.pricing import PricingError
from sqlalchemy.orm import Session

router = APIRouter()

SESSION_COOKIE = "session_id"
SESSION_COOKIE_MAX_AGE_S = 365 * 24 * 60 * 60


def _raise_session_http_error(e: Exception) -> None:
    if isinstance(e, sessions.SessionNotFoundError):
        raise HTTPException(status_code=404, detail=str(e)) from e

    if isinstance(e, (sessions.BasketActionError, PricingError, EmptyPackageError)):
        raise HTTPException(status_code=400, detail=str(e)) from e

    if isinstance(e, CatalogError):
        raise HTTPException(status_code=404, detail=str(e)) from e

    if isinstance(e, sessions.SessionIdExhaustedError):
        raise HTTPException(status_code=503, detail=str(e)) from e

    raise HTTPException(status_code=500, detail="Internal Server Error") from e


def set_session_cookie(response: Response, session_id: str) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        session_id,
        max_age=SESSION_COOKIE_MAX_AGE_S,
        path="/",
        samesite="strict",
        httponly=True,
        secure=os.getenv("SHOP_ENV", "development").strip().lower() == "production",
    )


def _require_session_id(explicit: str | None, cookie: str | None) -> str:
    session_id = (explicit or cookie or "").strip()
    if not session_id:
        raise HTTPException(status_code=400, detail="Missing session_id")
    return session_id


@router.get("/v1/session", response_model=SessionResponse)
def get_session(
    response: Response,
    no_basket: bool = False,
    session_id: str | None = Cookie(default=None),
    db: Session = Depends(get_db),
) -> SessionResponse:
    try:
        lookup = sessions.get_or_create_session(db, session_id, no_basket=no_basket)
    except Exception as e:
        _raise_session_http_error(e)

    if lookup.newly_created:
        set_session_cookie(response, lookup.session_id)

    return SessionResponse(newly_created=lookup.newly_created, session=lookup.session)


@router.post("/v1/session")
def post_session_action(
    payload: SessionActionRequest,
    response: Response,
    session_id: str | None = Cookie(default=None),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    sid = _require_session_id(payload.session_id, session_id)

    try:
        if payload.action == "delete_session":
            sessions.delete_session(db, sid)
            response.delete_cookie(SESSION_COOKIE, path="/")
            return {"success": True}

        if payload.action == "accept_cookies":
            return sessions.accept_cookies(db, sid)

        if payload.action == "get_basket":
            basket = sessions.get_basket(db, sid)
            return BasketResponse(basket_details=basket).model_dump(mode="json")

        body = payload.model_dump(exclude={"action", "session_id"}, exclude_none=True)
        return sessions.update_session(db, sid, payload.action, body)
    except Exception as e:
        _raise_session_http_error(e)


@router.post("/v1/session/selections", response_model=TemporarySelectionResponse)
def create_temporary_selection(
    payload: TemporarySelectionRequest,
    session_id: str | None = Cookie(default=None),
    db: Session = Depends(get_db),
) -> TemporarySelectionResponse:
    sid = _require_session_id(None, session_id)

    try:
        result = sessions.create_temporary_selection(
            db,
            session_id=sid,
            package_slug=payload.package_slug,
            selected_size=payload.selected_size,
            sugar_preference=payload.sugar_preference,
            is_mystery_box=payload.is_mystery_box,
            selected_products=payload.selected_products,
        )
    except Exception as e:
        _raise_session_http_error(e)

    return TemporarySelectionResponse(**result)


@router.post("/v1/session/random-selection", response_model=RandomSelectionResponse)
def generate_random_selection(
    payload: RandomSelectionRequest,
    session_id: str | None = Cookie(default=None),
    db: Session = Depends(get_db),
) -> RandomSelectionResponse:
    sid = _require_session_id(None, session_id)

    try:
        result = sessions.generate_random_selection(
            db,
            session_id=sid,
            slug=payload.slug,
            selected_size=payload.selected_size,
            sugar_preference=payload.sugar_preference,
            is_custom_selection=payload.is_custom_selection,
            selected_products=payload.selected_products,
        )
    except Exception as e:
        _raise_session_http_error(e)

    return RandomSelectionResponse(**result)
