from __future__ import annotations

import hmac
import os
from datetime import timedelta

from fastapi import APIRouter, Depends, Header, HTTPException
from services.api.app.db.deps import get_db
from services.api.app.models.session import DeleteOldSessionsResponse
from services.api.app.services.sessions import delete_old_sessions
from sqlalchemy.orm import Session

router = APIRouter()

DEFAULT_SESSION_MAX_AGE_DAYS = 1.0


def session_max_age() -> timedelta:
    raw = os.getenv("SHOP_SESSION_MAX_AGE_DAYS", "").strip()
    try:
        days = float(raw) if raw else DEFAULT_SESSION_MAX_AGE_DAYS
    except ValueError as e:
        raise HTTPException(
            status_code=500, detail=f"Invalid SHOP_SESSION_MAX_AGE_DAYS={raw!r}"
        ) from e
    return timedelta(days=days)


@router.post("/v1/cron/delete-old-sessions", response_model=DeleteOldSessionsResponse)
def post_delete_old_sessions(
    x_cron_auth: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> DeleteOldSessionsResponse:
    expected = os.getenv("CRON_AUTH_TOKEN", "")
    if not expected or not x_cron_auth or not hmac.compare_digest(x_cron_auth, expected):
        raise HTTPException(status_code=401, detail="Unauthorized")

    deleted = delete_old_sessions(db, max_age=session_max_age())
    return DeleteOldSessionsResponse(
        message=f"Deleted {deleted} old sessions" if deleted else "No old sessions to delete",
        deleted=deleted,
    )
