from __future__ import annotations

from uuid import uuid4

from packages.shared.schemas.events import EntityTypeV1, EventTypeV1
from services.api.app.db.models import EventLog
from sqlalchemy.orm import Session


def log_event(
    db: Session,
    *,
    entity_type: EntityTypeV1,
    entity_id: str,
    event_type: EventTypeV1,
    event_payload: dict | None = None,
) -> None:
    """Append to the event log. The caller owns the commit."""

    db.add(
        EventLog(
            id=uuid4().hex,
            entity_type=entity_type.value,
            entity_id=entity_id,
            event_type=event_type.value,
            event_payload_json=event_payload or {},
        )
    )


def events_for(db: Session, entity_id: str) -> list[EventLog]:
    return (
        db.query(EventLog)
        .filter(EventLog.entity_id == entity_id)
        .order_by(EventLog.created_at.asc())
        .all()
    )
