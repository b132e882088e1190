from __future__ import annotations

import os

from services.api.app.db.database import get_engine
from services.api.app.db.models import Base
from services.api.app.logging import get_logger

logger = get_logger(__name__)


def init_db() -> None:
    if os.getenv("SHOP_DB_AUTO_CREATE", "true").strip().lower() not in {"1", "true", "yes", "y"}:
        logger.info("SHOP_DB_AUTO_CREATE disabled; skipping table creation")
        return

    engine = get_engine()
    Base.metadata.create_all(bind=engine)
