from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ADMIN_TOKEN = "admin-secret"
CRON_TOKEN = "cron-secret"
CALLBACK_KEY = "test-callback-key"


@pytest.fixture()
def shop_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    db_path = tmp_path / "shop_test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{db_path}")
    monkeypatch.setenv("SHOP_DB_AUTO_CREATE", "true")
    monkeypatch.setenv("SHOP_PAYMENT_ADAPTER", "mock")
    monkeypatch.setenv("SHOP_ADDRESS_ADAPTER", "mock")
    monkeypatch.setenv("SHOP_PICKUP_ADAPTER", "mock")
    monkeypatch.setenv("SHOP_EMAIL_ADAPTER", "mock")
    monkeypatch.setenv("SHOP_PUBLIC_BASE_URL", "https://shop.test")
    monkeypatch.setenv("QUICKPAY_CALLBACK_KEY", CALLBACK_KEY)
    monkeypatch.setenv("SHOP_ADMIN_TOKEN", ADMIN_TOKEN)
    monkeypatch.setenv("CRON_AUTH_TOKEN", CRON_TOKEN)
    monkeypatch.delenv("SHOP_ENV", raising=False)
    monkeypatch.delenv("SHOP_SESSION_MAX_AGE_DAYS", raising=False)

    from services.api.app.services.email_mock import outbox
    from services.api.app.services.payment_mock import mock_payments

    outbox().clear()
    mock_payments().clear()
    return db_path


@pytest.fixture()
def db(shop_env: Path):
    from scripts.seed_data import seed_catalog
    from services.api.app.db.database import db_session
    from services.api.app.db.init_db import init_db

    init_db()
    session = db_session()
    seed_catalog(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db) -> TestClient:
    from services.api.app.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture()
def session_id(client: TestClient) -> str:
    response = client.get("/v1/session")
    assert response.status_code == 200
    return response.json()["session"]["session_id"]
