"""Mixed Energy API service entrypoint."""

from fastapi import FastAPI

from services.api.app.db.init_db import init_db
from services.api.app.routers.admin import router as admin_router
from services.api.app.routers.catalog import router as catalog_router
from services.api.app.routers.delivery import router as delivery_router
from services.api.app.routers.maintenance import router as maintenance_router
from services.api.app.routers.order import router as order_router
from services.api.app.routers.session import router as session_router

app = FastAPI(title="Mixed Energy API")

app.include_router(catalog_router)
app.include_router(session_router)
app.include_router(delivery_router)
app.include_router(order_router)
app.include_router(admin_router)
app.include_router(maintenance_router)


@app.on_event("startup")
def _startup() -> None:
    init_db()


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
