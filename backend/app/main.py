"""FastAPI entry point for the Karaoke Room Session & Billing engine."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from interfaces import deps
from interfaces import (
    audit_router,
    bill_router,
    catalog_router,
    order_router,
    report_router,
    room_router,
    settings_router,
)

logging.basicConfig(
    level=deps.settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(title="Karaoke Room Session & Billing")

app.include_router(room_router)
app.include_router(order_router)
app.include_router(bill_router)
app.include_router(catalog_router)
app.include_router(audit_router)
app.include_router(report_router)
app.include_router(settings_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:5174"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["health"])
def health_check() -> dict:
    """Expose a minimal health endpoint to help dev tooling."""
    return {"status": "ok", "configVersion": deps.settings.version, "database": deps.settings.database_backend}
