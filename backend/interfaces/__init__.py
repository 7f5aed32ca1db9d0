from .room_router import router as room_router
from .order_router import router as order_router
from .bill_router import router as bill_router
from .catalog_router import router as catalog_router
from .audit_router import router as audit_router
from .report_router import router as report_router
from .settings_router import router as settings_router

__all__ = [
    "room_router",
    "order_router",
    "bill_router",
    "catalog_router",
    "audit_router",
    "report_router",
    "settings_router",
]
