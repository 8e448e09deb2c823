"""FastAPI routers package."""

from .availability import router as availability_router
from .health import router as health_router
from .inventory import router as inventory_router
from .metrics import router as metrics_router
from .pricing import router as pricing_router
from .reservation import router as reservation_router

__all__ = [
    "availability_router",
    "health_router",
    "inventory_router",
    "metrics_router",
    "pricing_router",
    "reservation_router",
]
