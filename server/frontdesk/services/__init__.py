"""Service layer package."""

from .idempotency_service import IdempotencyService
from .inventory_service import InventoryService
from .pricing_service import PricingService
from .reservation_service import ReservationService
from .store import ReservationStore

__all__ = [
    "IdempotencyService",
    "InventoryService",
    "PricingService",
    "ReservationService",
    "ReservationStore",
]
