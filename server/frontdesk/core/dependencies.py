"""FastAPI dependencies for the property store, services and idempotency."""

import hashlib
from typing import Optional

from fastapi import Depends, Header

from .config import settings
from .exceptions import ValidationError
from .seed import demo_snapshot
from ..schemas.snapshot import PropertySnapshot
from ..services.idempotency_service import IdempotencyService
from ..services.inventory_service import InventoryService
from ..services.pricing_service import PricingService
from ..services.reservation_service import ReservationService
from ..services.store import ReservationStore

_store: Optional[ReservationStore] = None
_idempotency_service: Optional[IdempotencyService] = None


def get_store() -> ReservationStore:
    """
    Process-wide reservation store.

    Seeded with the demo property when ``seed_demo_data`` is enabled.
    """
    global _store
    if _store is None:
        snapshot = demo_snapshot() if settings.seed_demo_data else PropertySnapshot()
        _store = ReservationStore(snapshot)
    return _store


def get_idempotency_service() -> IdempotencyService:
    """Process-wide idempotency cache."""
    global _idempotency_service
    if _idempotency_service is None:
        _idempotency_service = IdempotencyService(
            ttl_seconds=settings.idempotency_ttl_seconds,
            max_records=settings.idempotency_cache_size,
        )
    return _idempotency_service


def reset_state() -> None:
    """Drop the store and idempotency cache; the next request rebuilds them."""
    global _store, _idempotency_service
    _store = None
    _idempotency_service = None


STORE_DEPENDENCY = Depends(get_store)


def get_reservation_service(store: ReservationStore = STORE_DEPENDENCY) -> ReservationService:
    return ReservationService(store)


def get_pricing_service(store: ReservationStore = STORE_DEPENDENCY) -> PricingService:
    return PricingService(store)


def get_inventory_service(store: ReservationStore = STORE_DEPENDENCY) -> InventoryService:
    return InventoryService(store)


async def get_idempotency_key(
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key")
) -> Optional[str]:
    """
    Extract and validate idempotency key from request headers.

    Args:
        idempotency_key: Idempotency key from header

    Returns:
        str: SHA-256 hash of the key, or None if not provided

    Raises:
        ValidationError: If idempotency key length is invalid
    """
    if idempotency_key is None:
        return None

    if len(idempotency_key) < 1 or len(idempotency_key) > 255:
        raise ValidationError(
            detail="Idempotency key must be between 1 and 255 characters",
            errors={"Idempotency-Key": "Invalid length"},
        )

    return hashlib.sha256(idempotency_key.encode()).hexdigest()


ReservationServiceDependency = Depends(get_reservation_service)
PricingServiceDependency = Depends(get_pricing_service)
InventoryServiceDependency = Depends(get_inventory_service)
IdempotencyServiceDependency = Depends(get_idempotency_service)
IdempotencyKey = Depends(get_idempotency_key)
