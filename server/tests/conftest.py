"""Test configuration and fixtures."""

from datetime import date

import pytest
import pytest_asyncio
from httpx import AsyncClient

from frontdesk.core.dependencies import get_idempotency_service, get_store
from frontdesk.core.seed import demo_snapshot
from frontdesk.schemas.reservation import Reservation, ReservationStatus
from frontdesk.services.idempotency_service import IdempotencyService
from frontdesk.services.pricing_service import PricingService
from frontdesk.services.reservation_service import ReservationService
from frontdesk.services.store import ReservationStore


@pytest.fixture
def store():
    """Fresh demo property with no reservations."""
    return ReservationStore(demo_snapshot())


@pytest.fixture
def reservation_service(store):
    return ReservationService(store, tax_rate=0.10)


@pytest.fixture
def pricing_service(store):
    return PricingService(store, tax_rate=0.10, invoice_tax_percent=12.0)


@pytest.fixture
def idempotency_service():
    return IdempotencyService(ttl_seconds=3600, max_records=100)


@pytest.fixture
def make_reservation():
    """Factory for reservations that bypass the service layer."""
    counter = {"n": 0}

    def _make(
        room_id: str = "room-201",
        check_in: date = date(2024, 1, 10),
        check_out: date = date(2024, 1, 15),
        status: ReservationStatus = ReservationStatus.CONFIRMED,
        **overrides,
    ) -> Reservation:
        counter["n"] += 1
        fields = {
            "id": f"res-{counter['n']}",
            "customer_id": "guest-1",
            "room_id": room_id,
            "check_in": check_in,
            "check_out": check_out,
            "status": status,
        }
        fields.update(overrides)
        return Reservation(**fields)

    return _make


@pytest_asyncio.fixture(scope="function")
async def test_app(store, idempotency_service):
    """Create a test FastAPI application."""
    from fastapi import FastAPI
    from fastapi.exceptions import RequestValidationError
    from fastapi.middleware.cors import CORSMiddleware

    from frontdesk.core.exceptions import (
        ProblemDetailsException,
        generic_exception_handler,
        problem_details_handler,
        request_validation_handler,
    )
    from frontdesk.routers import availability, health, inventory, metrics, pricing, reservation

    # Create a simplified test app without lifespan
    app = FastAPI(
        title="Front Desk Reservation API (Test)",
        description="Test version of the API",
        version="1.0.0-test",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ProblemDetailsException, problem_details_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "service": "frontdesk-api",
            "version": "1.0.0",
            "environment": "test",
            "debug": True,
        }

    @app.get("/ready")
    async def readiness_check():
        return {
            "status": "ready",
            "service": "frontdesk-api",
            "checks": {"store": "ok", "inventory": "ok"},
        }

    @app.get("/info")
    async def service_info():
        return {
            "service": "frontdesk-api",
            "version": "1.0.0",
            "environment": "test",
            "features": {"idempotency": True, "problem_details": True},
        }

    app.include_router(health.router)
    app.include_router(availability.router)
    app.include_router(pricing.router)
    app.include_router(reservation.router)
    app.include_router(inventory.router)
    app.include_router(metrics.router)

    # Each test gets its own store and idempotency cache
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_idempotency_service] = lambda: idempotency_service

    yield app

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    from httpx import ASGITransport
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def sample_reservation_data():
    """Two adults in a deluxe room on half board for three nights."""
    return {
        "customer_id": "guest-42",
        "check_in": "2024-03-01",
        "check_out": "2024-03-04",
        "adults": 2,
        "children": 0,
        "selections": [{"room_id": "room-201", "meal_plan_id": "mp-hb"}],
        "channel_id": "direct",
    }
