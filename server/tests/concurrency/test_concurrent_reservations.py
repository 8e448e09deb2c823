"""Concurrency tests for reservation writes."""

import asyncio

import pytest

from frontdesk.core.exceptions import RoomUnavailableError
from frontdesk.schemas.pricing import RoomSelection
from frontdesk.schemas.reservation import (
    CancelReservationRequest,
    CreateReservationRequest,
    ExtendReservationRequest,
    ReservationStatus,
)


def _request(room_ids, check_in="2024-06-01", check_out="2024-06-05", customer="guest"):
    return CreateReservationRequest(
        customer_id=customer,
        check_in=check_in,
        check_out=check_out,
        adults=1,
        selections=[RoomSelection(room_id=room_id) for room_id in room_ids],
    )


@pytest.mark.asyncio
async def test_concurrent_creates_book_room_once(reservation_service, store):
    """Many clients racing for the same room and nights: exactly one wins."""
    num_concurrent_requests = 50

    async def create(customer_id: int):
        return await reservation_service.create_reservation(
            _request(["room-201"], customer=f"customer_{customer_id}"),
            idempotency_key=f"concurrent_key_{customer_id}",
        )

    results = await asyncio.gather(
        *(create(i) for i in range(num_concurrent_requests)),
        return_exceptions=True,
    )

    successes = [r for r in results if not isinstance(r, Exception)]
    failures = [r for r in results if isinstance(r, Exception)]

    assert len(successes) == 1
    assert all(isinstance(f, RoomUnavailableError) for f in failures)
    live = [r for r in store.snapshot.reservations if r.room_id == "room-201"]
    assert len(live) == 1


@pytest.mark.asyncio
async def test_concurrent_multi_room_creates_do_not_deadlock(reservation_service, store):
    """Overlapping room sets taken in opposite order still finish."""
    results = await asyncio.wait_for(
        asyncio.gather(
            reservation_service.create_reservation(_request(["room-201", "room-202"])),
            reservation_service.create_reservation(_request(["room-202", "room-201"])),
            return_exceptions=True,
        ),
        timeout=5,
    )

    successes = [r for r in results if not isinstance(r, Exception)]
    assert len(successes) == 1
    assert len(store.snapshot.reservations) == 2


@pytest.mark.asyncio
async def test_disjoint_stays_all_succeed(reservation_service, store):
    """Back-to-back stays in the same room never block each other."""
    stays = [(f"2024-06-{day:02d}", f"2024-06-{day + 1:02d}") for day in range(1, 11)]

    results = await asyncio.gather(
        *(
            reservation_service.create_reservation(_request(["room-301"], check_in, check_out))
            for check_in, check_out in stays
        ),
        return_exceptions=True,
    )

    assert not [r for r in results if isinstance(r, Exception)]
    assert len(store.snapshot.reservations) == 10


@pytest.mark.asyncio
async def test_concurrent_extend_and_create(reservation_service, store):
    """An extension and a new booking for the same nights cannot both commit."""
    first = await reservation_service.create_reservation(_request(["room-202"], "2024-06-01", "2024-06-05"))
    reservation_id = first.reservations[0].id

    extend, create = await asyncio.gather(
        reservation_service.extend_reservation(
            ExtendReservationRequest(reservation_id=reservation_id, new_check_out="2024-06-08")
        ),
        reservation_service.create_reservation(_request(["room-202"], "2024-06-06", "2024-06-09")),
        return_exceptions=True,
    )

    outcomes = [extend, create]
    assert sum(1 for o in outcomes if not isinstance(o, Exception)) == 1
    assert all(isinstance(o, RoomUnavailableError) for o in outcomes if isinstance(o, Exception))


@pytest.mark.asyncio
async def test_concurrent_cancels_are_idempotent(reservation_service):
    created = await reservation_service.create_reservation(_request(["room-101"]))
    request = CancelReservationRequest(reservation_id=created.reservations[0].id)

    results = await asyncio.gather(*(reservation_service.cancel_reservation(request) for _ in range(10)))

    assert all(r.status == ReservationStatus.CANCELED for r in results)
