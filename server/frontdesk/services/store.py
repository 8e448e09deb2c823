"""In-memory reservation store with per-room write locks."""

import asyncio
import logging
from collections.abc import Iterable
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from ..schemas.inventory import MealPlan, Room, RoomStatus, RoomType
from ..schemas.reservation import Reservation, ReservationStatus
from ..schemas.snapshot import PropertySnapshot

logger = logging.getLogger(__name__)

LIVE_STATUSES = frozenset({ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN})


class ReservationStore:
    """
    Holds the property snapshot and serialises writes per room.

    The availability predicate is read-only, so two clients could both see a
    room as free and both commit. Any write that depends on an availability
    check must run inside :meth:`lock_rooms` for the rooms it touches, with
    the check and the commit under the same lock.
    """

    def __init__(self, snapshot: Optional[PropertySnapshot] = None):
        self._snapshot = snapshot or PropertySnapshot()
        self._room_locks: dict[str, asyncio.Lock] = {}

    @property
    def snapshot(self) -> PropertySnapshot:
        return self._snapshot

    def room_lock(self, room_id: str) -> asyncio.Lock:
        return self._room_locks.setdefault(room_id, asyncio.Lock())

    @asynccontextmanager
    async def lock_rooms(self, room_ids: Iterable[str]) -> AsyncIterator[None]:
        """Hold the locks of several rooms, always taken in sorted order."""
        locks = [self.room_lock(room_id) for room_id in sorted(set(room_ids))]
        acquired: list[asyncio.Lock] = []
        try:
            for lock in locks:
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()

    # Reads

    def get_room(self, room_id: str) -> Optional[Room]:
        return self._snapshot.rooms_by_id().get(room_id)

    def get_room_type(self, room_type_id: str) -> Optional[RoomType]:
        return self._snapshot.room_types_by_id().get(room_type_id)

    def get_meal_plan(self, meal_plan_id: str) -> Optional[MealPlan]:
        return self._snapshot.meal_plans_by_id().get(meal_plan_id)

    def get_reservation(self, reservation_id: str) -> Optional[Reservation]:
        return self._snapshot.reservations_by_id().get(reservation_id)

    def count_live_reservations(self) -> int:
        return sum(1 for r in self._snapshot.reservations if r.status in LIVE_STATUSES)

    # Writes

    def add_reservation(self, reservation: Reservation) -> Reservation:
        self._snapshot.reservations.append(reservation)
        logger.debug(
            "Reservation stored",
            extra={"reservation_id": reservation.id, "room_id": reservation.room_id}
        )
        return reservation

    def replace_reservation(self, reservation: Reservation) -> Reservation:
        """Swap in an updated copy of an existing reservation (matched by ID)."""
        reservations = self._snapshot.reservations
        for index, existing in enumerate(reservations):
            if existing.id == reservation.id:
                reservations[index] = reservation
                return reservation
        raise KeyError(reservation.id)

    def set_room_status(self, room_id: str, status: RoomStatus) -> Room:
        rooms = self._snapshot.rooms
        for index, room in enumerate(rooms):
            if room.id == room_id:
                rooms[index] = room.model_copy(update={"status": status})
                return rooms[index]
        raise KeyError(room_id)
