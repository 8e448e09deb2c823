"""Inventory service for read-only room, room type and meal plan listings."""

from ..schemas.inventory import ListRoomsRequest, MealPlan, Room, RoomType
from .store import ReservationStore


class InventoryService:
    """Service for inventory listings."""

    def __init__(self, store: ReservationStore):
        self.store = store

    def list_rooms(self, request: ListRoomsRequest) -> list[Room]:
        """List rooms ordered by room number, optionally filtered by type and status."""
        rooms = self.store.snapshot.rooms
        if request.room_type_id:
            rooms = [room for room in rooms if room.room_type_id == request.room_type_id]
        if request.status:
            rooms = [room for room in rooms if room.status == request.status]
        return sorted(rooms, key=lambda room: room.room_number)

    def list_room_types(self) -> list[RoomType]:
        return list(self.store.snapshot.room_types)

    def list_meal_plans(self, include_inactive: bool = False) -> list[MealPlan]:
        """Meal plans offered at booking time; inactive plans only on request."""
        return [
            plan for plan in self.store.snapshot.meal_plans
            if include_inactive or plan.is_active
        ]
