"""Application-state snapshot handed to the availability and pricing core."""

from pydantic import BaseModel, Field

from .inventory import MealPlan, Room, RoomType
from .reservation import Reservation


class PropertySnapshot(BaseModel):
    """
    Everything the core reads: inventory reference data plus reservations.

    The core never reaches for global state; callers pass a snapshot (or the
    lookup maps derived from one) explicitly.
    """

    rooms: list[Room] = Field(default_factory=list, description="Rooms")
    room_types: list[RoomType] = Field(default_factory=list, description="Room types")
    meal_plans: list[MealPlan] = Field(default_factory=list, description="Meal plans")
    reservations: list[Reservation] = Field(default_factory=list, description="All reservations, any status")

    def rooms_by_id(self) -> dict[str, Room]:
        return {room.id: room for room in self.rooms}

    def room_types_by_id(self) -> dict[str, RoomType]:
        return {room_type.id: room_type for room_type in self.room_types}

    def meal_plans_by_id(self) -> dict[str, MealPlan]:
        return {meal_plan.id: meal_plan for meal_plan in self.meal_plans}

    def reservations_by_id(self) -> dict[str, Reservation]:
        return {reservation.id: reservation for reservation in self.reservations}

    def reservations_for_room(self, room_id: str) -> list[Reservation]:
        return [r for r in self.reservations if r.room_id == room_id]
