"""Inventory-related Pydantic schemas: rooms, room types and meal plans."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class RoomStatus(str, Enum):
    """Room housekeeping status enumeration."""
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"
    CLEANED = "cleaned"
    TO_CLEAN = "to-clean"


class RoomType(BaseModel):
    """Room type reference data; carries the nightly rate."""

    id: str = Field(..., min_length=1, description="Unique room type ID")
    name: str = Field(..., description="Display name, e.g. 'Deluxe Double'")
    base_price: float = Field(..., ge=0, description="Rate per night")
    capacity: int = Field(..., ge=1, description="Maximum guests (adults + children)")


class Room(BaseModel):
    """A bookable room."""

    id: str = Field(..., min_length=1, description="Unique room ID")
    room_number: str = Field(..., description="Room number shown to staff")
    room_type_id: str = Field(..., description="Associated room type ID")
    status: RoomStatus = Field(RoomStatus.AVAILABLE, description="Housekeeping status")


class MealPlan(BaseModel):
    """Meal plan add-on priced per person and optionally per room, per night."""

    id: str = Field(..., min_length=1, description="Unique meal plan ID")
    name: str = Field(..., description="Display name, e.g. 'Half Board'")
    code: str = Field(..., max_length=8, description="Short code: BB, HB, FB, AI")
    per_person_rate: float = Field(..., ge=0, description="Rate per adult per night")
    per_room_rate: Optional[float] = Field(None, ge=0, description="Flat rate per room per night")
    is_active: bool = Field(True, description="Whether the plan can be sold")


class ListRoomsRequest(BaseModel):
    """Request schema for listing rooms."""

    room_type_id: Optional[str] = Field(None, description="Filter by room type")
    status: Optional[RoomStatus] = Field(None, description="Filter by housekeeping status")


class ListRoomsResponse(BaseModel):
    """Response schema for room listing."""

    items: list[Room] = Field(..., description="Matching rooms")


class ListRoomTypesResponse(BaseModel):
    """Response schema for room type listing."""

    items: list[RoomType] = Field(..., description="All room types")


class ListMealPlansResponse(BaseModel):
    """Response schema for meal plan listing."""

    items: list[MealPlan] = Field(..., description="Meal plans")
