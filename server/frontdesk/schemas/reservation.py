"""Reservation-related Pydantic schemas."""

from datetime import date, datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

from .availability import ExtensionCheck
from .common import StayDates
from .inventory import Room
from .pricing import InvoiceBreakdown, RoomSelection


class ReservationStatus(str, Enum):
    """Reservation status enumeration."""
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"
    CANCELED = "canceled"


class Reservation(BaseModel):
    """A booked stay for one room across a half-open date interval."""

    id: str = Field(..., description="Unique reservation ID")
    customer_id: str = Field(..., description="Guest/customer reference")
    room_id: str = Field(..., description="Booked room ID")
    check_in: date = Field(..., description="Check-in date")
    check_out: date = Field(..., description="Check-out date (exclusive)")
    adults: int = Field(1, ge=1, description="Number of adults")
    children: int = Field(0, ge=0, description="Number of children")
    status: ReservationStatus = Field(ReservationStatus.CONFIRMED, description="Reservation status")
    total_amount: float = Field(0.0, description="Amount charged for the stay")
    meal_plan_id: Optional[str] = Field(None, description="Attached meal plan ID")
    channel_id: str = Field("direct", description="Booking channel")
    notes: Optional[str] = Field(None, max_length=2000, description="Free-form notes")
    refund_amount: Optional[float] = Field(None, description="Amount refunded when the reservation was canceled")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="Creation time (ISO 8601)")

    class Config:
        from_attributes = True


class CreateReservationRequest(StayDates):
    """Request schema for creating reservations from the booking flow."""

    customer_id: Optional[str] = Field(None, max_length=128, description="Existing customer reference")
    adults: int = Field(1, ge=1, le=20, description="Number of adults")
    children: int = Field(0, ge=0, le=20, description="Number of children")
    selections: list[RoomSelection] = Field(..., min_length=1, description="Rooms to book")
    channel_id: str = Field("direct", description="Booking channel")
    notes: Optional[str] = Field(None, max_length=2000, description="Free-form notes")
    status: Literal["confirmed", "checked-in"] = Field("confirmed", description="Initial status")


class CreateReservationResponse(BaseModel):
    """Response schema for reservation creation."""

    reservations: list[Reservation] = Field(..., description="One reservation per booked room")
    invoice: InvoiceBreakdown = Field(..., description="Cost breakdown the reservations were priced with")


class ExtendReservationRequest(BaseModel):
    """Request schema for extending a reservation's check-out date."""

    reservation_id: str = Field(..., description="Reservation to extend")
    new_check_out: Optional[str] = Field(None, description="New check-out date (YYYY-MM-DD)")
    room_id: Optional[str] = Field(None, description="Move the stay to this room, see /extension-rooms")
    adults: Optional[int] = Field(None, ge=1, le=20, description="Updated number of adults")
    children: Optional[int] = Field(None, ge=0, le=20, description="Updated number of children")


class ExtendReservationResponse(BaseModel):
    """Response schema for a successful extension."""

    reservation: Reservation = Field(..., description="Updated reservation")
    extension: ExtensionCheck = Field(..., description="Availability decision for the extension")
    extension_price: float = Field(..., description="Amount added to the reservation total")


class ReservationIdRequest(BaseModel):
    """Request schema addressing a single reservation."""

    reservation_id: str = Field(..., description="Target reservation ID")


class GetReservationRequest(ReservationIdRequest):
    """Request schema for getting a reservation."""


class CancelReservationRequest(ReservationIdRequest):
    """Request schema for cancelling a reservation."""


class CheckInRequest(ReservationIdRequest):
    """Request schema for checking a guest in."""


class CheckOutRequest(ReservationIdRequest):
    """Request schema for checking a guest out."""


class ListReservationsRequest(BaseModel):
    """Request schema for listing reservations."""

    room_id: Optional[str] = Field(None, description="Filter by room")
    status: Optional[ReservationStatus] = Field(None, description="Filter by status")


class ListReservationsResponse(BaseModel):
    """Response schema for reservation listing."""

    items: list[Reservation] = Field(..., description="Matching reservations")


class ExtensionRoomsRequest(BaseModel):
    """Request schema for finding rooms that can host an extended stay."""

    reservation_id: str = Field(..., description="Reservation being extended")
    new_check_out: Optional[str] = Field(None, description="New check-out date (YYYY-MM-DD)")
    room_type_id: Optional[str] = Field(None, description="Only rooms of this type")


class ExtensionRoomsResponse(BaseModel):
    """Response schema for extension room candidates."""

    items: list[Room] = Field(..., description="Candidate rooms")
    additional_nights: int = Field(..., ge=0, description="Nights added by the extension")
