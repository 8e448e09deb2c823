"""Availability-related Pydantic schemas."""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .common import StayDates


class ExtensionRejection(str, Enum):
    """Why an extension was refused."""
    INVALID_DATE = "INVALID_DATE"
    CONFLICT = "CONFLICT"


class Conflict(BaseModel):
    """An existing booking that occupies part of a requested interval."""

    reservation_id: str = Field(..., description="Conflicting reservation ID")
    room_id: str = Field(..., description="Room both stays compete for")
    check_in: date = Field(..., description="Conflicting stay check-in")
    check_out: date = Field(..., description="Conflicting stay check-out (exclusive)")


class ExtensionCheck(BaseModel):
    """Outcome of gating an extend-mode check-out change."""

    allowed: bool = Field(..., description="Whether the extension may proceed")
    reason: Optional[ExtensionRejection] = Field(None, description="Rejection reason when not allowed")
    current_check_out: date = Field(..., description="Check-out before the extension")
    new_check_out: date = Field(..., description="Requested check-out")
    additional_nights: int = Field(..., ge=0, description="Nights added by the extension")
    conflicts: list[Conflict] = Field(default_factory=list, description="Stays blocking the extension")


class AvailabilityRequest(StayDates):
    """Request schema for checking a room against an interval."""

    room_id: str = Field(..., description="Room to check")
    exclude_reservation_id: Optional[str] = Field(None, description="Reservation to ignore, e.g. the one being extended")


class AvailabilityResponse(BaseModel):
    """Response schema for an availability check."""

    room_id: str = Field(..., description="Checked room")
    check_in: date = Field(..., description="Requested check-in")
    check_out: date = Field(..., description="Requested check-out")
    available: bool = Field(..., description="True when no stay conflicts")
    conflicts: list[Conflict] = Field(default_factory=list, description="Conflicting stays")


class ExtensionCheckRequest(BaseModel):
    """Request schema for checking an extension without applying it."""

    reservation_id: str = Field(..., description="Reservation to extend")
    new_check_out: Optional[str] = Field(None, description="New check-out date (YYYY-MM-DD)")
