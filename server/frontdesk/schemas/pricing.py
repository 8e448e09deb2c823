"""Pricing-related Pydantic schemas."""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .common import StayDates

NO_MEAL_PLAN = "No meal plan"


class RoomSelection(BaseModel):
    """One room picked in the booking flow, with an optional meal plan."""

    room_id: str = Field(..., description="Selected room ID")
    meal_plan_id: Optional[str] = Field(None, description="Meal plan for this room")
    room_type_id: Optional[str] = Field(None, description="Room type to price by when the room is not in the lookup")

    model_config = {"frozen": True}

    @field_validator("room_id")
    @classmethod
    def validate_room_id(cls, v: str) -> str:
        """Reject blank room IDs."""
        v = v.strip()
        if not v:
            raise ValueError("room_id must not be blank")
        return v

    @field_validator("meal_plan_id")
    @classmethod
    def validate_meal_plan_id(cls, v: Optional[str]) -> Optional[str]:
        """Normalise blank meal plan IDs to None."""
        if v is None:
            return None
        return v.strip() or None


class RoomLineItem(BaseModel):
    """Per-room line of an invoice breakdown."""

    room_id: str = Field(..., description="Room ID")
    room_number: str = Field("", description="Room number, blank when the room is unknown")
    room_type: str = Field("", description="Room type name, blank when unknown")
    price: float = Field(..., description="Room cost for the whole stay")
    meal_plan: str = Field(NO_MEAL_PLAN, description="Meal plan name")
    meal_cost: float = Field(0.0, description="Meal cost for the whole stay")


class InvoiceBreakdown(BaseModel):
    """Cost breakdown for one or more rooms over a stay."""

    nights: int = Field(..., ge=1, description="Billable nights")
    room_cost: float = Field(..., description="Sum of room costs")
    meal_cost: float = Field(..., description="Sum of meal plan costs")
    subtotal: float = Field(..., description="Room cost plus meal cost")
    tax_rate: float = Field(..., description="Tax rate applied to the subtotal (fraction)")
    tax: float = Field(..., description="Tax amount")
    discount: float = Field(0.0, description="Flat discount subtracted after tax")
    total: float = Field(..., description="Subtotal plus tax minus discount")
    room_details: list[RoomLineItem] = Field(default_factory=list, description="Per-room lines")

    def rounded(self, ndigits: int = 2) -> "InvoiceBreakdown":
        """Return a copy with every amount rounded for display."""
        return self.model_copy(
            update={
                "room_cost": round(self.room_cost, ndigits),
                "meal_cost": round(self.meal_cost, ndigits),
                "subtotal": round(self.subtotal, ndigits),
                "tax": round(self.tax, ndigits),
                "discount": round(self.discount, ndigits),
                "total": round(self.total, ndigits),
                "room_details": [
                    item.model_copy(
                        update={
                            "price": round(item.price, ndigits),
                            "meal_cost": round(item.meal_cost, ndigits),
                        }
                    )
                    for item in self.room_details
                ],
            }
        )


class QuoteRequest(StayDates):
    """Request schema for pricing a prospective booking."""

    adults: int = Field(1, ge=1, le=20, description="Number of adults")
    children: int = Field(0, ge=0, le=20, description="Number of children")
    selections: list[RoomSelection] = Field(..., min_length=1, description="Rooms to price")
    discount: float = Field(0.0, ge=0, description="Flat discount")


class ServiceCharge(BaseModel):
    """A billed service line (laundry, transfers, ...)."""

    name: str = Field(..., min_length=1, description="Service name")
    quantity: int = Field(1, ge=1, description="Units")
    unit_price: float = Field(..., ge=0, description="Price per unit")

    @property
    def amount(self) -> float:
        return self.quantity * self.unit_price


class ExtraCharge(BaseModel):
    """A free-form additional charge."""

    description: str = Field(..., min_length=1, description="What the charge is for")
    amount: float = Field(..., description="Charge amount")


class InvoiceRequest(BaseModel):
    """Request schema for the standalone invoice for a reservation."""

    reservation_id: str = Field(..., description="Reservation being invoiced")
    services: list[ServiceCharge] = Field(default_factory=list, description="Service lines")
    additional_charges: list[ExtraCharge] = Field(default_factory=list, description="Extra charges")
    tax_percent: Optional[float] = Field(None, ge=0, le=100, description="Tax rate in percent")
    discount: float = Field(0.0, ge=0, description="Flat discount")


class ChargeBreakdown(BaseModel):
    """Standalone invoice totals."""

    nights: int = Field(..., ge=1, description="Billable nights")
    room_charges: float = Field(..., description="Room charges for the stay")
    meal_plan_total: float = Field(..., description="Meal plan charges for the stay")
    service_total: float = Field(..., description="Sum of service lines")
    extra_charges: float = Field(..., description="Sum of extra charges")
    sub_total: float = Field(..., description="All charges before tax")
    tax_percent: float = Field(..., description="Tax rate in percent")
    tax_amount: float = Field(..., description="Tax amount")
    discount: float = Field(..., description="Flat discount")
    grand_total: float = Field(..., description="Sub total plus tax minus discount")


class PaymentMode(str, Enum):
    """How much of the total is collected up front."""
    FULL = "full"
    HALF = "half"
    CUSTOM = "custom"


class PaymentRequest(BaseModel):
    """Request schema for computing a payment split."""

    total: float = Field(..., description="Invoice total")
    mode: PaymentMode = Field(PaymentMode.FULL, description="Payment mode")
    custom_amount: Optional[float] = Field(None, description="Amount for custom mode")


class PaymentSummary(BaseModel):
    """Amount collected and outstanding balance."""

    mode: PaymentMode = Field(..., description="Payment mode")
    amount_paid: float = Field(..., ge=0, description="Amount collected")
    balance: float = Field(..., ge=0, description="Outstanding balance")


class RefundRequest(BaseModel):
    """Request schema for previewing the refund of a cancellation."""

    reservation_id: str = Field(..., description="Reservation that would be canceled")
    as_of: Optional[date] = Field(None, description="Cancellation date, defaults to today")


class RefundQuote(BaseModel):
    """Refund owed when a reservation is canceled on a given day."""

    reservation_id: str = Field(..., description="Reservation ID")
    days_until_check_in: int = Field(..., description="Whole days from cancellation to check-in")
    refund_percent: float = Field(..., ge=0, le=100, description="Share of the total refunded")
    refundable_amount: float = Field(..., description="Amount returned to the guest")
