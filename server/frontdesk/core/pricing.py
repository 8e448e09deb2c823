"""
Price calculation for room bookings, extensions, invoices and payments.

Amounts are plain floats. Nothing here rounds intermediate sums; rounding
to two decimals happens at display time (``InvoiceBreakdown.rounded``).
"""

import math
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime
from typing import Optional, Union

from ..schemas.inventory import MealPlan, Room, RoomType
from ..schemas.pricing import (
    NO_MEAL_PLAN,
    ChargeBreakdown,
    ExtraCharge,
    InvoiceBreakdown,
    PaymentMode,
    PaymentSummary,
    RefundQuote,
    RoomLineItem,
    RoomSelection,
    ServiceCharge,
)
from ..schemas.reservation import Reservation, ReservationStatus

# Fixed rate of the room booking flow; the standalone invoice flow takes its own.
BOOKING_TAX_RATE = 0.10
INVOICE_TAX_PERCENT = 12.0

SECONDS_PER_DAY = 24 * 60 * 60

# (minimum days of notice, share refunded), best tier first
REFUND_TIERS = ((8, 1.0), (3, 0.5), (0, 0.25))

DateLike = Union[date, datetime]


def count_nights(check_in: DateLike, check_out: DateLike) -> int:
    """
    Billable nights between two dates.

    Partial days round up. Zero or negative spans are floored to one night
    rather than rejected.
    """
    span = (check_out - check_in).total_seconds() / SECONDS_PER_DAY
    return max(1, math.ceil(span))


def meal_plan_cost(meal_plan: MealPlan, adults: int, nights: int) -> float:
    """Per-adult rate plus the optional per-room rate, for every night. Children are not charged."""
    per_person = meal_plan.per_person_rate * adults * nights
    per_room = (meal_plan.per_room_rate or 0) * nights
    return per_person + per_room


def compute_invoice(
    selected_rooms: Sequence[RoomSelection],
    adults: int,
    children: int,
    check_in: DateLike,
    check_out: DateLike,
    room_types_by_id: Mapping[str, RoomType],
    meal_plans_by_id: Mapping[str, MealPlan],
    rooms_by_id: Optional[Mapping[str, Room]] = None,
    *,
    tax_rate: float = BOOKING_TAX_RATE,
    discount: float = 0.0,
) -> InvoiceBreakdown:
    """
    Compute the cost breakdown for a set of rooms over one stay.

    Each selected room costs its room type's ``base_price`` per night, plus
    its meal plan (if any) per :func:`meal_plan_cost`. The room type comes
    from ``rooms_by_id`` when the room is listed there, otherwise from the
    selection's own ``room_type_id``. A room whose type cannot be resolved
    prices at zero, and unknown meal plans are treated as no meal plan.
    ``children`` is accepted for the record but does not change the price.

    ``total = subtotal + subtotal * tax_rate - discount``; a discount larger
    than the taxed subtotal yields a negative total.
    """
    nights = count_nights(check_in, check_out)
    rooms_by_id = rooms_by_id or {}

    room_cost = 0.0
    meal_cost = 0.0
    room_details: list[RoomLineItem] = []

    for selection in selected_rooms:
        room = rooms_by_id.get(selection.room_id)
        room_type_id = room.room_type_id if room else selection.room_type_id
        room_type = room_types_by_id.get(room_type_id) if room_type_id else None
        price = (room_type.base_price if room_type else 0) * nights
        room_cost += price

        line_meal_cost = 0.0
        meal_plan_name = NO_MEAL_PLAN
        meal_plan = meal_plans_by_id.get(selection.meal_plan_id) if selection.meal_plan_id else None
        if meal_plan:
            meal_plan_name = meal_plan.name
            line_meal_cost = meal_plan_cost(meal_plan, adults, nights)
            meal_cost += line_meal_cost

        room_details.append(
            RoomLineItem(
                room_id=selection.room_id,
                room_number=room.room_number if room else "",
                room_type=room_type.name if room_type else "",
                price=price,
                meal_plan=meal_plan_name,
                meal_cost=line_meal_cost,
            )
        )

    subtotal = room_cost + meal_cost
    tax = subtotal * tax_rate
    total = subtotal + tax - discount

    return InvoiceBreakdown(
        nights=nights,
        room_cost=room_cost,
        meal_cost=meal_cost,
        subtotal=subtotal,
        tax_rate=tax_rate,
        tax=tax,
        discount=discount,
        total=total,
        room_details=room_details,
    )


def compute_extension_price(room_type: Optional[RoomType], additional_nights: int) -> float:
    """Room-only price of the nights added by an extension."""
    base_price = room_type.base_price if room_type else 0
    return base_price * additional_nights


def compute_charge_breakdown(
    reservation: Reservation,
    room_type: Optional[RoomType],
    meal_plan: Optional[MealPlan],
    services: Iterable[ServiceCharge] = (),
    additional_charges: Iterable[ExtraCharge] = (),
    tax_percent: float = INVOICE_TAX_PERCENT,
    discount: float = 0.0,
) -> ChargeBreakdown:
    """Totals for the standalone invoice of a reservation: stay charges, services and extras."""
    nights = count_nights(reservation.check_in, reservation.check_out)
    room_charges = (room_type.base_price if room_type else 0) * nights
    meal_plan_total = meal_plan_cost(meal_plan, reservation.adults, nights) if meal_plan else 0.0
    service_total = sum(service.amount for service in services)
    extra_charges = sum(charge.amount for charge in additional_charges)

    sub_total = room_charges + meal_plan_total + service_total + extra_charges
    tax_amount = sub_total * (tax_percent / 100)

    return ChargeBreakdown(
        nights=nights,
        room_charges=room_charges,
        meal_plan_total=meal_plan_total,
        service_total=service_total,
        extra_charges=extra_charges,
        sub_total=sub_total,
        tax_percent=tax_percent,
        tax_amount=tax_amount,
        discount=discount,
        grand_total=sub_total + tax_amount - discount,
    )


def compute_payment(
    total: float,
    mode: PaymentMode = PaymentMode.FULL,
    custom_amount: Optional[float] = None,
) -> PaymentSummary:
    """Split a total into the amount collected now and the outstanding balance."""
    if mode == PaymentMode.HALF:
        requested = total / 2
    elif mode == PaymentMode.CUSTOM:
        requested = custom_amount or 0.0
    else:
        requested = total

    amount_paid = max(0.0, requested)
    return PaymentSummary(
        mode=mode,
        amount_paid=amount_paid,
        balance=max(0.0, total - amount_paid),
    )


def compute_refund(reservation: Reservation, today: date) -> RefundQuote:
    """
    Refund owed if ``reservation`` is canceled on ``today``.

    Only confirmed stays earn a refund. More than seven days' notice returns
    the full amount, three to seven days half of it and zero to two days a
    quarter. Once check-in has passed nothing is refunded.
    """
    days = (reservation.check_in - today).days
    share = 0.0
    if reservation.status == ReservationStatus.CONFIRMED:
        for min_days, tier_share in REFUND_TIERS:
            if days >= min_days:
                share = tier_share
                break

    return RefundQuote(
        reservation_id=reservation.id,
        days_until_check_in=days,
        refund_percent=share * 100,
        refundable_amount=reservation.total_amount * share,
    )
