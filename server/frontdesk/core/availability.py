"""
Availability checking for rooms over half-open date intervals.

A stay occupies ``[check_in, check_out)``: the check-out day itself is free,
so a guest can arrive on the morning another one leaves. Everything here is
a pure function of the reservations passed in; callers own snapshot
freshness and must serialise writes (see ``services.store``).
"""

import math
from collections.abc import Iterable
from datetime import date
from typing import Optional

from ..schemas.availability import Conflict, ExtensionCheck, ExtensionRejection
from ..schemas.reservation import Reservation, ReservationStatus

SECONDS_PER_DAY = 24 * 60 * 60


def overlaps(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Return True when ``[a_start, a_end)`` and ``[b_start, b_end)`` intersect."""
    return a_start < b_end and b_start < a_end


def _blocking(
    room_id: str,
    exclude_reservation_id: Optional[str],
    reservations: Iterable[Reservation],
) -> Iterable[Reservation]:
    for reservation in reservations:
        if reservation.room_id != room_id:
            continue
        if exclude_reservation_id is not None and reservation.id == exclude_reservation_id:
            continue
        if reservation.status == ReservationStatus.CANCELED:
            continue
        yield reservation


def find_conflicts(
    room_id: str,
    check_in: date,
    check_out: date,
    exclude_reservation_id: Optional[str],
    reservations: Iterable[Reservation],
) -> list[Reservation]:
    """
    Return the reservations that occupy part of ``[check_in, check_out)``.

    Only reservations for ``room_id`` count; ``exclude_reservation_id`` (the
    stay being extended, if any) and canceled reservations are ignored.
    Results keep the order of ``reservations``.
    """
    return [
        existing
        for existing in _blocking(room_id, exclude_reservation_id, reservations)
        if overlaps(existing.check_in, existing.check_out, check_in, check_out)
    ]


def is_room_available_for_interval(
    room_id: str,
    check_in: date,
    check_out: date,
    exclude_reservation_id: Optional[str],
    reservations: Iterable[Reservation],
) -> bool:
    """Return True when no other live reservation of the room intersects the interval."""
    for existing in _blocking(room_id, exclude_reservation_id, reservations):
        if overlaps(existing.check_in, existing.check_out, check_in, check_out):
            return False
    return True


def to_conflicts(reservations: Iterable[Reservation]) -> list[Conflict]:
    return [
        Conflict(
            reservation_id=r.id,
            room_id=r.room_id,
            check_in=r.check_in,
            check_out=r.check_out,
        )
        for r in reservations
    ]


def additional_nights(current_check_out: date, new_check_out: date) -> int:
    """Nights added by moving check-out; never negative."""
    span = (new_check_out - current_check_out).total_seconds() / SECONDS_PER_DAY
    return max(0, math.ceil(span))


def check_extension(
    reservation: Reservation,
    new_check_out: date,
    reservations: Iterable[Reservation],
) -> ExtensionCheck:
    """
    Gate an extend-mode check-out change.

    A new check-out on or before the current one is rejected as
    ``INVALID_DATE`` whatever the room's bookings look like. Otherwise the
    whole stretched stay ``[check_in, new_check_out)`` is checked against the
    room's other live reservations.

    Args:
        reservation: The stay being extended
        new_check_out: Requested check-out date
        reservations: All known reservations (any room, any status)

    Returns:
        ExtensionCheck describing the decision
    """
    nights = additional_nights(reservation.check_out, new_check_out)

    if new_check_out <= reservation.check_out:
        return ExtensionCheck(
            allowed=False,
            reason=ExtensionRejection.INVALID_DATE,
            current_check_out=reservation.check_out,
            new_check_out=new_check_out,
            additional_nights=nights,
        )

    conflicts = find_conflicts(
        reservation.room_id,
        reservation.check_in,
        new_check_out,
        reservation.id,
        reservations,
    )
    if conflicts:
        return ExtensionCheck(
            allowed=False,
            reason=ExtensionRejection.CONFLICT,
            current_check_out=reservation.check_out,
            new_check_out=new_check_out,
            additional_nights=nights,
            conflicts=to_conflicts(conflicts),
        )

    return ExtensionCheck(
        allowed=True,
        current_check_out=reservation.check_out,
        new_check_out=new_check_out,
        additional_nights=nights,
    )
