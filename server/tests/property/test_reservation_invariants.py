"""Property-based tests for availability and pricing invariants."""

from datetime import date, timedelta

from hypothesis import given
from hypothesis import strategies as st

from frontdesk.core.availability import check_extension, is_room_available_for_interval
from frontdesk.core.pricing import compute_invoice, count_nights
from frontdesk.core.seed import demo_meal_plans, demo_room_types, demo_rooms
from frontdesk.schemas.availability import ExtensionRejection
from frontdesk.schemas.pricing import RoomSelection
from frontdesk.schemas.reservation import Reservation, ReservationStatus

# Strategies for generating test data
BASE_DATE = date(2024, 1, 1)
day_offsets = st.integers(min_value=0, max_value=365)
stay_lengths = st.integers(min_value=1, max_value=30)
guest_counts = st.integers(min_value=1, max_value=6)
room_ids = st.sampled_from([room.id for room in demo_rooms()])
meal_plan_ids = st.sampled_from([None] + [plan.id for plan in demo_meal_plans()])

ROOMS = {room.id: room for room in demo_rooms()}
ROOM_TYPES = {room_type.id: room_type for room_type in demo_room_types()}
MEAL_PLANS = {plan.id: plan for plan in demo_meal_plans()}


def _stay(offset: int, length: int) -> tuple[date, date]:
    start = BASE_DATE + timedelta(days=offset)
    return start, start + timedelta(days=length)


def _reservation(reservation_id: str, check_in: date, check_out: date, room_id: str = "room-201") -> Reservation:
    return Reservation(
        id=reservation_id,
        customer_id="guest",
        room_id=room_id,
        check_in=check_in,
        check_out=check_out,
        status=ReservationStatus.CONFIRMED,
    )


@given(room_id=room_ids, offset=day_offsets, length=stay_lengths)
def test_empty_property_is_always_available(room_id, offset, length):
    check_in, check_out = _stay(offset, length)
    assert is_room_available_for_interval(room_id, check_in, check_out, None, [])


@given(offset=day_offsets, first=stay_lengths, second=stay_lengths)
def test_back_to_back_stays_never_conflict(offset, first, second):
    a, b = _stay(offset, first)
    c = b + timedelta(days=second)
    existing = [_reservation("res-1", a, b)]

    assert is_room_available_for_interval("room-201", b, c, None, existing)
    # Mirror image: the new stay ends the day the existing one begins
    assert is_room_available_for_interval("room-201", a - timedelta(days=second), a, None, existing)


@given(
    existing_offset=day_offsets, existing_length=stay_lengths,
    new_offset=day_offsets, new_length=stay_lengths,
)
def test_availability_matches_interval_overlap(existing_offset, existing_length, new_offset, new_length):
    a, b = _stay(existing_offset, existing_length)
    c, d = _stay(new_offset, new_length)
    existing = [_reservation("res-1", a, b)]

    available = is_room_available_for_interval("room-201", c, d, None, existing)

    assert available == (not (a < d and c < b))


@given(
    existing_offset=day_offsets, existing_length=stay_lengths,
    new_offset=day_offsets, new_length=stay_lengths,
)
def test_canceled_stays_never_block(existing_offset, existing_length, new_offset, new_length):
    a, b = _stay(existing_offset, existing_length)
    c, d = _stay(new_offset, new_length)
    canceled = _reservation("res-1", a, b).model_copy(update={"status": ReservationStatus.CANCELED})

    assert is_room_available_for_interval("room-201", c, d, None, [canceled])


@given(
    selections=st.lists(
        st.builds(RoomSelection, room_id=room_ids, meal_plan_id=meal_plan_ids),
        min_size=1, max_size=4,
    ),
    adults=guest_counts,
    children=st.integers(min_value=0, max_value=4),
    offset=day_offsets,
    length=stay_lengths,
)
def test_invoice_is_a_pure_function(selections, adults, children, offset, length):
    check_in, check_out = _stay(offset, length)

    def quote(child_count):
        return compute_invoice(
            selections, adults, child_count, check_in, check_out,
            ROOM_TYPES, MEAL_PLANS, rooms_by_id=ROOMS,
        )

    first = quote(children)
    assert first == quote(children)
    # Children never change the price
    assert first == quote(0)
    assert first.nights == length
    assert abs(first.subtotal - (first.room_cost + first.meal_cost)) < 1e-6
    assert abs(first.total - first.subtotal * 1.1) < 1e-6


@given(offset=day_offsets, length=st.integers(min_value=-30, max_value=30))
def test_nights_are_at_least_one(offset, length):
    check_in = BASE_DATE + timedelta(days=offset)
    check_out = check_in + timedelta(days=length)

    assert count_nights(check_in, check_out) == max(1, length)


@given(offset=day_offsets, length=stay_lengths, shift=st.integers(min_value=0, max_value=60))
def test_extension_never_allowed_to_earlier_check_out(offset, length, shift):
    check_in, check_out = _stay(offset, length)
    reservation = _reservation("res-1", check_in, check_out)
    new_check_out = check_out - timedelta(days=shift)

    check = check_extension(reservation, new_check_out, [reservation])

    assert not check.allowed
    assert check.reason == ExtensionRejection.INVALID_DATE


@given(offset=day_offsets, length=stay_lengths, extra=stay_lengths, gap=st.integers(min_value=0, max_value=30))
def test_extension_conflicts_exactly_when_next_stay_overlaps(offset, length, extra, gap):
    check_in, check_out = _stay(offset, length)
    reservation = _reservation("res-1", check_in, check_out)
    next_arrival = check_out + timedelta(days=gap)
    next_stay = _reservation("res-2", next_arrival, next_arrival + timedelta(days=3))
    new_check_out = check_out + timedelta(days=extra)

    check = check_extension(reservation, new_check_out, [reservation, next_stay])

    assert check.allowed == (new_check_out <= next_arrival)
    assert check.additional_nights == extra
