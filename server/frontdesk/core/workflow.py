"""Step machine for the reservation creation and extension flow."""

from collections.abc import Iterable, Sequence
from datetime import date
from enum import Enum
from typing import Optional

from ..schemas.availability import ExtensionCheck, ExtensionRejection
from ..schemas.pricing import RoomSelection
from ..schemas.reservation import Reservation
from .availability import check_extension
from .exceptions import InvalidExtensionError, InvalidTransitionError, ValidationError


class WorkflowState(str, Enum):
    """Booking flow steps."""
    SELECTING_DATES = "selecting-dates"
    SELECTING_ROOMS = "selecting-rooms"
    ENTERING_GUEST_DETAILS = "entering-guest-details"
    REVIEWING_SUMMARY = "reviewing-summary"
    CONFIRMED = "confirmed"
    CHECKED_OUT = "checked-out"


TERMINAL_STATES = frozenset({WorkflowState.CONFIRMED, WorkflowState.CHECKED_OUT})

_TRANSITIONS: dict[WorkflowState, frozenset[WorkflowState]] = {
    WorkflowState.SELECTING_DATES: frozenset({WorkflowState.SELECTING_ROOMS}),
    WorkflowState.SELECTING_ROOMS: frozenset({
        WorkflowState.SELECTING_DATES,
        WorkflowState.ENTERING_GUEST_DETAILS,
    }),
    WorkflowState.ENTERING_GUEST_DETAILS: frozenset({
        WorkflowState.SELECTING_ROOMS,
        WorkflowState.REVIEWING_SUMMARY,
    }),
    WorkflowState.REVIEWING_SUMMARY: frozenset({
        WorkflowState.ENTERING_GUEST_DETAILS,
        WorkflowState.CONFIRMED,
    }),
}

# Extend mode edits the check-out date only: dates go straight to the summary,
# or to check-out when the room is taken.
_EXTEND_TRANSITIONS: dict[WorkflowState, frozenset[WorkflowState]] = {
    WorkflowState.SELECTING_DATES: frozenset({
        WorkflowState.REVIEWING_SUMMARY,
        WorkflowState.CHECKED_OUT,
    }),
    WorkflowState.REVIEWING_SUMMARY: frozenset({
        WorkflowState.SELECTING_DATES,
        WorkflowState.CONFIRMED,
    }),
}


class ReservationWorkflow:
    """
    Tracks one operator's pass through the booking flow.

    Normal mode walks dates, rooms, guest details and summary before
    confirming. Extend mode (constructed with the reservation being
    extended) only edits the check-out date; its date step either moves
    to the summary or, when another stay blocks the extension, ends in
    ``CHECKED_OUT``.
    """

    def __init__(self, extending: Optional[Reservation] = None):
        self.extending = extending
        self.state = WorkflowState.SELECTING_DATES
        self.check_in: Optional[date] = extending.check_in if extending else None
        self.check_out: Optional[date] = extending.check_out if extending else None
        self.selections: list[RoomSelection] = (
            [RoomSelection(room_id=extending.room_id, meal_plan_id=extending.meal_plan_id)]
            if extending else []
        )
        self.adults = extending.adults if extending else 1
        self.children = extending.children if extending else 0
        self.extension: Optional[ExtensionCheck] = None

    @property
    def extend_mode(self) -> bool:
        return self.extending is not None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def allowed_targets(self) -> frozenset[WorkflowState]:
        table = _EXTEND_TRANSITIONS if self.extend_mode else _TRANSITIONS
        return table.get(self.state, frozenset())

    def can_transition(self, target: WorkflowState) -> bool:
        return target in self.allowed_targets()

    def transition(self, target: WorkflowState) -> WorkflowState:
        """Move to ``target`` or raise InvalidTransitionError."""
        if not self.can_transition(target):
            raise InvalidTransitionError(self.state.value, target.value)
        self.state = target
        return self.state

    def submit_dates(
        self,
        check_in: date,
        check_out: date,
        reservations: Iterable[Reservation] = (),
    ) -> Optional[ExtensionCheck]:
        """
        Complete the date step.

        In extend mode only ``check_out`` matters: an invalid date raises
        InvalidExtensionError and leaves the flow on the date step, a
        conflict ends the flow in ``CHECKED_OUT``, and a free room moves on
        to the summary.
        """
        if self.state != WorkflowState.SELECTING_DATES:
            raise InvalidTransitionError(self.state.value, WorkflowState.SELECTING_DATES.value)

        if not self.extend_mode:
            self.check_in, self.check_out = check_in, check_out
            self.transition(WorkflowState.SELECTING_ROOMS)
            return None

        check = check_extension(self.extending, check_out, reservations)
        self.extension = check
        if check.reason == ExtensionRejection.INVALID_DATE:
            raise InvalidExtensionError(self.extending.id, self.extending.check_out, check_out)

        self.check_out = check_out
        if check.allowed:
            self.transition(WorkflowState.REVIEWING_SUMMARY)
        else:
            self.transition(WorkflowState.CHECKED_OUT)
        return check

    def submit_rooms(self, selections: Sequence[RoomSelection]) -> None:
        if not selections:
            raise ValidationError(
                detail="Select at least one room",
                errors={"selections": "At least one room is required"},
            )
        self.transition(WorkflowState.ENTERING_GUEST_DETAILS)
        self.selections = list(selections)

    def submit_guests(self, adults: int, children: int) -> None:
        errors = {}
        if adults < 1:
            errors["adults"] = "At least one adult is required"
        if children < 0:
            errors["children"] = "Children cannot be negative"
        if errors:
            raise ValidationError(detail="Invalid guest counts", errors=errors)
        self.transition(WorkflowState.REVIEWING_SUMMARY)
        self.adults, self.children = adults, children

    def confirm(self) -> WorkflowState:
        return self.transition(WorkflowState.CONFIRMED)
