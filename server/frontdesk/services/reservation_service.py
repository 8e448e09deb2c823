"""Reservation service: availability checks and reservation lifecycle."""

from collections.abc import AsyncIterator, Callable, Iterable, Sequence
from contextlib import asynccontextmanager
from datetime import date
from typing import Optional
from uuid import uuid4

from ..core.availability import check_extension, find_conflicts, to_conflicts
from ..core.config import settings
from ..core.exceptions import (
    InvalidExtensionError,
    InvalidTransitionError,
    NotFoundError,
    RoomUnavailableError,
    ValidationError,
)
from ..core.observability import get_logger, metrics_collector
from ..core.pricing import compute_extension_price, compute_invoice, compute_refund
from ..core.validation import parse_check_out, parse_stay_dates
from ..core.workflow import ReservationWorkflow, WorkflowState
from ..schemas.availability import (
    AvailabilityRequest,
    AvailabilityResponse,
    ExtensionCheck,
    ExtensionCheckRequest,
)
from ..schemas.inventory import RoomStatus
from ..schemas.pricing import RoomSelection
from ..schemas.reservation import (
    CancelReservationRequest,
    CheckInRequest,
    CheckOutRequest,
    CreateReservationRequest,
    CreateReservationResponse,
    ExtendReservationRequest,
    ExtendReservationResponse,
    ExtensionRoomsRequest,
    ExtensionRoomsResponse,
    GetReservationRequest,
    ListReservationsRequest,
    Reservation,
    ReservationStatus,
)
from .store import ReservationStore

logger = get_logger(__name__)


class ReservationService:
    """Service for availability and reservation operations."""

    def __init__(
        self,
        store: ReservationStore,
        tax_rate: Optional[float] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.store = store
        self.tax_rate = settings.booking_tax_rate if tax_rate is None else tax_rate
        self.today = today or date.today

    # Lookups

    def get_reservation_or_raise(self, reservation_id: str) -> Reservation:
        """Get reservation by ID or raise NotFoundError."""
        reservation = self.store.get_reservation(reservation_id)
        if not reservation:
            logger.warning("Reservation not found", reservation_id=reservation_id)
            raise NotFoundError(resource_type="reservation", resource_id=reservation_id)
        return reservation

    def _require_room(self, room_id: str):
        room = self.store.get_room(room_id)
        if not room:
            raise NotFoundError(resource_type="room", resource_id=room_id)
        return room

    def _validate_selections(self, selections: Sequence[RoomSelection], guests: int) -> None:
        """Check rooms and meal plans exist, rooms are distinct and hold every guest."""
        room_ids = [selection.room_id for selection in selections]
        if len(set(room_ids)) != len(room_ids):
            raise ValidationError(
                detail="Each room can be selected once",
                errors={"selections": "Duplicate room in selection"},
            )

        capacity = 0
        for selection in selections:
            room = self._require_room(selection.room_id)
            room_type = self.store.get_room_type(room.room_type_id)
            capacity += room_type.capacity if room_type else 0
            if selection.meal_plan_id and not self.store.get_meal_plan(selection.meal_plan_id):
                raise NotFoundError(resource_type="meal plan", resource_id=selection.meal_plan_id)

        if guests > capacity:
            raise ValidationError(
                detail=f"Selected rooms hold {capacity} guests, {guests} requested",
                errors={"selections": "Not enough capacity for all guests"},
            )

    def _refresh_active_gauge(self) -> None:
        metrics_collector.set_active_reservations(self.store.count_live_reservations())

    @asynccontextmanager
    async def _locked_reservation(
        self,
        reservation_id: str,
        extra_room_ids: Iterable[str] = (),
    ) -> AsyncIterator[Reservation]:
        """
        Hold the locks of a reservation's room (plus ``extra_room_ids``) and
        yield the reservation as read under them.

        An extension can move a stay to another room between the first read
        and the lock, in which case the locks are retaken for the new room.
        """
        extra_room_ids = tuple(extra_room_ids)
        while True:
            room_ids = {self.get_reservation_or_raise(reservation_id).room_id, *extra_room_ids}
            async with self.store.lock_rooms(room_ids):
                reservation = self.get_reservation_or_raise(reservation_id)
                if reservation.room_id in room_ids:
                    yield reservation
                    return

    def _release_room(self, room_id: str, status: RoomStatus) -> None:
        """Set a vacated room's status unless another guest is still checked in to it."""
        for other in self.store.snapshot.reservations_for_room(room_id):
            if other.status == ReservationStatus.CHECKED_IN:
                logger.info(
                    "Room still occupied - status left unchanged",
                    room_id=room_id,
                    occupied_by=other.id,
                    requested_status=status.value,
                )
                return
        self.store.set_room_status(room_id, status)

    # Availability

    def check_availability(self, request: AvailabilityRequest) -> AvailabilityResponse:
        """
        Check whether a room is free for an interval.

        Raises:
            ValidationError: If the dates are missing, malformed or out of order
            NotFoundError: If the room does not exist
        """
        check_in, check_out = parse_stay_dates(request.check_in, request.check_out, require_order=True)
        self._require_room(request.room_id)

        conflicts = find_conflicts(
            request.room_id,
            check_in,
            check_out,
            request.exclude_reservation_id,
            self.store.snapshot.reservations_for_room(request.room_id),
        )
        if conflicts:
            metrics_collector.record_availability_conflict("check")

        return AvailabilityResponse(
            room_id=request.room_id,
            check_in=check_in,
            check_out=check_out,
            available=not conflicts,
            conflicts=to_conflicts(conflicts),
        )

    def check_extension(self, request: ExtensionCheckRequest) -> ExtensionCheck:
        """Evaluate an extension without applying it."""
        reservation = self.get_reservation_or_raise(request.reservation_id)
        new_check_out = parse_check_out(request.new_check_out)
        return check_extension(reservation, new_check_out, self.store.snapshot.reservations)

    def find_extension_rooms(self, request: ExtensionRoomsRequest) -> ExtensionRoomsResponse:
        """
        Rooms that could host the extra nights of an extended stay.

        A room qualifies when it is available (or is the guest's current
        room), matches the optional room type, fits every guest and has no
        booking over ``[check-in, new check-out)``. Every room listed here is
        accepted by :meth:`extend_reservation` as its ``room_id``.
        """
        reservation = self.get_reservation_or_raise(request.reservation_id)
        new_check_out = parse_check_out(request.new_check_out)
        if new_check_out <= reservation.check_out:
            raise InvalidExtensionError(reservation.id, reservation.check_out, new_check_out)

        snapshot = self.store.snapshot
        room_types = snapshot.room_types_by_id()
        guests = reservation.adults + reservation.children

        candidates = []
        for room in snapshot.rooms:
            if room.status != RoomStatus.AVAILABLE and room.id != reservation.room_id:
                continue
            if request.room_type_id and room.room_type_id != request.room_type_id:
                continue
            room_type = room_types.get(room.room_type_id)
            if room_type and room_type.capacity < guests:
                continue
            if find_conflicts(room.id, reservation.check_in, new_check_out, reservation.id, snapshot.reservations):
                continue
            candidates.append(room)

        check = check_extension(reservation, new_check_out, snapshot.reservations)
        return ExtensionRoomsResponse(items=candidates, additional_nights=check.additional_nights)

    # Lifecycle

    async def create_reservation(
        self,
        request: CreateReservationRequest,
        idempotency_key: Optional[str] = None,
    ) -> CreateReservationResponse:
        """
        Book one reservation per selected room.

        Availability is re-checked and the reservations committed while the
        selected rooms' locks are held.

        Raises:
            ValidationError: On bad dates, duplicate rooms or too little capacity
            NotFoundError: If a room or meal plan does not exist
            RoomUnavailableError: If any selected room is taken for the stay
        """
        check_in, check_out = parse_stay_dates(request.check_in, request.check_out, require_order=True)

        workflow = ReservationWorkflow()
        workflow.submit_dates(check_in, check_out)
        self._validate_selections(request.selections, request.adults + request.children)
        workflow.submit_rooms(request.selections)
        workflow.submit_guests(request.adults, request.children)

        room_ids = [selection.room_id for selection in request.selections]
        status = ReservationStatus(request.status)
        customer_id = request.customer_id or str(uuid4())

        async with self.store.lock_rooms(room_ids):
            snapshot = self.store.snapshot
            for room_id in room_ids:
                conflicts = find_conflicts(
                    room_id, check_in, check_out, None, snapshot.reservations_for_room(room_id)
                )
                if conflicts:
                    metrics_collector.record_availability_conflict("create")
                    logger.warning(
                        "Reservation creation failed - room unavailable",
                        room_id=room_id,
                        check_in=check_in.isoformat(),
                        check_out=check_out.isoformat(),
                        conflicts=[c.id for c in conflicts],
                        idempotency_key=idempotency_key,
                    )
                    raise RoomUnavailableError(room_id, check_in, check_out, [c.id for c in conflicts])

            invoice = compute_invoice(
                request.selections,
                request.adults,
                request.children,
                check_in,
                check_out,
                snapshot.room_types_by_id(),
                snapshot.meal_plans_by_id(),
                rooms_by_id=snapshot.rooms_by_id(),
                tax_rate=self.tax_rate,
            )

            reservations = []
            for selection, line in zip(request.selections, invoice.room_details):
                reservation = Reservation(
                    id=str(uuid4()),
                    customer_id=customer_id,
                    room_id=selection.room_id,
                    check_in=check_in,
                    check_out=check_out,
                    adults=request.adults,
                    children=request.children,
                    status=status,
                    total_amount=line.price + line.meal_cost,
                    meal_plan_id=selection.meal_plan_id,
                    channel_id=request.channel_id,
                    notes=request.notes,
                )
                self.store.add_reservation(reservation)
                if status == ReservationStatus.CHECKED_IN:
                    self.store.set_room_status(selection.room_id, RoomStatus.OCCUPIED)
                reservations.append(reservation)

            workflow.confirm()

        for reservation in reservations:
            metrics_collector.record_reservation_created(request.channel_id, status.value)
        self._refresh_active_gauge()

        logger.info(
            "Reservations created successfully",
            reservation_ids=[r.id for r in reservations],
            customer_id=customer_id,
            nights=invoice.nights,
            total=invoice.total,
            idempotency_key=idempotency_key,
        )

        return CreateReservationResponse(reservations=reservations, invoice=invoice)

    async def extend_reservation(
        self,
        request: ExtendReservationRequest,
        idempotency_key: Optional[str] = None,
    ) -> ExtendReservationResponse:
        """
        Move a live reservation's check-out later, optionally into another room.

        When ``room_id`` names a different room the whole stay moves there:
        that room must be available, hold every guest and be free for
        ``[check_in, new_check_out)``. The added nights are priced at the
        room the guest ends up in.

        Raises:
            NotFoundError: If the reservation or target room does not exist
            InvalidTransitionError: If the reservation is canceled or checked out
            InvalidExtensionError: If the new check-out does not lengthen the stay
            ValidationError: If the target room is too small for the guests
            RoomUnavailableError: If another stay blocks the extension; the
                operator's alternative is to check the guest out
        """
        new_check_out = parse_check_out(request.new_check_out)
        extra_rooms = [request.room_id] if request.room_id else []
        for room_id in extra_rooms:
            self._require_room(room_id)
        log = logger.with_context(reservation_id=request.reservation_id, idempotency_key=idempotency_key)

        async with self._locked_reservation(request.reservation_id, extra_rooms) as reservation:
            if reservation.status not in (ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN):
                raise InvalidTransitionError(
                    reservation.status.value,
                    "extended",
                    detail=f"Reservation {reservation.id} is {reservation.status.value} and cannot be extended",
                )

            target_room_id = request.room_id or reservation.room_id
            moving = target_room_id != reservation.room_id
            adults = reservation.adults if request.adults is None else request.adults
            children = reservation.children if request.children is None else request.children

            # Availability is judged on the room the stay will end up in
            workflow = ReservationWorkflow(
                extending=reservation.model_copy(update={"room_id": target_room_id})
            )
            check = workflow.submit_dates(
                reservation.check_in, new_check_out, self.store.snapshot.reservations
            )

            if workflow.state == WorkflowState.CHECKED_OUT:
                metrics_collector.record_availability_conflict("extend")
                conflict_ids = [c.reservation_id for c in check.conflicts]
                log.warning(
                    "Reservation extension blocked by another stay",
                    room_id=target_room_id,
                    new_check_out=new_check_out.isoformat(),
                    conflicts=conflict_ids,
                )
                raise RoomUnavailableError(target_room_id, reservation.check_in, new_check_out, conflict_ids)

            room = self.store.get_room(target_room_id)
            if moving and room.status != RoomStatus.AVAILABLE:
                raise RoomUnavailableError(
                    target_room_id,
                    reservation.check_in,
                    new_check_out,
                    [],
                    detail=f"Room {target_room_id} is {room.status.value} and cannot take the stay",
                )

            room_type = self.store.get_room_type(room.room_type_id) if room else None
            if room_type and room_type.capacity < adults + children:
                raise ValidationError(
                    detail=f"Room {target_room_id} holds {room_type.capacity} guests, {adults + children} requested",
                    errors={"room_id": "Not enough capacity for all guests"},
                )

            extension_price = compute_extension_price(room_type, check.additional_nights)
            updated = self.store.replace_reservation(reservation.model_copy(update={
                "check_out": new_check_out,
                "room_id": target_room_id,
                "adults": adults,
                "children": children,
                "total_amount": reservation.total_amount + extension_price,
            }))

            if moving and reservation.status == ReservationStatus.CHECKED_IN:
                self._release_room(reservation.room_id, RoomStatus.AVAILABLE)
                self.store.set_room_status(target_room_id, RoomStatus.OCCUPIED)

            workflow.confirm()

        metrics_collector.record_reservation_extended()
        log.info(
            "Reservation extended successfully",
            previous_room_id=reservation.room_id,
            room_id=target_room_id,
            previous_check_out=check.current_check_out.isoformat(),
            new_check_out=new_check_out.isoformat(),
            additional_nights=check.additional_nights,
            extension_price=extension_price,
        )

        return ExtendReservationResponse(
            reservation=updated,
            extension=check,
            extension_price=extension_price,
        )

    async def cancel_reservation(
        self,
        request: CancelReservationRequest,
        idempotency_key: Optional[str] = None,
    ) -> Reservation:
        """
        Cancel a reservation and record the refund it earns.

        Cancelling twice returns the canceled reservation unchanged.
        """
        async with self._locked_reservation(request.reservation_id) as reservation:
            if reservation.status == ReservationStatus.CANCELED:
                logger.info(
                    "Reservation already canceled - returning existing reservation",
                    reservation_id=reservation.id,
                    idempotency_key=idempotency_key,
                )
                return reservation
            if reservation.status == ReservationStatus.CHECKED_OUT:
                raise InvalidTransitionError(reservation.status.value, ReservationStatus.CANCELED.value)

            refund = compute_refund(reservation, self.today())
            updated = self.store.replace_reservation(reservation.model_copy(update={
                "status": ReservationStatus.CANCELED,
                "refund_amount": refund.refundable_amount,
            }))
            if reservation.status == ReservationStatus.CHECKED_IN:
                self._release_room(reservation.room_id, RoomStatus.AVAILABLE)

        metrics_collector.record_reservation_canceled()
        self._refresh_active_gauge()
        logger.info(
            "Reservation canceled successfully",
            reservation_id=updated.id,
            refund_amount=refund.refundable_amount,
            days_until_check_in=refund.days_until_check_in,
            idempotency_key=idempotency_key,
        )
        return updated

    async def check_in(self, request: CheckInRequest) -> Reservation:
        """Mark a confirmed reservation as checked in and its room occupied."""
        async with self._locked_reservation(request.reservation_id) as reservation:
            if reservation.status == ReservationStatus.CHECKED_IN:
                return reservation
            if reservation.status != ReservationStatus.CONFIRMED:
                raise InvalidTransitionError(reservation.status.value, ReservationStatus.CHECKED_IN.value)

            updated = self.store.replace_reservation(
                reservation.model_copy(update={"status": ReservationStatus.CHECKED_IN})
            )
            self.store.set_room_status(reservation.room_id, RoomStatus.OCCUPIED)

        logger.info("Guest checked in", reservation_id=updated.id, room_id=updated.room_id)
        return updated

    async def check_out(self, request: CheckOutRequest) -> Reservation:
        """
        Close a checked-in stay; the room goes to maintenance until housekeeping clears it.

        Only a checked-in guest can check out. Repeating the call returns the
        checked-out reservation unchanged.
        """
        async with self._locked_reservation(request.reservation_id) as reservation:
            if reservation.status == ReservationStatus.CHECKED_OUT:
                return reservation
            if reservation.status != ReservationStatus.CHECKED_IN:
                raise InvalidTransitionError(reservation.status.value, ReservationStatus.CHECKED_OUT.value)

            updated = self.store.replace_reservation(
                reservation.model_copy(update={"status": ReservationStatus.CHECKED_OUT})
            )
            self._release_room(reservation.room_id, RoomStatus.MAINTENANCE)

        metrics_collector.record_reservation_checked_out()
        self._refresh_active_gauge()
        logger.info("Guest checked out", reservation_id=updated.id, room_id=updated.room_id)
        return updated

    def get_reservation(self, request: GetReservationRequest) -> Reservation:
        """Get reservation by ID."""
        return self.get_reservation_or_raise(request.reservation_id)

    def list_reservations(self, request: ListReservationsRequest) -> list[Reservation]:
        """List reservations, optionally filtered by room and status, ordered by check-in."""
        reservations = self.store.snapshot.reservations
        if request.room_id:
            reservations = [r for r in reservations if r.room_id == request.room_id]
        if request.status:
            reservations = [r for r in reservations if r.status == request.status]
        return sorted(reservations, key=lambda r: (r.check_in, r.room_id))

