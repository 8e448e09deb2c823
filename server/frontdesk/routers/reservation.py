"""Reservation router for reservation lifecycle operations."""

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from ..core.dependencies import (
    IdempotencyKey,
    IdempotencyServiceDependency,
    ReservationServiceDependency,
)
from ..core.exceptions import ProblemDetailsException
from ..schemas.common import PROBLEM_RESPONSES
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
    ListReservationsResponse,
    Reservation,
)
from ..services.idempotency_service import IdempotencyService
from ..services.reservation_service import ReservationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/reservation", tags=["reservation"], responses=PROBLEM_RESPONSES)


async def _handle_idempotent_operation(
    method: str,
    idempotency_key: Optional[str],
    request_body: dict[str, Any],
    operation_func,
    idempotency_service: IdempotencyService,
) -> JSONResponse:
    """Run ``operation_func`` once per idempotency key, replaying the cached outcome."""
    if not idempotency_key:
        return JSONResponse(status_code=200, content=await operation_func())

    async with idempotency_service.key_lock(idempotency_key, method):
        cached_response = await idempotency_service.check_idempotency(
            idempotency_key=idempotency_key,
            method=method,
            request_body=request_body
        )

        if cached_response:
            status_code, response_body, response_headers = cached_response
            return JSONResponse(
                status_code=status_code,
                content=response_body,
                headers=response_headers or {}
            )

        try:
            response_dict = await operation_func()
        except ProblemDetailsException as e:
            # Replays of a rejected request get the same problem back
            await idempotency_service.store_response(
                idempotency_key=idempotency_key,
                method=method,
                request_body=request_body,
                status_code=e.status_code,
                response_body=e.problem_details
            )
            raise

        await idempotency_service.store_response(
            idempotency_key=idempotency_key,
            method=method,
            request_body=request_body,
            status_code=200,
            response_body=response_dict
        )

        return JSONResponse(status_code=200, content=response_dict)


def _internal_error(operation: str, error: Exception, **context) -> HTTPException:
    logger.error(
        f"Unexpected error in {operation}",
        extra={**context, "error": str(error)},
        exc_info=True
    )
    return HTTPException(status_code=500, detail="Internal server error")


@router.post("/create", response_model=CreateReservationResponse)
async def create_reservation(
    request: CreateReservationRequest,
    reservation_service: ReservationService = ReservationServiceDependency,
    idempotency_service: IdempotencyService = IdempotencyServiceDependency,
    idempotency_key: Optional[str] = IdempotencyKey,
) -> JSONResponse:
    """
    Book the selected rooms for a stay.

    One reservation is created per room. This operation is idempotent based
    on the Idempotency-Key header when one is sent.
    """

    async def operation():
        result = await reservation_service.create_reservation(request, idempotency_key)
        logger.info(
            "Reservation request completed",
            extra={
                "reservation_ids": [r.id for r in result.reservations],
                "rooms": [s.room_id for s in request.selections],
                "idempotency_key": idempotency_key
            }
        )
        return result.model_dump(mode="json")

    try:
        return await _handle_idempotent_operation(
            method="reservation/create",
            idempotency_key=idempotency_key,
            request_body=request.model_dump(mode="json"),
            operation_func=operation,
            idempotency_service=idempotency_service,
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _internal_error(
            "reservation creation", e,
            rooms=[s.room_id for s in request.selections],
            idempotency_key=idempotency_key,
        ) from e


@router.post("/extend", response_model=ExtendReservationResponse)
async def extend_reservation(
    request: ExtendReservationRequest,
    reservation_service: ReservationService = ReservationServiceDependency,
    idempotency_service: IdempotencyService = IdempotencyServiceDependency,
    idempotency_key: Optional[str] = IdempotencyKey,
) -> JSONResponse:
    """
    Move a reservation's check-out date later.

    A conflicting stay yields 409; the front desk then checks the guest out
    or moves them to a room from ``/extension-rooms``.
    """

    async def operation():
        result = await reservation_service.extend_reservation(request, idempotency_key)
        return result.model_dump(mode="json")

    try:
        return await _handle_idempotent_operation(
            method="reservation/extend",
            idempotency_key=idempotency_key,
            request_body=request.model_dump(mode="json"),
            operation_func=operation,
            idempotency_service=idempotency_service,
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _internal_error(
            "reservation extension", e,
            reservation_id=request.reservation_id,
            idempotency_key=idempotency_key,
        ) from e


@router.post("/cancel", response_model=Reservation)
async def cancel_reservation(
    request: CancelReservationRequest,
    reservation_service: ReservationService = ReservationServiceDependency,
    idempotency_service: IdempotencyService = IdempotencyServiceDependency,
    idempotency_key: Optional[str] = IdempotencyKey,
) -> JSONResponse:
    """
    Cancel a reservation.

    This operation is naturally idempotent - canceling an already canceled
    reservation returns the same result.
    """

    async def operation():
        reservation = await reservation_service.cancel_reservation(request, idempotency_key)
        return reservation.model_dump(mode="json")

    try:
        return await _handle_idempotent_operation(
            method="reservation/cancel",
            idempotency_key=idempotency_key,
            request_body=request.model_dump(mode="json"),
            operation_func=operation,
            idempotency_service=idempotency_service,
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _internal_error(
            "reservation cancellation", e,
            reservation_id=request.reservation_id,
            idempotency_key=idempotency_key,
        ) from e


@router.post("/check-in", response_model=Reservation)
async def check_in(
    request: CheckInRequest,
    reservation_service: ReservationService = ReservationServiceDependency,
) -> JSONResponse:
    """Check the guest in and mark the room occupied."""
    reservation = await reservation_service.check_in(request)
    return JSONResponse(status_code=200, content=reservation.model_dump(mode="json"))


@router.post("/check-out", response_model=Reservation)
async def check_out(
    request: CheckOutRequest,
    reservation_service: ReservationService = ReservationServiceDependency,
) -> JSONResponse:
    """Check the guest out; the room goes to maintenance."""
    reservation = await reservation_service.check_out(request)
    return JSONResponse(status_code=200, content=reservation.model_dump(mode="json"))


@router.post("/get", response_model=Reservation)
async def get_reservation(
    request: GetReservationRequest,
    reservation_service: ReservationService = ReservationServiceDependency,
) -> JSONResponse:
    """Get reservation details by ID."""
    reservation = reservation_service.get_reservation(request)
    return JSONResponse(status_code=200, content=reservation.model_dump(mode="json"))


@router.post("/list", response_model=ListReservationsResponse)
async def list_reservations(
    request: ListReservationsRequest,
    reservation_service: ReservationService = ReservationServiceDependency,
) -> JSONResponse:
    """List reservations, optionally filtered by room and status."""
    response_data = ListReservationsResponse(items=reservation_service.list_reservations(request))
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("/extension-rooms", response_model=ExtensionRoomsResponse)
async def extension_rooms(
    request: ExtensionRoomsRequest,
    reservation_service: ReservationService = ReservationServiceDependency,
) -> JSONResponse:
    """Rooms free for the extra nights of an extended stay."""
    response_data = reservation_service.find_extension_rooms(request)
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))
