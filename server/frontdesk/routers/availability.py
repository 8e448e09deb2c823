"""Availability router for read-only room availability checks."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..core.dependencies import ReservationServiceDependency
from ..schemas.availability import (
    AvailabilityRequest,
    AvailabilityResponse,
    ExtensionCheck,
    ExtensionCheckRequest,
)
from ..schemas.common import PROBLEM_RESPONSES
from ..services.reservation_service import ReservationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/availability", tags=["availability"], responses=PROBLEM_RESPONSES)


@router.post("/check", response_model=AvailabilityResponse)
async def check_availability(
    request: AvailabilityRequest,
    reservation_service: ReservationService = ReservationServiceDependency,
) -> JSONResponse:
    """
    Check whether a room is free for ``[check_in, check_out)``.

    Back-to-back stays do not conflict and canceled reservations never block.
    """
    response_data = reservation_service.check_availability(request)

    logger.debug(
        "Availability checked",
        extra={
            "room_id": request.room_id,
            "available": response_data.available,
            "conflicts": len(response_data.conflicts),
        }
    )

    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("/extension", response_model=ExtensionCheck)
async def check_extension(
    request: ExtensionCheckRequest,
    reservation_service: ReservationService = ReservationServiceDependency,
) -> JSONResponse:
    """Evaluate a check-out extension without applying it."""
    response_data = reservation_service.check_extension(request)
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))
