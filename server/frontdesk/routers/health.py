"""Health check router."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..core.dependencies import get_store
from ..core.observability import SERVICE_NAME, SERVICE_VERSION
from ..schemas.health import HealthResponse, HealthStatus
from ..services.store import ReservationStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/health", tags=["health"])


@router.post("/ping", response_model=HealthResponse)
async def health_ping(store: ReservationStore = Depends(get_store)) -> JSONResponse:
    """
    Health check endpoint.

    Reports degraded when the store holds no rooms, since nothing can be booked.
    """
    rooms = len(store.snapshot.rooms)
    response_data = HealthResponse(
        status=HealthStatus.HEALTHY if rooms else HealthStatus.DEGRADED,
        timestamp=datetime.utcnow(),
        version=SERVICE_VERSION,
        service=SERVICE_NAME,
        rooms=rooms,
        active_reservations=store.count_live_reservations(),
    )

    logger.debug(
        "Health check requested",
        extra={
            "status": response_data.status,
            "timestamp": response_data.timestamp.isoformat()
        }
    )

    return JSONResponse(
        status_code=200,
        content=response_data.model_dump(mode="json")
    )
