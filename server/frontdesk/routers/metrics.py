"""Metrics endpoint for Prometheus scraping."""

from fastapi import APIRouter, Depends, Response

from ..core.dependencies import get_store
from ..core.observability import get_prometheus_metrics, metrics_collector
from ..services.store import ReservationStore

router = APIRouter()


@router.get(
    "/metrics",
    summary="Prometheus Metrics",
    description="Endpoint for Prometheus to scrape reservation and HTTP metrics",
    response_class=Response,
    tags=["Observability"]
)
async def metrics(store: ReservationStore = Depends(get_store)):
    """
    Return Prometheus metrics.

    The live-reservation gauge is refreshed from the store before rendering.
    """
    metrics_collector.set_active_reservations(store.count_live_reservations())
    return Response(
        content=get_prometheus_metrics(),
        media_type="text/plain; version=0.0.4; charset=utf-8"
    )
