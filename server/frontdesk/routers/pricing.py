"""Pricing router for quotes, invoices, payment splits and refunds."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..core.dependencies import PricingServiceDependency
from ..schemas.common import PROBLEM_RESPONSES
from ..schemas.pricing import (
    ChargeBreakdown,
    InvoiceBreakdown,
    InvoiceRequest,
    PaymentRequest,
    PaymentSummary,
    QuoteRequest,
    RefundQuote,
    RefundRequest,
)
from ..services.pricing_service import PricingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/pricing", tags=["pricing"], responses=PROBLEM_RESPONSES)


@router.post("/quote", response_model=InvoiceBreakdown)
async def quote(
    request: QuoteRequest,
    pricing_service: PricingService = PricingServiceDependency,
) -> JSONResponse:
    """
    Price a prospective stay.

    Nothing is reserved; the same request always yields the same quote.
    """
    invoice = pricing_service.quote(request)
    return JSONResponse(status_code=200, content=invoice.rounded().model_dump(mode="json"))


@router.post("/invoice", response_model=ChargeBreakdown)
async def invoice(
    request: InvoiceRequest,
    pricing_service: PricingService = PricingServiceDependency,
) -> JSONResponse:
    """Itemised bill for an existing reservation, with services and extras."""
    breakdown = pricing_service.invoice(request)

    logger.info(
        "Invoice computed",
        extra={
            "reservation_id": request.reservation_id,
            "grand_total": breakdown.grand_total,
        }
    )

    return JSONResponse(status_code=200, content=breakdown.model_dump(mode="json"))


@router.post("/payment", response_model=PaymentSummary)
async def payment(
    request: PaymentRequest,
    pricing_service: PricingService = PricingServiceDependency,
) -> JSONResponse:
    """Split a total into the amount paid now and the balance due."""
    summary = pricing_service.payment(request)
    return JSONResponse(status_code=200, content=summary.model_dump(mode="json"))


@router.post("/refund", response_model=RefundQuote)
async def refund(
    request: RefundRequest,
    pricing_service: PricingService = PricingServiceDependency,
) -> JSONResponse:
    """
    Preview the refund of cancelling a reservation.

    Confirmed stays get 100% back with more than seven days' notice, 50% with
    three to seven and 25% with less. Checked-in or checked-out stays get
    nothing.
    """
    quote = pricing_service.refund(request)
    return JSONResponse(status_code=200, content=quote.model_dump(mode="json"))
