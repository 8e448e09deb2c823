"""Pricing service: quotes, standalone invoices, payment splits and refunds."""

from datetime import date
from typing import Optional

from ..core.config import settings
from ..core.exceptions import NotFoundError
from ..core.observability import get_logger, metrics_collector
from ..core.pricing import compute_charge_breakdown, compute_invoice, compute_payment, compute_refund
from ..core.validation import parse_stay_dates
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
from .store import ReservationStore

logger = get_logger(__name__)


class PricingService:
    """Service for price computations over the current property snapshot."""

    def __init__(
        self,
        store: ReservationStore,
        tax_rate: Optional[float] = None,
        invoice_tax_percent: Optional[float] = None,
    ):
        self.store = store
        self.tax_rate = settings.booking_tax_rate if tax_rate is None else tax_rate
        self.invoice_tax_percent = (
            settings.invoice_tax_percent if invoice_tax_percent is None else invoice_tax_percent
        )

    def quote(self, request: QuoteRequest) -> InvoiceBreakdown:
        """
        Price a prospective booking without reserving anything.

        Raises:
            ValidationError: If the dates are missing, malformed or out of order
            NotFoundError: If a selected room or meal plan does not exist
        """
        check_in, check_out = parse_stay_dates(request.check_in, request.check_out, require_order=True)

        for selection in request.selections:
            if not self.store.get_room(selection.room_id):
                raise NotFoundError(resource_type="room", resource_id=selection.room_id)
            if selection.meal_plan_id and not self.store.get_meal_plan(selection.meal_plan_id):
                raise NotFoundError(resource_type="meal plan", resource_id=selection.meal_plan_id)

        snapshot = self.store.snapshot
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
            discount=request.discount,
        )
        metrics_collector.record_quote()
        logger.debug(
            "Quote computed",
            rooms=len(request.selections),
            nights=invoice.nights,
            total=invoice.total,
        )
        return invoice

    def invoice(self, request: InvoiceRequest) -> ChargeBreakdown:
        """Itemised bill for an existing reservation."""
        reservation = self.store.get_reservation(request.reservation_id)
        if not reservation:
            raise NotFoundError(resource_type="reservation", resource_id=request.reservation_id)

        room = self.store.get_room(reservation.room_id)
        room_type = self.store.get_room_type(room.room_type_id) if room else None
        meal_plan = self.store.get_meal_plan(reservation.meal_plan_id) if reservation.meal_plan_id else None

        tax_percent = self.invoice_tax_percent if request.tax_percent is None else request.tax_percent
        return compute_charge_breakdown(
            reservation,
            room_type,
            meal_plan,
            services=request.services,
            additional_charges=request.additional_charges,
            tax_percent=tax_percent,
            discount=request.discount,
        )

    def payment(self, request: PaymentRequest) -> PaymentSummary:
        return compute_payment(request.total, request.mode, request.custom_amount)

    def refund(self, request: RefundRequest) -> RefundQuote:
        """What canceling the reservation on ``as_of`` (default today) would refund."""
        reservation = self.store.get_reservation(request.reservation_id)
        if not reservation:
            raise NotFoundError(resource_type="reservation", resource_id=request.reservation_id)
        return compute_refund(reservation, request.as_of or date.today())
