"""Observability setup for OpenTelemetry, metrics, and structured logging."""

import logging

import structlog
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest

from .config import settings

SERVICE_NAME = "frontdesk-api"
SERVICE_VERSION = "1.0.0"

# Prometheus metrics
REGISTRY = CollectorRegistry()

# Request metrics
REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code'],
    registry=REGISTRY
)

REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=REGISTRY
)

# Business metrics
RESERVATIONS_CREATED = Counter(
    'reservations_created_total',
    'Total reservations created',
    ['channel', 'status'],
    registry=REGISTRY
)

RESERVATIONS_EXTENDED = Counter(
    'reservations_extended_total',
    'Total reservations extended',
    registry=REGISTRY
)

RESERVATIONS_CANCELED = Counter(
    'reservations_canceled_total',
    'Total reservations canceled',
    registry=REGISTRY
)

RESERVATIONS_CHECKED_OUT = Counter(
    'reservations_checked_out_total',
    'Total reservations checked out',
    registry=REGISTRY
)

AVAILABILITY_CONFLICTS = Counter(
    'availability_conflicts_total',
    'Availability checks that found a conflicting stay',
    ['operation'],
    registry=REGISTRY
)

QUOTES_COMPUTED = Counter(
    'quotes_computed_total',
    'Total price quotes computed',
    registry=REGISTRY
)

ACTIVE_RESERVATIONS = Gauge(
    'reservations_active',
    'Reservations that are confirmed or checked in',
    registry=REGISTRY
)


def setup_structured_logging():
    """Configure structured logging with structlog."""

    def add_trace_context(logger, method_name, event_dict):
        """Add trace context to log events."""
        span = trace.get_current_span()
        if span and span.is_recording():
            ctx = span.get_span_context()
            event_dict['trace_id'] = format(ctx.trace_id, '032x')
            event_dict['span_id'] = format(ctx.span_id, '016x')
        return event_dict

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_trace_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def setup_tracing(app_name: str = SERVICE_NAME):
    """Setup OpenTelemetry tracing; spans are exported only when an OTLP endpoint is set."""
    resource = Resource.create({
        "service.name": app_name,
        "service.version": SERVICE_VERSION,
        "environment": settings.environment,
    })

    provider = TracerProvider(resource=resource)
    if settings.otlp_endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint))
        )
    trace.set_tracer_provider(provider)

    return trace.get_tracer(__name__)


def instrument_fastapi(app):
    """Instrument FastAPI with OpenTelemetry."""
    FastAPIInstrumentor.instrument_app(app)


class MetricsCollector:
    """Collector for business metrics."""

    @staticmethod
    def record_reservation_created(channel: str, status: str):
        """Record a reservation creation."""
        RESERVATIONS_CREATED.labels(channel=channel, status=status).inc()

    @staticmethod
    def record_reservation_extended():
        """Record a reservation extension."""
        RESERVATIONS_EXTENDED.inc()

    @staticmethod
    def record_reservation_canceled():
        """Record a reservation cancellation."""
        RESERVATIONS_CANCELED.inc()

    @staticmethod
    def record_reservation_checked_out():
        """Record a check-out."""
        RESERVATIONS_CHECKED_OUT.inc()

    @staticmethod
    def record_availability_conflict(operation: str):
        """Record an availability check that hit a conflict."""
        AVAILABILITY_CONFLICTS.labels(operation=operation).inc()

    @staticmethod
    def record_quote():
        """Record a computed quote."""
        QUOTES_COMPUTED.inc()

    @staticmethod
    def set_active_reservations(count: int):
        """Set the number of live reservations."""
        ACTIVE_RESERVATIONS.set(count)

    @staticmethod
    def record_request(method: str, endpoint: str, status_code: int, duration: float):
        """Record one served HTTP request."""
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status_code=str(status_code)).inc()
        REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(duration)


def get_prometheus_metrics():
    """Get Prometheus metrics for the /metrics endpoint."""
    return generate_latest(REGISTRY)


# Global metrics collector instance
metrics_collector = MetricsCollector()


class StructuredLogger:
    """Structured logger with business context."""

    def __init__(self, name_or_logger):
        if isinstance(name_or_logger, str):
            self.logger = structlog.get_logger(name_or_logger)
        else:
            self.logger = name_or_logger

    def info(self, message: str, **kwargs):
        """Log info message with context."""
        self.logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with context."""
        self.logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with context."""
        self.logger.error(message, **kwargs)

    def debug(self, message: str, **kwargs):
        """Log debug message with context."""
        self.logger.debug(message, **kwargs)

    def with_context(self, **kwargs):
        """Add context to logger."""
        return StructuredLogger(self.logger.bind(**kwargs))


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name)
