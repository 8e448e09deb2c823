"""RFC 9457 Problem Details errors raised by the front desk service."""

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

PROBLEM_BASE_URI = "https://frontdesk.example/problems"


def problem_type(slug: str) -> str:
    """Problem type URI for ``slug``."""
    return f"{PROBLEM_BASE_URI}/{slug}"


class ProblemDetailsException(HTTPException):
    """
    Base class for errors rendered as Problem Details.

    ``problem_details`` is the exact JSON body sent to the client. Optional
    ``code`` and ``retryable`` members let clients branch without parsing
    ``detail``; anything in ``extensions`` is merged in as extra members.

    https://www.rfc-editor.org/rfc/rfc9457
    """

    def __init__(
        self,
        status_code: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: Optional[str] = None,
        instance: Optional[str] = None,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        code: Optional[str] = None,
        retryable: Optional[bool] = None,
    ):
        self.title = title
        self.code = code
        self.type_uri = type_uri or f"about:blank#{status_code}"

        body: Dict[str, Any] = {
            "type": self.type_uri,
            "title": title,
            "status": status_code,
        }
        if detail:
            body["detail"] = detail
        if instance:
            body["instance"] = instance
        if code:
            body["code"] = code
        if retryable is not None:
            body["retryable"] = retryable
        body.update(extensions or {})
        self.problem_details = body

        super().__init__(status_code=status_code, detail=body, headers=headers)


class ValidationError(ProblemDetailsException):
    """Bad input values; ``errors`` maps each field to its message."""

    def __init__(
        self,
        detail: str = "The request data failed validation",
        errors: Optional[Dict[str, str]] = None,
        code: str = "VALIDATION_FAILED",
    ):
        self.errors = dict(errors or {})
        super().__init__(
            status_code=400,
            title="Validation Error",
            detail=detail,
            type_uri=problem_type("validation-error"),
            extensions={"errors": self.errors} if self.errors else None,
            code=code,
            retryable=False,
        )


class NotFoundError(ProblemDetailsException):
    """A room, room type, meal plan or reservation id that does not exist."""

    def __init__(
        self,
        resource_type: str = "resource",
        resource_id: Optional[str] = None,
        detail: Optional[str] = None,
    ):
        if not detail:
            subject = f"{resource_type} '{resource_id}'" if resource_id else resource_type
            detail = f"Unknown {subject}"

        extensions = {"resource_type": resource_type}
        if resource_id:
            extensions["resource_id"] = resource_id

        super().__init__(
            status_code=404,
            title="Resource Not Found",
            detail=detail,
            type_uri=problem_type("not-found"),
            extensions=extensions,
            code="NOT_FOUND",
            retryable=False,
        )


class ConflictError(ProblemDetailsException):
    """The request clashes with current reservation or room state."""

    def __init__(
        self,
        detail: str = "The request conflicts with the current state of the resource",
        conflicting_resource: Optional[Dict[str, Any]] = None,
        code: str = "CONFLICT",
        slug: str = "conflict",
        extensions: Optional[Dict[str, Any]] = None,
    ):
        members = dict(extensions or {})
        if conflicting_resource:
            members["conflicting_resource"] = conflicting_resource

        super().__init__(
            status_code=409,
            title="Conflict",
            detail=detail,
            type_uri=problem_type(slug),
            extensions=members,
            code=code,
            retryable=False,
        )


class RoomUnavailableError(ConflictError):
    """The room already has a live reservation overlapping the stay."""

    def __init__(
        self,
        room_id: str,
        check_in: date,
        check_out: date,
        conflicting_reservation_ids: list[str],
        detail: Optional[str] = None,
    ):
        super().__init__(
            detail=detail or (
                f"Room {room_id} is already booked for part of "
                f"{check_in.isoformat()} to {check_out.isoformat()}"
            ),
            conflicting_resource={
                "room_id": room_id,
                "check_in": check_in.isoformat(),
                "check_out": check_out.isoformat(),
                "reservation_ids": conflicting_reservation_ids,
            },
            code="ROOM_UNAVAILABLE",
            slug="room-unavailable",
        )


class InvalidExtensionError(ValidationError):
    """The requested check-out does not lengthen the stay."""

    def __init__(self, reservation_id: str, current_check_out: date, new_check_out: date):
        super().__init__(
            detail=(
                f"New check-out {new_check_out.isoformat()} must be after the current "
                f"check-out {current_check_out.isoformat()} of reservation {reservation_id}"
            ),
            errors={"new_check_out": "Extension must be later than the current check-out date"},
            code="INVALID_EXTENSION",
        )


class InvalidTransitionError(ConflictError):
    """A workflow step or reservation status change that is not allowed."""

    def __init__(self, current: str, target: str, detail: Optional[str] = None):
        self.current = current
        self.target = target
        super().__init__(
            detail=detail or f"Cannot move from '{current}' to '{target}'",
            code="INVALID_TRANSITION",
            slug="invalid-transition",
            extensions={"current": current, "target": target},
        )


async def problem_details_handler(request: Request, exc: ProblemDetailsException) -> JSONResponse:
    """Render a ProblemDetailsException as ``application/problem+json``."""
    # Body must match what the idempotency cache replays
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.problem_details,
        headers=exc.headers,
        media_type="application/problem+json",
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI body validation failures as Problem Details with violations."""
    violations = [
        {
            "path": ".".join(str(part) for part in error.get("loc", ())),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]

    return JSONResponse(
        status_code=422,
        content={
            "type": problem_type("request-validation"),
            "title": "Request Validation Failed",
            "status": 422,
            "detail": "The request body failed schema validation",
            "instance": request.url.path,
            "code": "SCHEMA_VALIDATION_FAILED",
            "violations": violations,
        },
        media_type="application/problem+json",
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: log the failure and return an opaque 500 problem."""
    error_id = str(uuid.uuid4())
    logger.error(
        "Unhandled error",
        extra={"error_id": error_id, "path": request.url.path, "error": str(exc)},
        exc_info=exc,
    )

    return JSONResponse(
        status_code=500,
        content={
            "type": problem_type("internal-error"),
            "title": "Internal Server Error",
            "status": 500,
            "detail": "An unexpected error occurred while processing the request",
            "instance": request.url.path,
            "error_id": error_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
        media_type="application/problem+json",
    )
