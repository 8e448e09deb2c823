"""Parsing and validation of operator-entered stay dates."""

from datetime import date
from typing import Optional

from .exceptions import ValidationError

DATE_FORMAT_HINT = "YYYY-MM-DD"


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string; raises ValueError when malformed."""
    return date.fromisoformat(value.strip())


def _field_error(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return "Invalid input: expected date, received nothing"
    try:
        parse_date(value)
    except ValueError:
        return f"Invalid input: expected date in {DATE_FORMAT_HINT} format, received '{value}'"
    return None


def validate_stay_dates(
    check_in: Optional[str],
    check_out: Optional[str],
    require_order: bool = False,
) -> dict[str, str]:
    """
    Validate check-in/check-out strings.

    Returns:
        Errors keyed by ``check_in``/``check_out``; empty when both are valid
    """
    errors: dict[str, str] = {}
    for field, value in (("check_in", check_in), ("check_out", check_out)):
        message = _field_error(value)
        if message:
            errors[field] = message

    if require_order and not errors and parse_date(check_out) <= parse_date(check_in):
        errors["check_out"] = "Check-out date must be after the check-in date"

    return errors


def parse_stay_dates(
    check_in: Optional[str],
    check_out: Optional[str],
    require_order: bool = False,
) -> tuple[date, date]:
    """
    Parse check-in/check-out strings into dates.

    Raises:
        ValidationError: With field-keyed errors when either value is invalid
    """
    errors = validate_stay_dates(check_in, check_out, require_order=require_order)
    if errors:
        raise ValidationError(detail="Invalid stay dates", errors=errors)
    return parse_date(check_in), parse_date(check_out)


def parse_check_out(new_check_out: Optional[str], field: str = "new_check_out") -> date:
    """Parse a single check-out string, keying any error under ``field``."""
    message = _field_error(new_check_out)
    if message:
        raise ValidationError(detail="Invalid check-out date", errors={field: message})
    return parse_date(new_check_out)
