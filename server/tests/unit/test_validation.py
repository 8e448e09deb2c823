"""Unit tests for stay date validation."""

from datetime import date

import pytest

from frontdesk.core.exceptions import ValidationError
from frontdesk.core.validation import parse_check_out, parse_stay_dates, validate_stay_dates


def test_valid_dates_have_no_errors():
    assert validate_stay_dates("2024-01-01", "2024-01-04") == {}


def test_missing_dates_are_reported_per_field():
    errors = validate_stay_dates(None, "  ")
    assert set(errors) == {"check_in", "check_out"}
    assert "received nothing" in errors["check_in"]


def test_malformed_date():
    errors = validate_stay_dates("2024-13-01", "2024-01-04")
    assert set(errors) == {"check_in"}
    assert "YYYY-MM-DD" in errors["check_in"]


def test_order_checked_only_on_request():
    assert validate_stay_dates("2024-01-04", "2024-01-01") == {}

    errors = validate_stay_dates("2024-01-04", "2024-01-04", require_order=True)
    assert errors == {"check_out": "Check-out date must be after the check-in date"}


def test_parse_stay_dates():
    assert parse_stay_dates(" 2024-01-01", "2024-01-04 ") == (date(2024, 1, 1), date(2024, 1, 4))


def test_parse_stay_dates_raises_with_errors():
    with pytest.raises(ValidationError) as exc_info:
        parse_stay_dates("2024-01-01", None)

    assert exc_info.value.status_code == 400
    assert set(exc_info.value.errors) == {"check_out"}
    assert exc_info.value.problem_details["errors"] == exc_info.value.errors


def test_parse_check_out():
    assert parse_check_out("2024-02-29") == date(2024, 2, 29)

    with pytest.raises(ValidationError) as exc_info:
        parse_check_out("tomorrow")
    assert "new_check_out" in exc_info.value.errors
