"""
Calendar date helpers.

Attendance, logs and tasks key their day as an ISO ``YYYY-MM-DD`` string.
"""

from datetime import date, datetime, timezone

from common.utils.exceptions import ValidationException


def today_utc() -> date:
    """Current calendar date in UTC."""
    return datetime.now(timezone.utc).date()


def parse_iso_date(value: str, field: str = "date") -> date:
    """
    Parse a ``YYYY-MM-DD`` string.

    Raises:
        ValidationException: If the value is not a valid calendar date
    """
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationException(
            message=f"Invalid {field}, expected YYYY-MM-DD",
            code="INVALID_DATE",
            details={"field": field, "value": value},
        )


def month_prefix(year: int, month: int) -> str:
    """``YYYY-MM`` prefix matching every date string in that month."""
    if not 1 <= month <= 12:
        raise ValidationException(
            message="Month must be between 1 and 12",
            code="INVALID_DATE",
            details={"field": "month", "value": month},
        )
    return f"{year:04d}-{month:02d}"
