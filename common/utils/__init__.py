"""
Utilities module - Common helpers for API responses, exceptions, ids and dates.
"""

from common.utils.responses import success_response, error_response
from common.utils.exceptions import (
    APIException,
    BadRequestException,
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
    ConflictException,
    ValidationException,
)
from common.utils.ids import parse_object_id, serialize_doc
from common.utils.dates import today_utc, parse_iso_date, month_prefix

__all__ = [
    "success_response",
    "error_response",
    "APIException",
    "BadRequestException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotFoundException",
    "ConflictException",
    "ValidationException",
    "parse_object_id",
    "serialize_doc",
    "today_utc",
    "parse_iso_date",
    "month_prefix",
]
