"""
Exception handlers.

Every error leaves the API in the ``error_response`` envelope with a
message localized from ``locales/<lang>/errors.json``.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from common.i18n import I18nService
from common.utils import error_response
from common.utils.exceptions import APIException

logger = logging.getLogger(__name__)

HTTP_STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    429: "TOO_MANY_REQUESTS",
    500: "INTERNAL_ERROR",
}


def request_language(request: Request, i18n: I18nService) -> str:
    """Language from Accept-Language, then the profile setting, then the default."""
    header = request.headers.get("Accept-Language")
    if header:
        return i18n.resolve_language(header)

    user = getattr(request.state, "user", None)
    if user:
        language = (user.get("settings") or {}).get("language")
        if language and i18n.is_supported(language):
            return language

    return i18n.default_language


def localize(i18n: I18nService, code: Optional[str], message: str, language: str) -> str:
    if not code:
        return message
    return i18n.t(f"errors.{code}", language, default=message)


def register_exception_handlers(app: FastAPI, i18n: I18nService) -> None:
    """Install the JSON error handlers on the app."""

    @app.exception_handler(APIException)
    async def api_exception_handler(request: Request, exc: APIException):
        language = request_language(request, i18n)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(
                localize(i18n, exc.code, exc.message, language),
                code=exc.code,
                details=exc.detail.get("details"),
            ),
            headers=exc.headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        code = HTTP_STATUS_CODES.get(exc.status_code, "HTTP_ERROR")
        message = exc.detail if isinstance(exc.detail, str) else code
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(localize(i18n, code, message, request_language(request, i18n)), code=code),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(part) for part in err["loc"][1:]), "message": err["msg"]}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content=error_response(
                localize(i18n, "VALIDATION_ERROR", "Invalid request", request_language(request, i18n)),
                code="VALIDATION_ERROR",
                details={"errors": errors},
            ),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content=error_response(
                localize(i18n, "INTERNAL_ERROR", "Internal server error", request_language(request, i18n)),
                code="INTERNAL_ERROR",
            ),
        )
