"""
Common library for reusable infrastructure components.

Generic modules shared by the Halaqa API, the jobs and the scripts:

- database: Async MongoDB connection (Motor) and transaction helper
- auth: Firebase authentication provider
- i18n: JSON-file translations used for localized error messages
- utils: Standard responses, exceptions, id and date helpers
- config: Base settings class
"""

from common.database import MongoDB, run_in_transaction
from common.auth import AuthProvider, AuthProviderError, FirebaseAuth
from common.i18n import I18nService
from common.utils import (
    success_response,
    error_response,
    APIException,
    BadRequestException,
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
    ConflictException,
    ValidationException,
)
from common.config import BaseAppSettings

__all__ = [
    # Database
    "MongoDB",
    "run_in_transaction",
    # Auth
    "AuthProvider",
    "AuthProviderError",
    "FirebaseAuth",
    # i18n
    "I18nService",
    # Utils
    "success_response",
    "error_response",
    "APIException",
    "BadRequestException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotFoundException",
    "ConflictException",
    "ValidationException",
    # Config
    "BaseAppSettings",
]
