"""
Auth provider error translation.

Provider failures carry ``auth/<reason>`` codes (the Firebase client SDK
vocabulary). They are turned into API exceptions whose code is the same
string, so the error handler can render the localized message from
``locales/<lang>/errors.json``.
"""

from common.auth import AuthProviderError
from common.utils.exceptions import APIException

DEFAULT_AUTH_ERROR = "auth/default"

AUTH_ERROR_STATUS = {
    "auth/user-not-found": 401,
    "auth/wrong-password": 401,
    "auth/invalid-credential": 401,
    "auth/id-token-expired": 401,
    "auth/id-token-revoked": 401,
    "auth/invalid-id-token": 401,
    "auth/user-disabled": 403,
    "auth/operation-not-allowed": 403,
    "auth/email-already-in-use": 409,
    "auth/account-exists-with-different-credential": 409,
    "auth/invalid-email": 422,
    "auth/weak-password": 422,
    "auth/invalid-phone-number": 422,
    "auth/too-many-requests": 429,
    "auth/quota-exceeded": 429,
    "auth/network-request-failed": 503,
    "auth/timeout": 503,
    "auth/internal-error": 502,
}


def auth_error_to_exception(error: AuthProviderError) -> APIException:
    """Wrap a provider error in an API exception keyed by its auth code."""
    code = error.code if error.code in AUTH_ERROR_STATUS else DEFAULT_AUTH_ERROR
    return APIException(
        status_code=AUTH_ERROR_STATUS.get(code, 400),
        message=str(error),
        code=code,
    )
