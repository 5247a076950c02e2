"""
Firebase authentication provider.

Uses the Firebase Admin SDK for token verification and user management, and
the Identity Toolkit REST API for the operations the Admin SDK does not
cover (password sign-in and password reset emails).

Example:
    auth = FirebaseAuth(credentials_path="path/to/serviceAccount.json", api_key="...")

    # Verify ID token from client (email, phone OTP or Google sign-in)
    claims = await auth.verify_token(id_token)
    print(claims["uid"])

    # Sign in with email/password (via REST API)
    session = await auth.sign_in_with_password("user@example.com", "password123")
"""

import logging
from typing import Dict, Any, Optional

import firebase_admin
import httpx
from firebase_admin import auth, credentials

from common.auth.base import AuthProvider, AuthProviderError

logger = logging.getLogger(__name__)

# Identity Toolkit REST error messages -> client SDK style error codes
REST_ERROR_CODES = {
    "EMAIL_NOT_FOUND": "auth/user-not-found",
    "INVALID_PASSWORD": "auth/wrong-password",
    "INVALID_LOGIN_CREDENTIALS": "auth/invalid-credential",
    "USER_DISABLED": "auth/user-disabled",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "auth/too-many-requests",
    "EMAIL_EXISTS": "auth/email-already-in-use",
    "INVALID_EMAIL": "auth/invalid-email",
    "WEAK_PASSWORD": "auth/weak-password",
    "OPERATION_NOT_ALLOWED": "auth/operation-not-allowed",
    "QUOTA_EXCEEDED": "auth/quota-exceeded",
}


def map_rest_error(message: str) -> str:
    """
    Map an Identity Toolkit error message to an ``auth/...`` code.

    REST messages may carry a suffix, e.g.
    ``WEAK_PASSWORD : Password should be at least 6 characters``.
    """
    key = message.split(" ")[0].strip() if message else ""
    return REST_ERROR_CODES.get(key, "auth/internal-error")


class FirebaseAuth(AuthProvider):
    """
    Firebase authentication provider.

    Handles:
    - ID token verification for every sign-in method
    - Email/password sign-in and registration
    - Password reset emails
    - Account deletion
    """

    # Firebase REST API base URL
    FIREBASE_AUTH_URL = "https://identitytoolkit.googleapis.com/v1/accounts"

    def __init__(
        self,
        credentials_path: Optional[str] = None,
        credentials_dict: Optional[Dict[str, Any]] = None,
        project_id: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
    ):
        """
        Initialize Firebase auth provider.

        Args:
            credentials_path: Path to service account JSON file
            credentials_dict: Service account credentials as dict (alternative to path)
            project_id: Firebase project ID (optional, can be inferred from credentials)
            api_key: Firebase Web API Key (for REST API authentication)
            timeout: Timeout in seconds for REST calls
        """
        self._api_key = api_key
        self._timeout = timeout

        # Initialize Firebase app if not already done
        if not firebase_admin._apps:
            if credentials_path:
                cred = credentials.Certificate(credentials_path)
            elif credentials_dict:
                cred = credentials.Certificate(credentials_dict)
            else:
                # Use default credentials (for GCP environments)
                cred = credentials.ApplicationDefault()

            options = {}
            if project_id:
                options["projectId"] = project_id

            firebase_admin.initialize_app(cred, options)
            logger.info("Firebase app initialized")

        self._auth = auth

    async def _post(self, action: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Call an Identity Toolkit REST action and map failures to auth codes."""
        if not self._api_key:
            raise AuthProviderError(
                "auth/operation-not-allowed",
                "Firebase API key is required. Set FIREBASE_API_KEY.",
            )

        url = f"{self.FIREBASE_AUTH_URL}:{action}?key={self._api_key}"

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(url, json=payload)
        except httpx.TimeoutException:
            raise AuthProviderError("auth/timeout")
        except httpx.HTTPError as e:
            logger.warning(f"Firebase REST call {action} failed: {e}")
            raise AuthProviderError("auth/network-request-failed")

        if response.status_code != 200:
            error_message = response.json().get("error", {}).get("message", "")
            code = map_rest_error(error_message)
            logger.info(f"Firebase REST {action} rejected: {error_message}")
            raise AuthProviderError(code, error_message)

        return response.json()

    async def create_user(
        self,
        email: str,
        password: str,
        **kwargs: Any,
    ) -> str:
        """Create a new Firebase user."""
        try:
            user_record = self._auth.create_user(
                email=email,
                password=password,
                display_name=kwargs.get("display_name"),
                phone_number=kwargs.get("phone_number"),
            )
            return user_record.uid
        except self._auth.EmailAlreadyExistsError:
            raise AuthProviderError("auth/email-already-in-use")
        except self._auth.PhoneNumberAlreadyExistsError:
            raise AuthProviderError("auth/account-exists-with-different-credential")
        except ValueError as e:
            # Admin SDK raises ValueError for malformed email/password/phone
            raise AuthProviderError("auth/invalid-credential", str(e))

    async def sign_in_with_password(
        self,
        email: str,
        password: str,
    ) -> Dict[str, Any]:
        """
        Sign in with email and password using Firebase REST API.

        Returns:
            Dict containing uid, email, idToken, refreshToken, expiresIn
        """
        data = await self._post(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )

        return {
            "uid": data.get("localId"),
            "email": data.get("email"),
            "displayName": data.get("displayName"),
            "idToken": data.get("idToken"),
            "refreshToken": data.get("refreshToken"),
            "expiresIn": data.get("expiresIn"),
        }

    async def verify_token(self, token: str) -> Dict[str, Any]:
        """Verify a Firebase ID token."""
        try:
            decoded = self._auth.verify_id_token(token)
            # Add 'sub' field for compatibility with generic JWT consumers
            decoded["sub"] = decoded.get("uid")
            return decoded
        except self._auth.RevokedIdTokenError:
            raise AuthProviderError("auth/id-token-revoked")
        except self._auth.ExpiredIdTokenError:
            raise AuthProviderError("auth/id-token-expired")
        except self._auth.InvalidIdTokenError as e:
            raise AuthProviderError("auth/invalid-id-token", str(e))
        except ValueError as e:
            raise AuthProviderError("auth/invalid-id-token", str(e))

    async def send_password_reset(self, email: str) -> None:
        """Ask Firebase to email a password reset link."""
        try:
            await self._post(
                "sendOobCode",
                {"requestType": "PASSWORD_RESET", "email": email},
            )
        except AuthProviderError as e:
            # Don't reveal whether the account exists
            if e.code == "auth/user-not-found":
                return
            raise

    async def delete_user(self, user_id: str) -> None:
        """Delete a Firebase user."""
        try:
            self._auth.delete_user(user_id)
        except self._auth.UserNotFoundError:
            raise AuthProviderError("auth/user-not-found")
