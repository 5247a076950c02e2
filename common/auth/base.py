"""
Abstract authentication provider interface.

Defines the contract the API relies on from the hosted identity service.
Token verification and account management go through this interface so the
routers and pipelines can be tested against a mock provider.

Example:
    from common.auth import AuthProvider, FirebaseAuth

    def get_auth_provider(settings) -> AuthProvider:
        return FirebaseAuth(
            credentials_path=settings.FIREBASE_CREDENTIALS_PATH,
            api_key=settings.FIREBASE_API_KEY,
        )
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any


class AuthProviderError(ValueError):
    """
    Error raised by an auth provider.

    Carries a provider-neutral error code in the ``auth/<reason>`` form
    (e.g. ``auth/wrong-password``) so callers can map it to a localized
    message.
    """

    def __init__(self, code: str, message: Optional[str] = None):
        self.code = code
        super().__init__(message or code)


class AuthProvider(ABC):
    """
    Abstract authentication provider.

    All methods are async so blocking SDK calls and HTTP calls share one
    interface.
    """

    @abstractmethod
    async def create_user(
        self,
        email: str,
        password: str,
        **kwargs: Any,
    ) -> str:
        """
        Create a new user account.

        Args:
            email: User's email address
            password: User's password
            **kwargs: Additional user data (display_name, phone_number)

        Returns:
            The created user's ID

        Raises:
            AuthProviderError: If email already exists or validation fails
        """
        pass

    @abstractmethod
    async def sign_in_with_password(
        self,
        email: str,
        password: str,
    ) -> Dict[str, Any]:
        """
        Sign in with email and password.

        Returns:
            Dictionary containing uid, email, idToken, refreshToken, expiresIn

        Raises:
            AuthProviderError: If credentials are invalid
        """
        pass

    @abstractmethod
    async def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Verify an ID token issued to a client.

        Returns:
            Dictionary containing decoded token claims (at minimum: uid)

        Raises:
            AuthProviderError: If token is invalid, expired, or revoked
        """
        pass

    @abstractmethod
    async def send_password_reset(self, email: str) -> None:
        """
        Send a password reset email.

        Raises:
            AuthProviderError: If the provider rejects the request
        """
        pass

    @abstractmethod
    async def delete_user(self, user_id: str) -> None:
        """
        Delete a user account.

        Raises:
            AuthProviderError: If user is not found or deletion fails
        """
        pass
