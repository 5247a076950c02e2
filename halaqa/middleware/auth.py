"""
Authentication middleware for protected routes.

Verifies Firebase ID tokens and loads the caller's profile.
"""

import logging
from typing import Optional, Dict, Any

from fastapi import Request

from common.auth import AuthProvider, AuthProviderError
from common.utils.exceptions import UnauthorizedException, ForbiddenException
from halaqa.services.auth.auth_errors import auth_error_to_exception
from halaqa.services.auth.profile_service import ProfileService

logger = logging.getLogger(__name__)


class AuthMiddleware:
    """
    Validates the bearer token and attaches claims and profile to the
    request.
    """

    def __init__(self, auth_provider: AuthProvider, profile_service: ProfileService):
        """
        Initialize AuthMiddleware.

        Args:
            auth_provider: For token verification
            profile_service: For the caller's profile
        """
        self._auth_provider = auth_provider
        self._profile_service = profile_service

    async def require_token(self, request: Request) -> Dict[str, Any]:
        """
        Validate the request carries a valid ID token.

        Returns:
            Decoded token claims (uid, email, phone_number, ...)

        Raises:
            UnauthorizedException: Missing header or invalid token

        Side Effects:
            - Attaches claims to request.state.claims
        """
        token = self._extract_token(request)

        if not token:
            raise UnauthorizedException(
                message="Authentication required",
                code="AUTH_REQUIRED"
            )

        try:
            claims = await self._auth_provider.verify_token(token)
        except AuthProviderError as e:
            logger.debug(f"Token rejected: {e.code}")
            raise auth_error_to_exception(e)

        request.state.claims = claims
        return claims

    async def require_profile(self, request: Request) -> Dict[str, Any]:
        """
        Validate the caller is signed in and has finished onboarding.

        Returns:
            The caller's profile document

        Raises:
            ForbiddenException: No profile yet
        """
        claims = await self.require_token(request)

        profile = await self._profile_service.get_profile(claims["uid"])
        if not profile:
            raise ForbiddenException(
                message="Complete your profile first",
                code="PROFILE_REQUIRED"
            )

        request.state.user = profile
        return profile

    async def require_sheikh(self, request: Request) -> Dict[str, Any]:
        profile = await self.require_profile(request)

        if profile.get("role") != "sheikh":
            raise ForbiddenException(
                message="Only sheikhs can do this",
                code="SHEIKH_ONLY"
            )

        return profile

    def _extract_token(self, request: Request) -> Optional[str]:
        """
        Extract bearer token from Authorization header.

        Expected format: "Authorization: Bearer <token>"
        """
        auth_header = request.headers.get("Authorization")

        if not auth_header:
            return None

        parts = auth_header.split()

        if len(parts) != 2:
            return None

        scheme, token = parts

        if scheme.lower() != "bearer":
            return None

        return token
