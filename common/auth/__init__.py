"""
Authentication module - Firebase auth provider behind an abstract interface.
"""

from common.auth.base import AuthProvider, AuthProviderError
from common.auth.firebase_auth import FirebaseAuth

__all__ = ["AuthProvider", "AuthProviderError", "FirebaseAuth"]
