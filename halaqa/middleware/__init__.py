"""
Request middleware - authentication and error rendering.
"""

from halaqa.middleware.auth import AuthMiddleware
from halaqa.middleware.errors import register_exception_handlers

__all__ = ["AuthMiddleware", "register_exception_handlers"]
