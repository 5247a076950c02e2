"""
Account services - user data removal.
"""

from halaqa.services.account.account_service import AccountService

__all__ = ["AccountService"]
