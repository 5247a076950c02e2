"""
Account deletion pipeline functions.
"""

import logging
from typing import Dict, Any

from common.auth import AuthProvider, AuthProviderError
from halaqa.services.account.account_service import AccountService
from halaqa.services.auth.auth_errors import auth_error_to_exception

logger = logging.getLogger(__name__)


async def delete_account_pipeline(
    account_service: AccountService,
    auth_provider: AuthProvider,
    uid: str,
) -> Dict[str, Any]:
    """
    Delete a user's data, then the Firebase account.

    A Firebase user that is already gone is not an error.

    Returns:
        The data removal summary
    """
    summary = await account_service.delete_user_data(uid)

    try:
        await auth_provider.delete_user(uid)
    except AuthProviderError as e:
        if e.code != "auth/user-not-found":
            raise auth_error_to_exception(e)
        logger.info(f"Firebase user {uid} was already deleted")

    logger.info(f"Account {uid} deleted")
    return summary
