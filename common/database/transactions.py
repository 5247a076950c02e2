"""
Multi-document transaction helper.

Runs a callback inside a MongoDB transaction using Motor's
``ClientSession.with_transaction``, which commits on success, aborts on
error and retries on transient transaction errors.

Transactions require a replica set. With ``enabled=False`` the callback
runs once with ``session=None``; Motor treats a ``None`` session as "no
session", so the same callback body works in both modes.

Example:
    async def _redeem(session):
        await invites.update_one(..., session=session)
        await users.update_one(..., session=session)

    await run_in_transaction(db.client, _redeem, enabled=settings.MONGODB_USE_TRANSACTIONS)
"""

import logging
from typing import Any, Awaitable, Callable, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorClientSession

logger = logging.getLogger(__name__)


async def run_in_transaction(
    client: Optional[AsyncIOMotorClient],
    callback: Callable[[Optional[AsyncIOMotorClientSession]], Awaitable[Any]],
    enabled: bool = True,
) -> Any:
    """
    Run ``callback(session)`` atomically and return its result.

    Args:
        client: Motor client owning the session
        callback: Async callable taking the session (or None)
        enabled: When False, run without a session

    Returns:
        Whatever the callback returns
    """
    if not enabled or client is None:
        return await callback(None)

    async with await client.start_session() as session:
        logger.debug("Starting MongoDB transaction")
        return await session.with_transaction(callback)
