"""
Account data removal.

Deletes everything keyed to a user that the app owns: memberships, co-sheikh
entries and the profile. The Firebase auth user is removed separately by
the account pipeline.
"""

import logging
from typing import Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.database import run_in_transaction

logger = logging.getLogger(__name__)


class AccountService:
    """
    Removes a user's data from MongoDB.
    """

    def __init__(self, db: AsyncIOMotorDatabase, use_transactions: bool = True):
        """
        Initialize AccountService.

        Args:
            db: MongoDB database connection
            use_transactions: Remove all of a user's documents in one transaction
        """
        self._db = db
        self._use_transactions = use_transactions
        self._members_collection = db["circleMembers"]
        self._circles_collection = db["circles"]
        self._users_collection = db["users"]

    async def delete_user_data(self, uid: str) -> Dict[str, Any]:
        """
        Delete a user's memberships, sheikh entries and profile, in that
        order. The three writes commit together.

        Returns:
            dict with membershipsDeleted, circlesUpdated and profileDeleted
        """

        async def _delete(session):
            members_result = await self._members_collection.delete_many(
                {"userId": uid},
                session=session,
            )
            circles_result = await self._circles_collection.update_many(
                {"sheikhIds": uid},
                {"$pull": {"sheikhIds": uid}},
                session=session,
            )
            profile_result = await self._users_collection.delete_one({"_id": uid}, session=session)
            return {
                "membershipsDeleted": members_result.deleted_count,
                "circlesUpdated": circles_result.modified_count,
                "profileDeleted": profile_result.deleted_count == 1,
            }

        summary = await run_in_transaction(self._db.client, _delete, enabled=self._use_transactions)

        logger.info(
            f"Deleted data for user {uid}: {summary['membershipsDeleted']} memberships, "
            f"{summary['circlesUpdated']} circles updated"
        )
        return summary
