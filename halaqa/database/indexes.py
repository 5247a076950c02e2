"""
Halaqa collection indexes.

Declares the indexes each collection relies on and creates them at
startup. create_indexes is idempotent, so running it on every boot is safe.
"""

import logging
from typing import Dict, List

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, IndexModel

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────
# Index declarations
# ─────────────────────────────────────────────────────────────────

COLLECTION_INDEXES: Dict[str, List[IndexModel]] = {
    "circles": [
        # Legacy circles may not have a code yet
        IndexModel(
            [("inviteCode", ASCENDING)],
            name="inviteCode_unique",
            unique=True,
            partialFilterExpression={"inviteCode": {"$type": "string"}},
        ),
        IndexModel([("sheikhIds", ASCENDING)], name="sheikhIds"),
    ],
    "circleMembers": [
        IndexModel(
            [("circleId", ASCENDING), ("userId", ASCENDING)],
            name="circle_user_unique",
            unique=True,
        ),
        IndexModel([("userId", ASCENDING), ("status", ASCENDING)], name="user_status"),
    ],
    "logs": [
        IndexModel(
            [("studentId", ASCENDING), ("date", DESCENDING), ("createdAt", DESCENDING)],
            name="student_date",
        ),
        IndexModel([("circleId", ASCENDING), ("status", ASCENDING)], name="circle_status"),
    ],
    "tasks": [
        IndexModel(
            [("studentId", ASCENDING), ("status", ASCENDING), ("dueDate", ASCENDING)],
            name="student_status_due",
        ),
        IndexModel([("circleId", ASCENDING), ("dueDate", ASCENDING)], name="circle_due"),
    ],
    "attendance": [
        IndexModel([("circleId", ASCENDING), ("date", ASCENDING)], name="circle_date"),
        IndexModel([("studentId", ASCENDING), ("date", DESCENDING)], name="student_date"),
    ],
    "excuses": [
        IndexModel([("circleId", ASCENDING), ("status", ASCENDING)], name="circle_status"),
    ],
    "threads": [
        IndexModel([("participants", ASCENDING), ("updatedAt", DESCENDING)], name="participants_updated"),
    ],
    "messages": [
        IndexModel([("threadId", ASCENDING), ("createdAt", ASCENDING)], name="thread_created"),
    ],
}


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create every declared index that does not exist yet."""
    for collection_name, indexes in COLLECTION_INDEXES.items():
        names = await db[collection_name].create_indexes(indexes)
        logger.debug(f"Indexes ensured on {collection_name}: {', '.join(names)}")

    logger.info(f"Indexes ensured on {len(COLLECTION_INDEXES)} collections")
