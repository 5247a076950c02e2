"""
Points and rewards service.

Students earn points when a sheikh approves their logs and spend them in
the rewards store. ``points`` is the spendable balance; ``totalPoints``
only ever grows and feeds the leaderboard.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from common.utils.exceptions import (
    ConflictException,
    NotFoundException,
    ValidationException,
)
from halaqa.services.points.rewards import get_reward

logger = logging.getLogger(__name__)

# Memorization (hifz) is rewarded more than revision (muraja'ah)
POINTS_PER_PAGE = {
    "memorization": 3,
    "revision": 1,
    "review": 1,
    "activity": 1,
}

EQUIP_SLOTS = {
    "badge": "equippedBadge",
    "frame": "equippedFrame",
    "avatar": "equippedAvatar",
}


def calculate_points_for_log(log_type: str, pages: float) -> int:
    """
    Points for a log of ``pages`` pages.

    >>> calculate_points_for_log("memorization", 5)
    15
    >>> calculate_points_for_log("revision", 5)
    5
    """
    multiplier = POINTS_PER_PAGE.get(log_type, 1)
    return max(0, math.floor(pages) * multiplier)


class PointsService:
    """
    Manages point balances, purchases and equipped items.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        """
        Initialize PointsService.

        Args:
            db: MongoDB database connection
        """
        self._db = db
        self._users_collection = db["users"]

    async def add_points(self, uid: str, amount: int, session=None) -> None:
        """Credit both the spendable balance and the lifetime total."""
        if amount <= 0:
            raise ValidationException(message="Points amount must be positive", code="INVALID_POINTS_AMOUNT")

        result = await self._users_collection.update_one(
            {"_id": uid},
            {
                "$inc": {"points": amount, "totalPoints": amount},
                "$set": {"updatedAt": datetime.now(timezone.utc)},
            },
            session=session,
        )
        if result.matched_count == 0:
            raise NotFoundException(message="Profile not found", code="PROFILE_NOT_FOUND")

        logger.info(f"Awarded {amount} points to {uid}")

    async def spend_points(self, uid: str, item_id: str, cost: int) -> Dict[str, Any]:
        """
        Buy an item.

        The balance check, the deduction and the ownership flag are one
        conditional update, so concurrent purchases cannot overdraw.

        Returns:
            dict with the remaining points and the purchased itemId
        """
        if cost < 0:
            raise ValidationException(message="Cost cannot be negative", code="INVALID_POINTS_AMOUNT")

        inventory_key = f"inventory.{item_id}"
        user = await self._users_collection.find_one_and_update(
            {
                "_id": uid,
                "points": {"$gte": cost},
                inventory_key: {"$ne": True},
            },
            {
                "$inc": {"points": -cost},
                "$set": {inventory_key: True, "updatedAt": datetime.now(timezone.utc)},
            },
            return_document=ReturnDocument.AFTER,
        )

        if user is None:
            current = await self._users_collection.find_one({"_id": uid}, {"points": 1, "inventory": 1})
            if not current:
                raise NotFoundException(message="Profile not found", code="PROFILE_NOT_FOUND")
            if (current.get("inventory") or {}).get(item_id):
                raise ConflictException(message="Item already owned", code="ALREADY_OWNED")
            raise ValidationException(
                message="Not enough points",
                code="INSUFFICIENT_FUNDS",
                details={"points": current.get("points", 0), "cost": cost},
            )

        logger.info(f"User {uid} bought {item_id} for {cost} points")
        return {"itemId": item_id, "points": user.get("points", 0)}

    async def purchase_reward(self, uid: str, reward_id: str) -> Dict[str, Any]:
        reward = get_reward(reward_id)
        if not reward:
            raise NotFoundException(message="Reward not found", code="REWARD_NOT_FOUND")
        return await self.spend_points(uid, reward["id"], reward["cost"])

    async def equip_item(self, uid: str, item_type: str, item_id: Optional[str]) -> Dict[str, Any]:
        """
        Equip an owned item in a slot, or clear the slot with ``None``.
        """
        slot = EQUIP_SLOTS.get(item_type)
        if not slot:
            raise ValidationException(
                message=f"Item type must be one of {', '.join(EQUIP_SLOTS)}",
                code="INVALID_ITEM_TYPE",
            )

        query: Dict[str, Any] = {"_id": uid}
        if item_id is not None:
            query[f"inventory.{item_id}"] = True

        result = await self._users_collection.update_one(
            query,
            {"$set": {slot: item_id, "updatedAt": datetime.now(timezone.utc)}},
        )
        if result.matched_count == 0:
            raise ValidationException(message="Item not owned", code="ITEM_NOT_OWNED")

        return {slot: item_id}

    async def get_wallet(self, uid: str) -> Dict[str, Any]:
        user = await self._users_collection.find_one(
            {"_id": uid},
            {"points": 1, "totalPoints": 1, "inventory": 1, **{slot: 1 for slot in EQUIP_SLOTS.values()}},
        )
        if not user:
            raise NotFoundException(message="Profile not found", code="PROFILE_NOT_FOUND")

        wallet = {
            "points": user.get("points", 0),
            "totalPoints": user.get("totalPoints", 0),
            "inventory": [item for item, owned in (user.get("inventory") or {}).items() if owned],
        }
        for slot in EQUIP_SLOTS.values():
            wallet[slot] = user.get(slot)
        return wallet

    async def get_leaderboard(self, student_ids: List[str], limit: int = 10) -> List[Dict[str, Any]]:
        """Students ranked by lifetime points."""
        cursor = self._users_collection.find(
            {"_id": {"$in": student_ids}},
            {"displayName": 1, "photoURL": 1, "totalPoints": 1, "equippedBadge": 1, "equippedFrame": 1},
        ).sort("totalPoints", -1).limit(limit)
        users = await cursor.to_list(length=limit)

        return [
            {
                "rank": index + 1,
                "uid": user["_id"],
                "displayName": user.get("displayName"),
                "photoURL": user.get("photoURL"),
                "totalPoints": user.get("totalPoints", 0),
                "equippedBadge": user.get("equippedBadge"),
                "equippedFrame": user.get("equippedFrame"),
            }
            for index, user in enumerate(users)
        ]
