"""
Circle management service.

Manages memorization circles: creation with a join code, co-sheikh
management, deletion cascade and migration of legacy single-sheikh circles.
"""

import logging
import secrets
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from common.utils.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from common.utils.ids import parse_object_id, serialize_doc

logger = logging.getLogger(__name__)

INVITE_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
INVITE_CODE_LENGTH = 6

CIRCLE_FIELDS = ("name", "description", "schedule")


def generate_invite_code() -> str:
    """Six characters without the easily confused 0/O and 1/I."""
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


def is_circle_sheikh(circle: Dict[str, Any], uid: str) -> bool:
    return uid in (circle.get("sheikhIds") or []) or circle.get("teacherId") == uid


class CircleService:
    """
    Manages circles and their teaching staff.
    """

    MAX_CODE_ATTEMPTS = 5

    def __init__(self, db: AsyncIOMotorDatabase):
        """
        Initialize CircleService.

        Args:
            db: MongoDB database connection
        """
        self._db = db
        self._circles_collection = db["circles"]
        self._members_collection = db["circleMembers"]
        self._users_collection = db["users"]

    async def _unique_invite_code(self) -> str:
        for _ in range(self.MAX_CODE_ATTEMPTS):
            code = generate_invite_code()
            if not await self._circles_collection.find_one({"inviteCode": code}, {"_id": 1}):
                return code
        raise ConflictException(
            message="Could not allocate a unique invite code",
            code="INVITE_CODE_COLLISION",
        )

    async def create_circle(
        self,
        sheikh_id: str,
        name: str,
        description: Optional[str] = None,
        schedule: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create a circle owned by a sheikh.

        Args:
            sheikh_id: Creating sheikh's uid (becomes teacherId)
            name: Circle name
            description: Optional description
            schedule: Optional free-text schedule ("Sat-Wed after Maghrib")

        Returns:
            The created circle
        """
        name = (name or "").strip()
        if not name:
            raise ValidationException(message="Circle name is required", code="CIRCLE_NAME_REQUIRED")

        now = datetime.now(timezone.utc)
        circle_doc = {
            "name": name,
            "description": description,
            "schedule": schedule,
            "teacherId": sheikh_id,
            "sheikhIds": [sheikh_id],
            "assistants": [],
            "inviteCode": await self._unique_invite_code(),
            "createdAt": now,
            "updatedAt": now,
        }

        result = await self._circles_collection.insert_one(circle_doc)
        circle_doc["_id"] = result.inserted_id

        logger.info(f"Circle {result.inserted_id} created by {sheikh_id}")
        return serialize_doc(circle_doc)

    async def get_circle(self, circle_id: str) -> Dict[str, Any]:
        circle = await self._circles_collection.find_one(
            {"_id": parse_object_id(circle_id, "circleId")}
        )
        if not circle:
            raise NotFoundException(message="Circle not found", code="CIRCLE_NOT_FOUND")
        return serialize_doc(circle)

    async def get_circle_by_invite_code(self, code: str) -> Optional[Dict[str, Any]]:
        circle = await self._circles_collection.find_one({"inviteCode": code})
        return serialize_doc(circle) if circle else None

    async def list_sheikh_circles(self, sheikh_id: str) -> List[Dict[str, Any]]:
        """Circles the sheikh owns or co-teaches."""
        cursor = self._circles_collection.find(
            {"$or": [{"sheikhIds": sheikh_id}, {"teacherId": sheikh_id}]}
        ).sort("createdAt", 1)
        circles = await cursor.to_list(length=100)
        return [serialize_doc(c) for c in circles]

    async def ensure_sheikh_access(self, circle_id: str, uid: str) -> Dict[str, Any]:
        """
        Get a circle the user teaches.

        Raises:
            NotFoundException: Circle doesn't exist
            ForbiddenException: User isn't one of its sheikhs
        """
        circle = await self.get_circle(circle_id)
        if not is_circle_sheikh(circle, uid):
            raise ForbiddenException(
                message="You are not a sheikh of this circle",
                code="NOT_CIRCLE_SHEIKH",
            )
        return circle

    async def update_circle(self, circle_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Update name, description or schedule (renaming included)."""
        fields = {key: value for key, value in updates.items() if key in CIRCLE_FIELDS and value is not None}
        if "name" in fields:
            fields["name"] = fields["name"].strip()
            if not fields["name"]:
                raise ValidationException(message="Circle name is required", code="CIRCLE_NAME_REQUIRED")
        if not fields:
            raise ValidationException(message="No editable fields provided", code="NO_FIELDS_TO_UPDATE")

        fields["updatedAt"] = datetime.now(timezone.utc)

        circle = await self._circles_collection.find_one_and_update(
            {"_id": parse_object_id(circle_id, "circleId")},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        if not circle:
            raise NotFoundException(message="Circle not found", code="CIRCLE_NOT_FOUND")

        return serialize_doc(circle)

    async def regenerate_invite_code(self, circle_id: str) -> str:
        code = await self._unique_invite_code()
        result = await self._circles_collection.update_one(
            {"_id": parse_object_id(circle_id, "circleId")},
            {"$set": {"inviteCode": code, "updatedAt": datetime.now(timezone.utc)}},
        )
        if result.matched_count == 0:
            raise NotFoundException(message="Circle not found", code="CIRCLE_NOT_FOUND")
        return code

    # ─────────────────────────────────────────────────────────────────
    # Co-sheikhs
    # ─────────────────────────────────────────────────────────────────

    async def add_co_sheikh(
        self,
        circle_id: str,
        email: str,
        promote: bool = False,
    ) -> Dict[str, Any]:
        """
        Add another sheikh to a circle by email.

        Args:
            circle_id: Circle to add to
            email: The co-sheikh's account email
            promote: Promote a non-sheikh account to the sheikh role first

        Returns:
            dict with the added user's uid and displayName
        """
        email = (email or "").strip().lower()
        if not email:
            raise ValidationException(message="Email is required", code="EMAIL_REQUIRED")

        circle = await self.get_circle(circle_id)

        user = await self._users_collection.find_one({"email": email})
        if not user:
            raise NotFoundException(message="No user with this email", code="USER_NOT_FOUND")

        uid = user["_id"]
        if user.get("role") != "sheikh":
            if not promote:
                raise ValidationException(
                    message="User is not a sheikh",
                    code="NOT_A_SHEIKH",
                    details={"userId": uid, "canPromote": True},
                )
            await self._users_collection.update_one(
                {"_id": uid},
                {"$set": {"role": "sheikh", "updatedAt": datetime.now(timezone.utc)}},
            )
            logger.info(f"User {uid} promoted to sheikh while joining circle {circle_id}")

        if is_circle_sheikh(circle, uid):
            raise ConflictException(message="User is already a sheikh of this circle", code="ALREADY_SHEIKH")

        await self._circles_collection.update_one(
            {"_id": parse_object_id(circle_id, "circleId")},
            {
                "$addToSet": {"sheikhIds": uid},
                "$set": {"updatedAt": datetime.now(timezone.utc)},
            },
        )

        logger.info(f"Co-sheikh {uid} added to circle {circle_id}")
        return {"uid": uid, "displayName": user.get("displayName")}

    async def remove_co_sheikh(self, circle_id: str, uid: str) -> None:
        circle = await self.get_circle(circle_id)
        if circle.get("teacherId") == uid:
            raise ValidationException(
                message="The circle owner cannot be removed",
                code="CANNOT_REMOVE_OWNER",
            )

        await self._circles_collection.update_one(
            {"_id": parse_object_id(circle_id, "circleId")},
            {
                "$pull": {"sheikhIds": uid},
                "$set": {"updatedAt": datetime.now(timezone.utc)},
            },
        )
        logger.info(f"Co-sheikh {uid} removed from circle {circle_id}")

    # ─────────────────────────────────────────────────────────────────
    # Deletion and migration
    # ─────────────────────────────────────────────────────────────────

    async def delete_circle(self, circle_id: str) -> Dict[str, int]:
        """
        Delete a circle and its memberships.

        Members whose active circle was this one lose their ``circleId``.
        """
        object_id = parse_object_id(circle_id, "circleId")

        members = await self._members_collection.find(
            {"circleId": circle_id},
            {"userId": 1},
        ).to_list(length=None)
        member_ids = [m["userId"] for m in members]

        users_result = await self._users_collection.update_many(
            {"_id": {"$in": member_ids}, "circleId": circle_id},
            {"$unset": {"circleId": ""}},
        )
        members_result = await self._members_collection.delete_many({"circleId": circle_id})
        circle_result = await self._circles_collection.delete_one({"_id": object_id})

        if circle_result.deleted_count == 0:
            raise NotFoundException(message="Circle not found", code="CIRCLE_NOT_FOUND")

        logger.info(
            f"Circle {circle_id} deleted: {members_result.deleted_count} memberships, "
            f"{users_result.modified_count} users detached"
        )
        return {
            "membersDeleted": members_result.deleted_count,
            "usersDetached": users_result.modified_count,
        }

    async def migrate_legacy_circles(self, sheikh_id: Optional[str] = None) -> int:
        """
        Convert circles that still use the single ``sheikhId`` field.

        Args:
            sheikh_id: Only migrate this sheikh's circles; all when None

        Returns:
            Number of circles updated
        """
        query: Dict[str, Any] = {
            "sheikhId": {"$exists": True},
            "sheikhIds": {"$not": {"$type": "array"}},
        }
        if sheikh_id:
            query["sheikhId"] = sheikh_id

        legacy = await self._circles_collection.find(query).to_list(length=None)

        migrated = 0
        for circle in legacy:
            owner = circle.get("sheikhId") or sheikh_id
            await self._circles_collection.update_one(
                {"_id": circle["_id"]},
                {"$set": {
                    "sheikhIds": [owner],
                    "teacherId": circle.get("teacherId") or owner,
                    "updatedAt": datetime.now(timezone.utc),
                }},
            )
            migrated += 1

        logger.info(f"Migrated {migrated} legacy circles")
        return migrated
