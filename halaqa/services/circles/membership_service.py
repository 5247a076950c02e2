"""
Circle membership service.

Students join a circle with its invite code; a sheikh approves or rejects
the request. Membership documents live in ``circleMembers``; the student's
current circle is mirrored on ``users.circleId``.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from common.utils.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from common.utils.ids import parse_object_id, serialize_doc

logger = logging.getLogger(__name__)

MEMBER_STATUSES = ("pending", "approved", "removed")
CIRCLE_ROLES = ("student", "assistant")


class MembershipService:
    """
    Manages join requests and circle rosters.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        """
        Initialize MembershipService.

        Args:
            db: MongoDB database connection
        """
        self._db = db
        self._members_collection = db["circleMembers"]
        self._circles_collection = db["circles"]
        self._users_collection = db["users"]

    async def join_circle_by_code(self, uid: str, code: str) -> Dict[str, Any]:
        """
        Request to join the circle owning an invite code.

        Args:
            uid: Student uid
            code: Invite code, case-insensitive

        Returns:
            dict with circleId, circleName and status ("pending")
        """
        normalized = (code or "").strip().upper()
        if not normalized:
            raise ValidationException(message="Invite code is required", code="INVITE_CODE_REQUIRED")

        circle = await self._circles_collection.find_one({"inviteCode": normalized})
        if not circle:
            raise NotFoundException(message="Invalid invite code", code="INVALID_INVITE_CODE")

        circle_id = str(circle["_id"])
        now = datetime.now(timezone.utc)

        existing = await self._members_collection.find_one({"circleId": circle_id, "userId": uid})
        if existing:
            status = existing.get("status")
            if status == "pending":
                raise ConflictException(message="Join request is under review", code="JOIN_REQUEST_PENDING")
            if status == "approved":
                raise ConflictException(message="You are already a member", code="ALREADY_MEMBER")

            # Previously removed: reopen the request
            await self._members_collection.update_one(
                {"_id": existing["_id"]},
                {
                    "$set": {"status": "pending", "roleInCircle": "student", "updatedAt": now},
                    "$unset": {"approvedAt": ""},
                },
            )
        else:
            try:
                await self._members_collection.insert_one({
                    "circleId": circle_id,
                    "userId": uid,
                    "status": "pending",
                    "roleInCircle": "student",
                    "createdAt": now,
                    "updatedAt": now,
                })
            except DuplicateKeyError:
                raise ConflictException(message="Join request is under review", code="JOIN_REQUEST_PENDING")

        logger.info(f"User {uid} requested to join circle {circle_id}")
        return {"circleId": circle_id, "circleName": circle.get("name"), "status": "pending"}

    async def _get_member(self, member_id: str) -> Dict[str, Any]:
        member = await self._members_collection.find_one({"_id": parse_object_id(member_id, "memberId")})
        if not member:
            raise NotFoundException(message="Membership not found", code="MEMBER_NOT_FOUND")
        return member

    async def get_member(self, member_id: str) -> Dict[str, Any]:
        return serialize_doc(await self._get_member(member_id))

    async def approve_member(self, member_id: str) -> Dict[str, Any]:
        """Approve a join request and make the circle the student's active one."""
        now = datetime.now(timezone.utc)
        member = await self._members_collection.find_one_and_update(
            {"_id": parse_object_id(member_id, "memberId")},
            {"$set": {"status": "approved", "approvedAt": now, "updatedAt": now}},
            return_document=ReturnDocument.AFTER,
        )
        if not member:
            raise NotFoundException(message="Membership not found", code="MEMBER_NOT_FOUND")

        await self._users_collection.update_one(
            {"_id": member["userId"]},
            {"$set": {"circleId": member["circleId"], "updatedAt": now}},
        )

        logger.info(f"Member {member['userId']} approved in circle {member['circleId']}")
        return serialize_doc(member)

    async def reject_member(self, member_id: str) -> Dict[str, Any]:
        member = await self._members_collection.find_one_and_update(
            {"_id": parse_object_id(member_id, "memberId")},
            {"$set": {"status": "removed", "updatedAt": datetime.now(timezone.utc)}},
            return_document=ReturnDocument.AFTER,
        )
        if not member:
            raise NotFoundException(message="Membership not found", code="MEMBER_NOT_FOUND")
        return serialize_doc(member)

    async def set_member_role(self, member_id: str, role: str) -> Dict[str, Any]:
        """Switch a member between student and assistant."""
        if role not in CIRCLE_ROLES:
            raise ValidationException(
                message=f"Role must be one of {', '.join(CIRCLE_ROLES)}",
                code="INVALID_CIRCLE_ROLE",
            )

        member = await self._members_collection.find_one_and_update(
            {"_id": parse_object_id(member_id, "memberId")},
            {"$set": {"roleInCircle": role, "updatedAt": datetime.now(timezone.utc)}},
            return_document=ReturnDocument.AFTER,
        )
        if not member:
            raise NotFoundException(message="Membership not found", code="MEMBER_NOT_FOUND")

        if role == "assistant":
            update = {"$addToSet": {"assistants": member["userId"]}}
        else:
            update = {"$pull": {"assistants": member["userId"]}}
        await self._circles_collection.update_one({"_id": parse_object_id(member["circleId"])}, update)

        return serialize_doc(member)

    # ─────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────

    async def get_active_circle(self, uid: str) -> Optional[Dict[str, Any]]:
        """The first circle the user is an approved member of."""
        membership = await self._members_collection.find_one(
            {"userId": uid, "status": "approved"},
            sort=[("approvedAt", 1)],
        )
        if not membership:
            return None

        circle = await self._circles_collection.find_one({"_id": parse_object_id(membership["circleId"])})
        if not circle:
            return None

        result = serialize_doc(circle)
        result["membership"] = serialize_doc(membership)
        return result

    async def get_my_memberships(self, uid: str) -> List[Dict[str, Any]]:
        cursor = self._members_collection.find(
            {"userId": uid, "status": {"$in": ["pending", "approved"]}}
        ).sort("createdAt", -1)
        memberships = await cursor.to_list(length=50)
        return [serialize_doc(m) for m in memberships]

    async def list_members(
        self,
        circle_id: str,
        status: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        List a circle's members with their display name and avatar.

        Args:
            circle_id: Circle to list
            status: Optional status filter (pending, approved, removed)
        """
        query: Dict[str, Any] = {"circleId": circle_id}
        if status:
            if status not in MEMBER_STATUSES:
                raise ValidationException(message="Invalid member status", code="INVALID_STATUS")
            query["status"] = status
        else:
            query["status"] = {"$ne": "removed"}

        members = await self._members_collection.find(query).sort("createdAt", 1).to_list(length=500)

        user_ids = [m["userId"] for m in members]
        users = await self._users_collection.find(
            {"_id": {"$in": user_ids}},
            {"displayName": 1, "photoURL": 1, "email": 1, "points": 1},
        ).to_list(length=None)
        users_by_id = {u["_id"]: u for u in users}

        result = []
        for member in members:
            user = users_by_id.get(member["userId"], {})
            item = serialize_doc(member)
            item["displayName"] = user.get("displayName")
            item["photoURL"] = user.get("photoURL")
            item["email"] = user.get("email")
            item["points"] = user.get("points", 0)
            result.append(item)

        return result

    async def get_approved_student_ids(self, circle_id: str) -> List[str]:
        """Uids of approved members taking part as students."""
        members = await self._members_collection.find(
            {
                "circleId": circle_id,
                "status": "approved",
                "roleInCircle": {"$ne": "assistant"},
            },
            {"userId": 1},
        ).to_list(length=None)
        return [m["userId"] for m in members]

    async def ensure_member(self, circle_id: str, uid: str) -> Dict[str, Any]:
        """
        Get the user's approved membership in a circle.

        Raises:
            ForbiddenException: User isn't an approved member
        """
        membership = await self._members_collection.find_one(
            {"circleId": circle_id, "userId": uid, "status": "approved"}
        )
        if not membership:
            raise ForbiddenException(message="You are not a member of this circle", code="NOT_CIRCLE_MEMBER")
        return membership

    # ─────────────────────────────────────────────────────────────────
    # Removal
    # ─────────────────────────────────────────────────────────────────

    async def remove_student_from_circle(self, circle_id: str, student_id: str) -> int:
        """
        Remove a student from a circle.

        Deletes the membership documents, then detaches the circle from
        the user profile. The profile update is best effort.

        Returns:
            Number of membership documents deleted
        """
        result = await self._members_collection.delete_many({"circleId": circle_id, "userId": student_id})
        if result.deleted_count == 0:
            raise NotFoundException(message="Membership not found", code="MEMBER_NOT_FOUND")

        try:
            await self._users_collection.update_one(
                {"_id": student_id, "circleId": circle_id},
                {"$unset": {"circleId": ""}},
            )
        except Exception as e:
            logger.warning(f"Failed to detach circle {circle_id} from user {student_id}: {e}")

        logger.info(f"Student {student_id} removed from circle {circle_id}")
        return result.deleted_count
