"""
Teacher invite service.

Teacher (sheikh) accounts are gated by invite codes stored in the
``teacherInvites`` collection, keyed by the normalized code. Redeeming a
code increments its usage and writes the sheikh profile in one transaction.
"""

import logging
import secrets
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from common.database import run_in_transaction
from common.utils.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from halaqa.services.auth.profile_service import build_profile_upsert
from halaqa.services.circles.circle_service import INVITE_CODE_ALPHABET

logger = logging.getLogger(__name__)


def normalize_invite_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


class TeacherInviteService:
    """
    Verifies and redeems teacher invite codes.
    """

    GENERATED_CODE_LENGTH = 8

    def __init__(self, db: AsyncIOMotorDatabase, use_transactions: bool = True):
        """
        Initialize TeacherInviteService.

        Args:
            db: MongoDB database connection
            use_transactions: Run redemption inside a MongoDB transaction
        """
        self._db = db
        self._use_transactions = use_transactions
        self._invites_collection = db["teacherInvites"]
        self._users_collection = db["users"]

    @staticmethod
    def _check_invite(invite: Optional[Dict[str, Any]], code: str) -> Dict[str, Any]:
        """Raise the matching error if an invite can't be used."""
        if not invite:
            raise NotFoundException(
                message="Invite code not found",
                code="INVITE_NOT_FOUND",
                details={"code": code},
            )

        if not invite.get("isActive", False):
            raise ForbiddenException(message="Invite code is no longer active", code="INVITE_INACTIVE")

        max_uses = invite.get("maxUses")
        if max_uses is not None and invite.get("usedCount", 0) >= max_uses:
            raise ForbiddenException(message="Invite code has been fully used", code="INVITE_EXHAUSTED")

        return invite

    async def verify_teacher_invite(self, code: str) -> Dict[str, Any]:
        """
        Check that an invite code can be redeemed.

        Returns:
            dict with code, maxUses, usedCount and remaining uses (None = unlimited)
        """
        normalized = normalize_invite_code(code)
        if not normalized:
            raise ValidationException(message="Invite code is required", code="INVITE_CODE_REQUIRED")

        invite = self._check_invite(
            await self._invites_collection.find_one({"_id": normalized}),
            normalized,
        )

        max_uses = invite.get("maxUses")
        used = invite.get("usedCount", 0)
        return {
            "code": normalized,
            "maxUses": max_uses,
            "usedCount": used,
            "remaining": None if max_uses is None else max_uses - used,
        }

    async def create_teacher_profile(
        self,
        uid: str,
        code: str,
        profile: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Redeem an invite code and create a sheikh profile.

        The usage increment is conditional on the quota, so two concurrent
        redemptions of the last slot cannot both succeed; the profile write
        shares the transaction so a failed write rolls the increment back.

        Args:
            uid: Firebase uid of the new teacher
            code: Invite code as typed by the user
            profile: displayName, email, phoneNumber, photoURL

        Returns:
            The stored profile fields
        """
        normalized = normalize_invite_code(code)
        if not normalized:
            raise ValidationException(message="Invite code is required", code="INVITE_CODE_REQUIRED")

        async def _redeem(session):
            now = datetime.now(timezone.utc)

            invite = await self._invites_collection.find_one({"_id": normalized}, session=session)
            self._check_invite(invite, normalized)

            result = await self._invites_collection.update_one(
                {
                    "_id": normalized,
                    "isActive": True,
                    "$or": [
                        {"maxUses": None},
                        {"$expr": {"$lt": [{"$ifNull": ["$usedCount", 0]}, "$maxUses"]}},
                    ],
                },
                {"$inc": {"usedCount": 1}, "$set": {"lastUsedAt": now}},
                session=session,
            )
            if result.modified_count == 0:
                raise ForbiddenException(message="Invite code has been fully used", code="INVITE_EXHAUSTED")

            fields = {key: value for key, value in profile.items() if value is not None}
            if fields.get("email"):
                fields["email"] = fields["email"].strip().lower()
            fields.update({
                "uid": uid,
                "role": "sheikh",
                "inviteCodeUsed": normalized,
                "updatedAt": now,
            })

            await self._users_collection.update_one(
                {"_id": uid},
                build_profile_upsert(fields, profile.get("settings"), now),
                upsert=True,
                session=session,
            )
            return fields

        fields = await run_in_transaction(self._db.client, _redeem, enabled=self._use_transactions)

        logger.info(f"Teacher profile created for {uid} with invite {normalized}")
        return fields

    async def create_teacher_invite(
        self,
        created_by: str,
        code: Optional[str] = None,
        max_uses: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Create a new invite code.

        Args:
            created_by: Who issued the code (uid or operator name)
            code: Desired code; generated when omitted
            max_uses: Redemption limit, None for unlimited
        """
        if max_uses is not None and max_uses < 1:
            raise ValidationException(message="maxUses must be at least 1", code="INVALID_MAX_USES")

        normalized = normalize_invite_code(code) or "".join(
            secrets.choice(INVITE_CODE_ALPHABET) for _ in range(self.GENERATED_CODE_LENGTH)
        )

        invite_doc = {
            "_id": normalized,
            "isActive": True,
            "maxUses": max_uses,
            "usedCount": 0,
            "createdBy": created_by,
            "createdAt": datetime.now(timezone.utc),
        }

        try:
            await self._invites_collection.insert_one(invite_doc)
        except DuplicateKeyError:
            raise ConflictException(message="Invite code already exists", code="INVITE_CODE_TAKEN")

        logger.info(f"Teacher invite {normalized} created by {created_by}")
        return invite_doc

    async def deactivate_teacher_invite(self, code: str) -> None:
        normalized = normalize_invite_code(code)
        result = await self._invites_collection.update_one(
            {"_id": normalized},
            {"$set": {"isActive": False}},
        )
        if result.matched_count == 0:
            raise NotFoundException(message="Invite code not found", code="INVITE_NOT_FOUND")
