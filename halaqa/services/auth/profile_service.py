"""
User profile service.

Owns the ``users`` collection: profile creation during onboarding, profile
and settings updates, study goals and push notification tokens.
Profiles are keyed by the Firebase uid.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from common.utils.exceptions import NotFoundException, ValidationException

logger = logging.getLogger(__name__)

ROLES = ("student", "sheikh")

DEFAULT_SETTINGS = {
    "language": "ar",
    "theme": "light",
    "fontSize": "medium",
    "notifications": True,
}

DEFAULT_GOALS = {
    "dailyMemoTarget": 1,
    "dailyReviewTarget": 5,
    "monthlyMemoTarget": 20,
    "monthlyReviewTarget": 100,
}

PROFILE_FIELDS = ("displayName", "phoneNumber", "photoURL", "bio")
SETTINGS_FIELDS = ("language", "theme", "fontSize", "notifications")
GOAL_FIELDS = tuple(DEFAULT_GOALS.keys())


def build_profile_upsert(
    fields: Dict[str, Any],
    settings: Optional[Dict[str, Any]],
    now: datetime,
) -> Dict[str, Any]:
    """
    Build the upsert document for a profile write.

    Supplied settings are written as dotted paths so existing settings and
    goals survive; defaults only land on insert, for keys not supplied.
    """
    supplied = {
        key: value
        for key, value in (settings or {}).items()
        if key in SETTINGS_FIELDS and value is not None
    }

    to_set = {key: value for key, value in fields.items() if key != "settings"}
    to_set.update({f"settings.{key}": value for key, value in supplied.items()})

    on_insert: Dict[str, Any] = {"points": 0, "totalPoints": 0, "createdAt": now}
    on_insert.update({
        f"settings.{key}": value
        for key, value in DEFAULT_SETTINGS.items()
        if key not in supplied
    })
    return {"$set": to_set, "$setOnInsert": on_insert}


def get_dashboard_route(role: Optional[str]) -> str:
    """Landing page for a signed-in user of the given role."""
    if role == "sheikh":
        return "/sheikh/dashboard"
    return "/app/dashboard"


class ProfileService:
    """
    Manages user profile documents.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        """
        Initialize ProfileService.

        Args:
            db: MongoDB database connection
        """
        self._db = db
        self._users_collection = db["users"]

    async def get_profile(self, uid: str) -> Optional[Dict[str, Any]]:
        """Get a profile by uid, or None if onboarding hasn't happened yet."""
        return await self._users_collection.find_one({"_id": uid})

    async def check_user_profile_exists(self, uid: str) -> bool:
        count = await self._users_collection.count_documents({"_id": uid}, limit=1)
        return count > 0

    async def create_user_profile(
        self,
        uid: str,
        data: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Create or merge a user profile.

        Args:
            uid: Firebase uid
            data: Profile fields (displayName, email, phoneNumber, photoURL,
                role, settings)

        Returns:
            The stored profile document
        """
        role = data.get("role", "student")
        if role not in ROLES:
            raise ValidationException(
                message=f"Role must be one of {', '.join(ROLES)}",
                code="INVALID_ROLE",
            )

        now = datetime.now(timezone.utc)
        fields = {key: value for key, value in data.items() if value is not None}
        if fields.get("email"):
            fields["email"] = fields["email"].strip().lower()
        fields["role"] = role
        fields["uid"] = uid
        fields["updatedAt"] = now

        profile = await self._users_collection.find_one_and_update(
            {"_id": uid},
            build_profile_upsert(fields, data.get("settings"), now),
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )

        logger.info(f"Profile saved for user {uid} with role {role}")
        return profile

    async def update_profile(
        self,
        uid: str,
        updates: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Update editable profile fields; unknown fields are ignored."""
        fields = {key: value for key, value in updates.items() if key in PROFILE_FIELDS}
        if not fields:
            raise ValidationException(
                message="No editable fields provided",
                code="NO_FIELDS_TO_UPDATE",
            )

        fields["updatedAt"] = datetime.now(timezone.utc)

        profile = await self._users_collection.find_one_and_update(
            {"_id": uid},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        if not profile:
            raise NotFoundException(message="Profile not found", code="PROFILE_NOT_FOUND")

        return profile

    async def update_settings(
        self,
        uid: str,
        settings: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Merge display/notification settings into the profile."""
        fields = {
            f"settings.{key}": value
            for key, value in settings.items()
            if key in SETTINGS_FIELDS and value is not None
        }
        if not fields:
            raise ValidationException(
                message="No settings provided",
                code="NO_FIELDS_TO_UPDATE",
            )

        fields["updatedAt"] = datetime.now(timezone.utc)

        profile = await self._users_collection.find_one_and_update(
            {"_id": uid},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        if not profile:
            raise NotFoundException(message="Profile not found", code="PROFILE_NOT_FOUND")

        return profile["settings"]

    # ─────────────────────────────────────────────────────────────────
    # Study goals
    # ─────────────────────────────────────────────────────────────────

    async def get_goals(self, uid: str) -> Dict[str, int]:
        """Student goals merged over the defaults."""
        profile = await self._users_collection.find_one(
            {"_id": uid},
            {"settings.goals": 1},
        )
        if not profile:
            raise NotFoundException(message="Profile not found", code="PROFILE_NOT_FOUND")

        goals = profile.get("settings", {}).get("goals") or {}
        return {**DEFAULT_GOALS, **goals}

    async def update_goals(self, uid: str, goals: Dict[str, int]) -> Dict[str, int]:
        fields = {
            f"settings.goals.{key}": value
            for key, value in goals.items()
            if key in GOAL_FIELDS and value is not None
        }
        for key, value in goals.items():
            if value is not None and value < 0:
                raise ValidationException(
                    message="Goal targets cannot be negative",
                    code="INVALID_GOAL",
                    details={"field": key},
                )
        if not fields:
            raise ValidationException(message="No goals provided", code="NO_FIELDS_TO_UPDATE")

        fields["updatedAt"] = datetime.now(timezone.utc)

        result = await self._users_collection.update_one({"_id": uid}, {"$set": fields})
        if result.matched_count == 0:
            raise NotFoundException(message="Profile not found", code="PROFILE_NOT_FOUND")

        return await self.get_goals(uid)

    # ─────────────────────────────────────────────────────────────────
    # Push notifications
    # ─────────────────────────────────────────────────────────────────

    async def save_fcm_token(self, uid: str, token: str) -> None:
        """Register a device token for push notifications."""
        token = (token or "").strip()
        if not token:
            raise ValidationException(message="Token is required", code="TOKEN_REQUIRED")

        await self._users_collection.update_one(
            {"_id": uid},
            {
                "$addToSet": {"fcmTokens": token},
                "$set": {"updatedAt": datetime.now(timezone.utc)},
            },
        )
        logger.debug(f"FCM token registered for user {uid}")
