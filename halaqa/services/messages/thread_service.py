"""
Direct messaging between two users.

A thread holds exactly two participants, stored sorted so a pair maps to a
single thread. Per-user read markers live in ``threads.members`` and drive
the unread flags.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from common.utils.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from common.utils.ids import parse_object_id, serialize_doc

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000
PREVIEW_LENGTH = 100

DEFAULT_USER_NAME = "مستخدم"

# Read marker for a participant who has never opened the thread
NEVER_READ = datetime(1970, 1, 1, tzinfo=timezone.utc)


class ThreadService:
    """
    Manages threads, messages and read markers.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        thread_limit: int = 50,
        message_limit: int = 200,
    ):
        """
        Initialize ThreadService.

        Args:
            db: MongoDB database connection
            thread_limit: Threads returned by list_threads
            message_limit: Messages returned by get_messages
        """
        self._db = db
        self._thread_limit = thread_limit
        self._message_limit = message_limit
        self._threads_collection = db["threads"]
        self._messages_collection = db["messages"]
        self._users_collection = db["users"]

    async def create_or_open_thread(
        self,
        uid: str,
        other_user_id: str,
        circle_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Get the thread between two users, creating it on first contact.

        Args:
            uid: Current user
            other_user_id: The other participant
            circle_id: Circle the conversation started from

        Returns:
            The thread
        """
        if not other_user_id:
            raise ValidationException(message="Recipient is required", code="RECIPIENT_REQUIRED")
        if other_user_id == uid:
            raise ValidationException(message="You cannot message yourself", code="CANNOT_MESSAGE_SELF")

        recipient = await self._users_collection.find_one({"_id": other_user_id}, {"_id": 1})
        if not recipient:
            raise NotFoundException(message="User not found", code="USER_NOT_FOUND")

        now = datetime.now(timezone.utc)
        participants = sorted([uid, other_user_id])

        # Upserting on the pair keeps a single thread per pair
        thread = await self._threads_collection.find_one_and_update(
            {"participants": participants},
            {"$setOnInsert": {
                "participants": participants,
                "circleId": circle_id,
                "lastMessage": "",
                "lastMessageAt": now,
                "members": {
                    uid: {"lastReadAt": now},
                    other_user_id: {"lastReadAt": NEVER_READ},
                },
                "createdAt": now,
                "updatedAt": now,
            }},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )

        logger.info(f"Thread {thread['_id']} opened between {uid} and {other_user_id}")
        return serialize_doc(thread)

    async def _get_thread_for(self, thread_id: str, uid: str) -> Dict[str, Any]:
        thread = await self._threads_collection.find_one({"_id": parse_object_id(thread_id, "threadId")})
        if not thread:
            raise NotFoundException(message="Thread not found", code="THREAD_NOT_FOUND")
        if uid not in thread.get("participants", []):
            raise ForbiddenException(message="You are not part of this conversation", code="NOT_THREAD_PARTICIPANT")
        return thread

    async def send_message(self, thread_id: str, sender_id: str, content: str) -> Dict[str, Any]:
        """
        Post a message and move the thread's preview and the sender's read
        marker forward.
        """
        content = (content or "").strip()
        if not content:
            raise ValidationException(message="Message cannot be empty", code="EMPTY_MESSAGE")
        if len(content) > MAX_MESSAGE_LENGTH:
            raise ValidationException(
                message=f"Message cannot exceed {MAX_MESSAGE_LENGTH} characters",
                code="MESSAGE_TOO_LONG",
            )

        thread = await self._get_thread_for(thread_id, sender_id)

        now = datetime.now(timezone.utc)
        message_doc = {
            "threadId": str(thread["_id"]),
            "senderId": sender_id,
            "content": content,
            "type": "text",
            "createdAt": now,
        }
        result = await self._messages_collection.insert_one(message_doc)
        message_doc["_id"] = result.inserted_id

        await self._threads_collection.update_one(
            {"_id": thread["_id"]},
            {"$set": {
                "lastMessage": content[:PREVIEW_LENGTH],
                "lastMessageAt": now,
                "updatedAt": now,
                f"members.{sender_id}.lastReadAt": now,
            }},
        )

        return serialize_doc(message_doc)

    async def get_messages(self, thread_id: str, uid: str) -> Dict[str, Any]:
        """
        Messages of a thread, oldest first, with the other participant's
        name.
        """
        thread = await self._get_thread_for(thread_id, uid)

        cursor = self._messages_collection.find(
            {"threadId": str(thread["_id"])}
        ).sort("createdAt", 1).limit(self._message_limit)
        messages = await cursor.to_list(length=self._message_limit)

        other_id = next((p for p in thread["participants"] if p != uid), "")
        other = await self._users_collection.find_one({"_id": other_id}, {"displayName": 1, "photoURL": 1}) or {}

        return {
            "threadId": str(thread["_id"]),
            "circleId": thread.get("circleId"),
            "otherUserId": other_id,
            "otherUserName": other.get("displayName") or DEFAULT_USER_NAME,
            "messages": [serialize_doc(m) for m in messages],
        }

    async def mark_as_read(self, thread_id: str, uid: str) -> None:
        thread = await self._get_thread_for(thread_id, uid)
        await self._threads_collection.update_one(
            {"_id": thread["_id"]},
            {"$set": {f"members.{uid}.lastReadAt": datetime.now(timezone.utc)}},
        )

    async def list_threads(self, uid: str) -> Dict[str, Any]:
        """
        The user's threads, most recently active first.

        Returns:
            dict with threads (each with otherUserId, otherUserName,
            otherUserAvatar and isUnread) and totalUnread
        """
        cursor = self._threads_collection.find(
            {"participants": uid}
        ).sort("updatedAt", -1).limit(self._thread_limit)
        threads = await cursor.to_list(length=self._thread_limit)

        other_ids = {
            next((p for p in t.get("participants", []) if p != uid), "")
            for t in threads
        }
        users = await self._users_collection.find(
            {"_id": {"$in": list(other_ids)}},
            {"displayName": 1, "photoURL": 1},
        ).to_list(length=None)
        users_by_id = {u["_id"]: u for u in users}

        result = []
        for thread in threads:
            other_id = next((p for p in thread.get("participants", []) if p != uid), "")
            other = users_by_id.get(other_id, {})

            member = (thread.get("members") or {}).get(uid)
            last_message_at = thread.get("lastMessageAt")
            if member is None:
                is_unread = True
            else:
                last_read_at = member.get("lastReadAt") or NEVER_READ
                is_unread = last_message_at is not None and last_message_at > last_read_at

            item = serialize_doc(thread)
            item.pop("members", None)
            item["otherUserId"] = other_id
            item["otherUserName"] = other.get("displayName") or DEFAULT_USER_NAME
            item["otherUserAvatar"] = other.get("photoURL")
            item["isUnread"] = is_unread
            result.append(item)

        return {
            "threads": result,
            "totalUnread": sum(1 for t in result if t["isUnread"]),
        }
