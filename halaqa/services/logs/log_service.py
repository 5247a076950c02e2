"""
Progress log service.

Students record memorization and revision pages; a sheikh approves or
rejects each log. Approval awards points to the student.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from common.database import run_in_transaction
from common.utils.dates import parse_iso_date, today_utc
from common.utils.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from common.utils.ids import parse_object_id, serialize_doc
from halaqa.services.logs.log_stats import compute_student_stats, log_pages
from halaqa.services.points.points_service import PointsService, calculate_points_for_log

logger = logging.getLogger(__name__)

LOG_TYPES = ("memorization", "revision")
LOG_STATUSES = ("pending_approval", "approved", "rejected")

PAGE_SIZE = 10


class LogService:
    """
    Manages student progress logs and their review.
    """

    def __init__(self, db: AsyncIOMotorDatabase, use_transactions: bool = True):
        """
        Initialize LogService.

        Args:
            db: MongoDB database connection
            use_transactions: Approve and award points in one transaction
        """
        self._db = db
        self._use_transactions = use_transactions
        self._logs_collection = db["logs"]
        self._users_collection = db["users"]
        self._points = PointsService(db)

    async def add_log(
        self,
        student_id: str,
        circle_id: str,
        log_type: str,
        amount: Dict[str, Any],
        log_date: Optional[str] = None,
        notes: Optional[str] = None,
        task_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Record a log awaiting the sheikh's approval.

        Args:
            student_id: Student uid
            circle_id: The student's circle
            log_type: memorization or revision
            amount: {pages, surah, ayahFrom, ayahTo}
            log_date: YYYY-MM-DD, defaults to today (UTC)
            notes: Student notes
            task_id: Task this log fulfils

        Returns:
            The created log
        """
        if log_type not in LOG_TYPES:
            raise ValidationException(
                message=f"Log type must be one of {', '.join(LOG_TYPES)}",
                code="INVALID_LOG_TYPE",
            )

        if log_date:
            parse_iso_date(log_date)
        else:
            log_date = today_utc().isoformat()

        now = datetime.now(timezone.utc)
        log_doc = {
            "studentId": student_id,
            "circleId": circle_id,
            "type": log_type,
            "amount": {
                "pages": amount.get("pages", 0),
                "surah": amount.get("surah"),
                "ayahFrom": amount.get("ayahFrom"),
                "ayahTo": amount.get("ayahTo"),
            },
            "date": log_date,
            "status": "pending_approval",
            "studentNotes": notes,
            "teacherNotes": None,
            "taskId": task_id,
            "createdAt": now,
            "updatedAt": now,
        }

        result = await self._logs_collection.insert_one(log_doc)
        log_doc["_id"] = result.inserted_id

        logger.info(f"Log {result.inserted_id} added by {student_id} ({log_type}, {log_doc['amount']['pages']} pages)")
        return serialize_doc(log_doc)

    async def get_log(self, log_id: str) -> Dict[str, Any]:
        log = await self._logs_collection.find_one({"_id": parse_object_id(log_id, "logId")})
        if not log:
            raise NotFoundException(message="Log not found", code="LOG_NOT_FOUND")
        return serialize_doc(log)

    async def update_student_notes(self, log_id: str, student_id: str, notes: str) -> Dict[str, Any]:
        """Students may annotate their own logs."""
        log = await self._logs_collection.find_one_and_update(
            {"_id": parse_object_id(log_id, "logId"), "studentId": student_id},
            {"$set": {"studentNotes": notes, "updatedAt": datetime.now(timezone.utc)}},
            return_document=ReturnDocument.AFTER,
        )
        if not log:
            raise NotFoundException(message="Log not found", code="LOG_NOT_FOUND")
        return serialize_doc(log)

    async def list_logs(
        self,
        student_id: str,
        log_type: Optional[str] = None,
        status: Optional[str] = None,
        month: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
    ) -> Dict[str, Any]:
        """
        List a student's logs, newest first, ``PAGE_SIZE`` per page.

        Args:
            student_id: Student uid
            log_type: memorization or revision
            status: pending_approval, approved or rejected
            month: YYYY-MM
            search: Case-insensitive match on pages, surah or notes
            page: 1-indexed page

        Returns:
            dict with logs, page and hasMore
        """
        query: Dict[str, Any] = {"studentId": student_id}

        if log_type:
            if log_type not in LOG_TYPES:
                raise ValidationException(message="Invalid log type", code="INVALID_LOG_TYPE")
            query["type"] = log_type

        if status:
            if status not in LOG_STATUSES:
                raise ValidationException(message="Invalid log status", code="INVALID_STATUS")
            query["status"] = status

        if month:
            if not re.fullmatch(r"\d{4}-\d{2}", month):
                raise ValidationException(message="Month must be YYYY-MM", code="INVALID_DATE")
            query["date"] = {"$regex": f"^{month}"}

        search = (search or "").strip()
        if search:
            pattern = re.escape(search)
            query["$or"] = [
                {"amount.surah": {"$regex": pattern, "$options": "i"}},
                {"studentNotes": {"$regex": pattern, "$options": "i"}},
                {"$expr": {"$regexMatch": {
                    "input": {"$toString": "$amount.pages"},
                    "regex": pattern,
                }}},
            ]

        page = max(page, 1)
        cursor = self._logs_collection.find(query).sort(
            [("date", -1), ("createdAt", -1)]
        ).skip((page - 1) * PAGE_SIZE).limit(PAGE_SIZE + 1)
        logs = await cursor.to_list(length=PAGE_SIZE + 1)

        return {
            "logs": [serialize_doc(log) for log in logs[:PAGE_SIZE]],
            "page": page,
            "hasMore": len(logs) > PAGE_SIZE,
        }

    async def get_pending_logs(self, circle_ids: List[str], limit: int = 100) -> List[Dict[str, Any]]:
        """Logs awaiting review across circles, oldest first, with student names."""
        if not circle_ids:
            return []

        cursor = self._logs_collection.find(
            {"circleId": {"$in": circle_ids}, "status": "pending_approval"}
        ).sort("createdAt", 1)
        logs = await cursor.to_list(length=limit)

        student_ids = list({log["studentId"] for log in logs})
        users = await self._users_collection.find(
            {"_id": {"$in": student_ids}},
            {"displayName": 1, "photoURL": 1},
        ).to_list(length=None)
        users_by_id = {u["_id"]: u for u in users}

        result = []
        for log in logs:
            item = serialize_doc(log)
            student = users_by_id.get(log["studentId"], {})
            item["studentName"] = student.get("displayName")
            item["studentPhotoURL"] = student.get("photoURL")
            result.append(item)
        return result

    # ─────────────────────────────────────────────────────────────────
    # Review
    # ─────────────────────────────────────────────────────────────────

    async def _ensure_pending(self, log_id: str, session=None) -> Dict[str, Any]:
        log = await self._logs_collection.find_one({"_id": parse_object_id(log_id, "logId")}, session=session)
        if not log:
            raise NotFoundException(message="Log not found", code="LOG_NOT_FOUND")
        if log.get("status") != "pending_approval":
            raise ConflictException(
                message="Only pending logs can be reviewed",
                code="INVALID_STATUS_TRANSITION",
                details={"status": log.get("status")},
            )
        return log

    async def approve_log(
        self,
        log_id: str,
        reviewer_id: str,
        teacher_notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Approve a pending log and award points to the student.

        Points are pages x 3 for memorization and pages x 1 for revision;
        a log with no page count is worth one page.

        Returns:
            The approved log, including pointsAwarded
        """

        async def _approve(session):
            log = await self._ensure_pending(log_id, session=session)

            pages = log_pages(log)
            if pages <= 0:
                pages = 1
            points = calculate_points_for_log(log.get("type"), pages)

            now = datetime.now(timezone.utc)
            updated = await self._logs_collection.find_one_and_update(
                {"_id": log["_id"], "status": "pending_approval"},
                {"$set": {
                    "status": "approved",
                    "teacherNotes": teacher_notes,
                    "pointsAwarded": points,
                    "reviewedBy": reviewer_id,
                    "approvedAt": now,
                    "reviewedAt": now,
                    "updatedAt": now,
                }},
                return_document=ReturnDocument.AFTER,
                session=session,
            )
            if not updated:
                raise ConflictException(message="Log was already reviewed", code="INVALID_STATUS_TRANSITION")

            if points > 0:
                await self._points.add_points(log["studentId"], points, session=session)
            return updated

        log = await run_in_transaction(self._db.client, _approve, enabled=self._use_transactions)

        logger.info(f"Log {log_id} approved by {reviewer_id}, {log.get('pointsAwarded')} points awarded")
        return serialize_doc(log)

    async def reject_log(
        self,
        log_id: str,
        reviewer_id: str,
        teacher_notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        await self._ensure_pending(log_id)

        now = datetime.now(timezone.utc)
        log = await self._logs_collection.find_one_and_update(
            {"_id": parse_object_id(log_id, "logId"), "status": "pending_approval"},
            {"$set": {
                "status": "rejected",
                "teacherNotes": teacher_notes,
                "reviewedBy": reviewer_id,
                "reviewedAt": now,
                "updatedAt": now,
            }},
            return_document=ReturnDocument.AFTER,
        )
        if not log:
            raise ConflictException(message="Log was already reviewed", code="INVALID_STATUS_TRANSITION")

        logger.info(f"Log {log_id} rejected by {reviewer_id}")
        return serialize_doc(log)

    async def ensure_log_in_circles(self, log_id: str, circle_ids: List[str]) -> Dict[str, Any]:
        """Get a log, checking it belongs to one of the reviewer's circles."""
        log = await self.get_log(log_id)
        if log.get("circleId") not in circle_ids:
            raise ForbiddenException(message="Log belongs to another circle", code="NOT_CIRCLE_SHEIKH")
        return log

    # ─────────────────────────────────────────────────────────────────
    # Statistics
    # ─────────────────────────────────────────────────────────────────

    async def get_student_stats(self, student_id: str, today=None) -> Dict[str, Any]:
        today = today or today_utc()

        cursor = self._logs_collection.find(
            {"studentId": student_id, "status": "approved"},
            {"type": 1, "date": 1, "amount.pages": 1, "status": 1},
        )
        logs = await cursor.to_list(length=None)

        return compute_student_stats(logs, today)

