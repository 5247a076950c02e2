"""
Absence excuse service.

A student submits an excuse for a day; the circle's sheikh approves or
rejects it. Approval marks the attendance record for that day excused, in
the same transaction as the status change.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from common.database import run_in_transaction
from common.utils.dates import parse_iso_date
from common.utils.exceptions import (
    BadRequestException,
    ConflictException,
    NotFoundException,
    ValidationException,
)
from common.utils.ids import parse_object_id, serialize_doc
from halaqa.services.attendance.attendance_service import AttendanceService

logger = logging.getLogger(__name__)

EXCUSE_STATUSES = ("pending", "approved", "rejected")
EXCUSE_ACTIONS = ("approved", "rejected")

DEFAULT_STUDENT_NAME = "طالب"


class ExcuseService:
    """
    Manages excuse submission and review.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        attendance_service: AttendanceService,
        use_transactions: bool = True,
    ):
        """
        Initialize ExcuseService.

        Args:
            db: MongoDB database connection
            attendance_service: Used to mark approved days excused
            use_transactions: Review and attendance update in one transaction
        """
        self._db = db
        self._attendance = attendance_service
        self._use_transactions = use_transactions
        self._excuses_collection = db["excuses"]

    async def check_pending_excuse(self, circle_id: str, student_id: str, date: str) -> Optional[Dict[str, Any]]:
        excuse = await self._excuses_collection.find_one({
            "circleId": circle_id,
            "studentId": student_id,
            "date": date,
            "status": "pending",
        })
        return serialize_doc(excuse) if excuse else None

    async def submit_excuse(
        self,
        circle_id: str,
        student_id: str,
        date: str,
        reason: str,
        student_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Submit an excuse for a day.

        Raises:
            ValidationException: Empty reason or bad date
            ConflictException: A pending excuse exists for that day
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationException(message="Excuse reason is required", code="EXCUSE_REASON_REQUIRED")
        parse_iso_date(date)

        if await self.check_pending_excuse(circle_id, student_id, date):
            raise ConflictException(
                message="An excuse for this day is already under review",
                code="EXCUSE_ALREADY_PENDING",
            )

        excuse_doc = {
            "circleId": circle_id,
            "studentId": student_id,
            "studentName": student_name or DEFAULT_STUDENT_NAME,
            "date": date,
            "reason": reason,
            "status": "pending",
            "processedAt": None,
            "processedBy": None,
            "createdAt": datetime.now(timezone.utc),
        }
        result = await self._excuses_collection.insert_one(excuse_doc)
        excuse_doc["_id"] = result.inserted_id

        logger.info(f"Excuse {result.inserted_id} submitted by {student_id} for {date}")
        return serialize_doc(excuse_doc)

    async def get_excuse(self, excuse_id: str) -> Dict[str, Any]:
        excuse = await self._excuses_collection.find_one({"_id": parse_object_id(excuse_id, "excuseId")})
        if not excuse:
            raise NotFoundException(message="Excuse not found", code="EXCUSE_NOT_FOUND")
        return serialize_doc(excuse)

    async def get_pending_excuses(self, circle_id: str) -> List[Dict[str, Any]]:
        cursor = self._excuses_collection.find(
            {"circleId": circle_id, "status": "pending"}
        ).sort("createdAt", -1)
        excuses = await cursor.to_list(length=200)
        return [serialize_doc(e) for e in excuses]

    async def get_my_excuses(self, student_id: str, circle_id: Optional[str] = None) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {"studentId": student_id}
        if circle_id:
            query["circleId"] = circle_id
        excuses = await self._excuses_collection.find(query).sort("createdAt", -1).to_list(length=200)
        return [serialize_doc(e) for e in excuses]

    async def process_excuse(self, excuse_id: str, action: str, processed_by: str) -> Dict[str, Any]:
        """
        Approve or reject a pending excuse.

        Args:
            excuse_id: Excuse ID
            action: "approved" or "rejected"
            processed_by: Sheikh uid

        Returns:
            The processed excuse
        """
        if action not in EXCUSE_ACTIONS:
            raise BadRequestException(
                message=f"Action must be one of {', '.join(EXCUSE_ACTIONS)}",
                code="INVALID_EXCUSE_ACTION",
            )
        object_id = parse_object_id(excuse_id, "excuseId")

        async def _process(session):
            excuse = await self._excuses_collection.find_one_and_update(
                {"_id": object_id, "status": "pending"},
                {"$set": {
                    "status": action,
                    "processedAt": datetime.now(timezone.utc),
                    "processedBy": processed_by,
                }},
                return_document=ReturnDocument.AFTER,
                session=session,
            )
            if not excuse:
                existing = await self._excuses_collection.find_one({"_id": object_id}, session=session)
                if not existing:
                    raise NotFoundException(message="Excuse not found", code="EXCUSE_NOT_FOUND")
                raise ConflictException(
                    message="Excuse was already processed",
                    code="INVALID_STATUS_TRANSITION",
                    details={"status": existing.get("status")},
                )

            if action == "approved":
                await self._attendance.mark_excused(
                    excuse["circleId"],
                    excuse["date"],
                    excuse["studentId"],
                    processed_by,
                    session=session,
                )
            return excuse

        excuse = await run_in_transaction(self._db.client, _process, enabled=self._use_transactions)

        logger.info(f"Excuse {excuse_id} {action} by {processed_by}")
        return serialize_doc(excuse)
