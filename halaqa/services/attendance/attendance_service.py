"""
Attendance service.

One document per student per circle per day, keyed
``{circleId}_{date}_{studentId}`` so saving the same sheet twice updates in
place.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import UpdateOne

from common.utils.dates import parse_iso_date, today_utc
from common.utils.exceptions import ValidationException

logger = logging.getLogger(__name__)

ATTENDANCE_STATUSES = ("present", "late", "absent", "excused")

# Statuses that count towards the attendance rate
ATTENDED_STATUSES = ("present", "late", "excused")


def attendance_id(circle_id: str, date: str, student_id: str) -> str:
    return f"{circle_id}_{date}_{student_id}"


def calculate_stats(records: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Summarize attendance records.

    Returns:
        dict with totalDays, one count per status and attendanceRate, the
        rounded percentage of days attended (present, late or excused)
    """
    stats = {"totalDays": len(records), "attendanceRate": 0}
    for status in ATTENDANCE_STATUSES:
        stats[status] = 0

    for record in records:
        status = record.get("status")
        if status in ATTENDANCE_STATUSES:
            stats[status] += 1

    if stats["totalDays"] > 0:
        attended = sum(stats[s] for s in ATTENDED_STATUSES)
        stats["attendanceRate"] = round(attended / stats["totalDays"] * 100)

    return stats


class AttendanceService:
    """
    Records and reads daily circle attendance.
    """

    def __init__(self, db: AsyncIOMotorDatabase, history_days: int = 30):
        """
        Initialize AttendanceService.

        Args:
            db: MongoDB database connection
            history_days: Default window for a student's history
        """
        self._db = db
        self._history_days = history_days
        self._attendance_collection = db["attendance"]
        self._members_collection = db["circleMembers"]

    async def save_attendance(
        self,
        circle_id: str,
        date: str,
        records: List[Dict[str, str]],
        recorded_by: str,
    ) -> Dict[str, Any]:
        """
        Save a day's attendance sheet for a circle.

        Every submitted record is upserted. Approved students of the circle
        who are neither in ``records`` nor already recorded for the day are
        marked absent.

        Args:
            circle_id: Circle ID
            date: YYYY-MM-DD
            records: [{studentId, status}]
            recorded_by: Sheikh uid

        Returns:
            dict with date, saved (submitted records) and defaultedAbsent
        """
        parse_iso_date(date)

        submitted: Dict[str, str] = {}
        for record in records:
            status = record.get("status")
            student_id = record.get("studentId")
            if not student_id:
                raise ValidationException(message="studentId is required", code="STUDENT_ID_REQUIRED")
            if status not in ATTENDANCE_STATUSES:
                raise ValidationException(
                    message=f"Status must be one of {', '.join(ATTENDANCE_STATUSES)}",
                    code="INVALID_ATTENDANCE_STATUS",
                    details={"studentId": student_id},
                )
            submitted[student_id] = status

        roster = await self._members_collection.find(
            {"circleId": circle_id, "status": "approved", "roleInCircle": {"$ne": "assistant"}},
            {"userId": 1},
        ).to_list(length=None)
        existing = await self._attendance_collection.find(
            {"circleId": circle_id, "date": date},
            {"studentId": 1},
        ).to_list(length=None)
        already_recorded = {doc["studentId"] for doc in existing}

        defaulted = [
            m["userId"] for m in roster
            if m["userId"] not in submitted and m["userId"] not in already_recorded
        ]

        now = datetime.now(timezone.utc)
        operations = []
        for student_id, status in list(submitted.items()) + [(s, "absent") for s in defaulted]:
            operations.append(UpdateOne(
                {"_id": attendance_id(circle_id, date, student_id)},
                {
                    "$set": {
                        "circleId": circle_id,
                        "studentId": student_id,
                        "date": date,
                        "status": status,
                        "recordedBy": recorded_by,
                        "updatedAt": now,
                    },
                    "$setOnInsert": {"createdAt": now},
                },
                upsert=True,
            ))

        if operations:
            await self._attendance_collection.bulk_write(operations, ordered=False)

        logger.info(
            f"Attendance saved for circle {circle_id} on {date}: "
            f"{len(submitted)} submitted, {len(defaulted)} defaulted to absent"
        )
        return {"date": date, "saved": len(submitted), "defaultedAbsent": len(defaulted)}

    async def fetch_daily_attendance(self, circle_id: str, date: str) -> Dict[str, Dict[str, Any]]:
        """Attendance for one day, keyed by student uid."""
        parse_iso_date(date)
        docs = await self._attendance_collection.find(
            {"circleId": circle_id, "date": date}
        ).to_list(length=None)

        result = {}
        for doc in docs:
            doc["id"] = doc.pop("_id")
            result[doc["studentId"]] = doc
        return result

    async def get_student_history(
        self,
        student_id: str,
        circle_id: Optional[str] = None,
        days: Optional[int] = None,
        today=None,
    ) -> List[Dict[str, Any]]:
        """A student's records for the last ``days`` days, newest first."""
        days = days or self._history_days
        today = today or today_utc()
        since = (today - timedelta(days=days - 1)).isoformat()

        query: Dict[str, Any] = {"studentId": student_id, "date": {"$gte": since}}
        if circle_id:
            query["circleId"] = circle_id

        docs = await self._attendance_collection.find(query).sort("date", -1).to_list(length=None)
        for doc in docs:
            doc["id"] = doc.pop("_id")
        return docs

    async def get_student_summary(self, student_id: str, circle_id: Optional[str] = None, days: Optional[int] = None) -> Dict[str, Any]:
        records = await self.get_student_history(student_id, circle_id=circle_id, days=days)
        return {"records": records, "stats": calculate_stats(records)}

    async def mark_excused(
        self,
        circle_id: str,
        date: str,
        student_id: str,
        processed_by: str,
        session=None,
    ) -> None:
        """Upsert a student's record for the day as excused."""
        now = datetime.now(timezone.utc)
        await self._attendance_collection.update_one(
            {"_id": attendance_id(circle_id, date, student_id)},
            {
                "$set": {
                    "circleId": circle_id,
                    "studentId": student_id,
                    "date": date,
                    "status": "excused",
                    "recordedBy": processed_by,
                    "updatedAt": now,
                },
                "$setOnInsert": {"createdAt": now},
            },
            upsert=True,
            session=session,
        )
