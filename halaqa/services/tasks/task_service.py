"""
Task assignment service.

A sheikh assigns memorization or revision targets to a student with a due
date. The student submits a task by logging the work; the task follows the
review of that log.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from common.utils.dates import parse_iso_date
from common.utils.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from common.utils.ids import parse_object_id, serialize_doc
from halaqa.services.logs.log_service import LOG_TYPES

logger = logging.getLogger(__name__)

TASK_STATUSES = ("pending", "submitted", "approved", "completed", "missed")


class TaskService:
    """
    Manages tasks assigned to students.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        """
        Initialize TaskService.

        Args:
            db: MongoDB database connection
        """
        self._db = db
        self._tasks_collection = db["tasks"]

    async def assign_task(
        self,
        teacher_id: str,
        circle_id: str,
        student_id: str,
        task_type: str,
        target: str,
        due_date: str,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Assign a task to a student.

        Args:
            teacher_id: Assigning sheikh's uid
            circle_id: Circle the task belongs to
            student_id: Student uid
            task_type: memorization or revision
            target: What to cover, e.g. "Al-Mulk 1-15"
            due_date: YYYY-MM-DD
            notes: Optional instructions
        """
        if task_type not in LOG_TYPES:
            raise ValidationException(
                message=f"Task type must be one of {', '.join(LOG_TYPES)}",
                code="INVALID_TASK_TYPE",
            )
        target = (target or "").strip()
        if not target:
            raise ValidationException(message="Task target is required", code="TASK_TARGET_REQUIRED")
        parse_iso_date(due_date, "dueDate")

        now = datetime.now(timezone.utc)
        task_doc = {
            "circleId": circle_id,
            "studentId": student_id,
            "teacherId": teacher_id,
            "type": task_type,
            "target": target,
            "dueDate": due_date,
            "notes": notes,
            "status": "pending",
            "logId": None,
            "submittedAt": None,
            "createdAt": now,
            "updatedAt": now,
        }

        result = await self._tasks_collection.insert_one(task_doc)
        task_doc["_id"] = result.inserted_id

        logger.info(f"Task {result.inserted_id} assigned to {student_id} by {teacher_id}")
        return serialize_doc(task_doc)

    async def get_task(self, task_id: str) -> Dict[str, Any]:
        task = await self._tasks_collection.find_one({"_id": parse_object_id(task_id, "taskId")})
        if not task:
            raise NotFoundException(message="Task not found", code="TASK_NOT_FOUND")
        return serialize_doc(task)

    async def delete_task(self, task_id: str) -> None:
        result = await self._tasks_collection.delete_one({"_id": parse_object_id(task_id, "taskId")})
        if result.deleted_count == 0:
            raise NotFoundException(message="Task not found", code="TASK_NOT_FOUND")
        logger.info(f"Task {task_id} deleted")

    async def get_pending_tasks(self, student_id: str) -> List[Dict[str, Any]]:
        """Open tasks for a student, earliest due first."""
        cursor = self._tasks_collection.find(
            {"studentId": student_id, "status": "pending"}
        ).sort("dueDate", 1)
        tasks = await cursor.to_list(length=100)
        return [serialize_doc(t) for t in tasks]

    async def list_circle_tasks(
        self,
        circle_id: str,
        status: Optional[str] = None,
        student_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {"circleId": circle_id}
        if status:
            if status not in TASK_STATUSES:
                raise ValidationException(message="Invalid task status", code="INVALID_STATUS")
            query["status"] = status
        if student_id:
            query["studentId"] = student_id

        tasks = await self._tasks_collection.find(query).sort("dueDate", -1).to_list(length=500)
        return [serialize_doc(t) for t in tasks]

    async def ensure_submittable(self, task_id: str, student_id: str) -> Dict[str, Any]:
        """
        Get a task the student can submit now.

        Raises:
            ForbiddenException: Task is assigned to someone else
            ConflictException: Task isn't pending
        """
        task = await self.get_task(task_id)
        if task["studentId"] != student_id:
            raise ForbiddenException(message="Task is assigned to another student", code="NOT_TASK_OWNER")
        if task["status"] != "pending":
            raise ConflictException(
                message="Task is not open for submission",
                code="TASK_NOT_PENDING",
                details={"status": task["status"]},
            )
        return task

    async def mark_submitted(self, task_id: str) -> Dict[str, Any]:
        """
        Claim a pending task for submission.

        Only one caller can move a task out of pending, so a concurrent
        second submission fails here before it writes a log.
        """
        now = datetime.now(timezone.utc)
        task = await self._tasks_collection.find_one_and_update(
            {"_id": parse_object_id(task_id, "taskId"), "status": "pending"},
            {"$set": {"status": "submitted", "submittedAt": now, "updatedAt": now}},
            return_document=ReturnDocument.AFTER,
        )
        if not task:
            raise ConflictException(message="Task is not open for submission", code="TASK_NOT_PENDING")
        return serialize_doc(task)

    async def attach_log(self, task_id: str, log_id: str) -> Dict[str, Any]:
        """Link the submitted log to a claimed task."""
        task = await self._tasks_collection.find_one_and_update(
            {"_id": parse_object_id(task_id, "taskId"), "status": "submitted"},
            {"$set": {"logId": log_id, "updatedAt": datetime.now(timezone.utc)}},
            return_document=ReturnDocument.AFTER,
        )
        if not task:
            raise ConflictException(message="Task is not open for submission", code="TASK_NOT_PENDING")
        return serialize_doc(task)

    async def set_status(self, task_id: str, status: str) -> Dict[str, Any]:
        if status not in TASK_STATUSES:
            raise ValidationException(message="Invalid task status", code="INVALID_STATUS")

        fields: Dict[str, Any] = {"status": status, "updatedAt": datetime.now(timezone.utc)}
        if status == "pending":
            # Reopened after a rejected submission
            fields["logId"] = None
            fields["submittedAt"] = None

        task = await self._tasks_collection.find_one_and_update(
            {"_id": parse_object_id(task_id, "taskId")},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        if not task:
            raise NotFoundException(message="Task not found", code="TASK_NOT_FOUND")
        return serialize_doc(task)

    async def mark_missed_tasks(self, today: str) -> int:
        """
        Close pending tasks whose due date has passed.

        Args:
            today: YYYY-MM-DD; tasks due strictly before it are missed

        Returns:
            Number of tasks marked missed
        """
        parse_iso_date(today)
        result = await self._tasks_collection.update_many(
            {"status": "pending", "dueDate": {"$lt": today}},
            {"$set": {"status": "missed", "updatedAt": datetime.now(timezone.utc)}},
        )
        logger.info(f"Marked {result.modified_count} overdue tasks as missed")
        return result.modified_count
