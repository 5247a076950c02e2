"""
Circle report service.

Monthly progress report for a circle: page totals, review status, task
completion, recent activity and a student ranking. Only students with an
approved membership are counted.
"""

import csv
import io
import logging
from datetime import datetime, time, timedelta, timezone
from typing import Optional, List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.utils.dates import month_prefix, today_utc
from halaqa.services.logs.log_stats import last_n_days, log_pages

logger = logging.getLogger(__name__)

CSV_HEADERS = ["الترتيب", "اسم الطالب", "الصفحات المعتمدة", "عدد السجلات"]
CSV_BOM = "\ufeff"

DEFAULT_STUDENT_NAME = "طالب"
TOP_PERFORMERS = 3


def export_to_csv(student_stats: List[Dict[str, Any]]) -> str:
    """
    Render the student ranking as CSV.

    The output starts with a UTF-8 BOM so spreadsheet apps detect the
    encoding of the Arabic headers.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for rank, student in enumerate(student_stats, start=1):
        writer.writerow([rank, student["name"], student["totalPages"], student["logsCount"]])
    return CSV_BOM + buffer.getvalue()


class ReportService:
    """
    Builds circle reports.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self._db = db
        self._members_collection = db["circleMembers"]
        self._logs_collection = db["logs"]
        self._tasks_collection = db["tasks"]
        self._users_collection = db["users"]

    async def get_circle_report(
        self,
        circle_id: str,
        year: int,
        month: int,
        today=None,
    ) -> Dict[str, Any]:
        """
        Build the report for one month.

        Args:
            circle_id: Circle ID
            year: Report year
            month: Report month, 1-12
            today: Reference day for the 7-day activity chart

        Returns:
            dict with totalPagesMemorized, totalPagesRevised, activeStudents,
            pendingApprovals, completedTasks, totalTasks, completionRate,
            statusBreakdown, dailyActivity, topPerformers and allStudentStats
        """
        prefix = month_prefix(year, month)
        today = today or today_utc()

        members = await self._members_collection.find(
            {"circleId": circle_id, "status": "approved", "roleInCircle": {"$ne": "assistant"}},
            {"userId": 1},
        ).to_list(length=None)
        student_ids = [m["userId"] for m in members]

        month_logs = await self._logs_collection.find({
            "circleId": circle_id,
            "studentId": {"$in": student_ids},
            "date": {"$regex": f"^{prefix}"},
        }).to_list(length=None)

        pending_approvals = await self._logs_collection.count_documents({
            "circleId": circle_id,
            "studentId": {"$in": student_ids},
            "status": "pending_approval",
        })

        # ─────────────────────────────────────────────────────────────────
        # Month totals and ranking
        # ─────────────────────────────────────────────────────────────────

        breakdown = {"approved": 0, "rejected": 0, "pending": 0}
        memorized = 0
        revised = 0
        per_student: Dict[str, Dict[str, Any]] = {}

        for log in month_logs:
            status = log.get("status")
            pages = log_pages(log)

            if status == "approved":
                breakdown["approved"] += 1
                if log.get("type") == "memorization":
                    memorized += pages
                else:
                    revised += pages
            elif status == "rejected":
                breakdown["rejected"] += 1
            elif status == "pending_approval":
                breakdown["pending"] += 1

            entry = per_student.setdefault(log["studentId"], {"totalPages": 0, "logsCount": 0})
            entry["logsCount"] += 1
            if status == "approved":
                entry["totalPages"] += pages

        # ─────────────────────────────────────────────────────────────────
        # Tasks due this month
        # ─────────────────────────────────────────────────────────────────

        tasks = await self._tasks_collection.find(
            {
                "circleId": circle_id,
                "studentId": {"$in": student_ids},
                "dueDate": {"$regex": f"^{prefix}"},
            },
            {"status": 1},
        ).to_list(length=None)
        total_tasks = len(tasks)
        completed_tasks = sum(1 for t in tasks if t.get("status") in ("completed", "submitted"))
        completion_rate = round(completed_tasks / total_tasks * 100) if total_tasks else 0

        daily_activity = await self._daily_activity(circle_id, student_ids, today)
        all_student_stats = await self._rank_students(per_student)

        logger.info(f"Report built for circle {circle_id} ({prefix}): {len(student_ids)} students")

        return {
            "circleId": circle_id,
            "month": prefix,
            "totalPagesMemorized": memorized,
            "totalPagesRevised": revised,
            "activeStudents": len(student_ids),
            "pendingApprovals": pending_approvals,
            "completedTasks": completed_tasks,
            "totalTasks": total_tasks,
            "completionRate": completion_rate,
            "statusBreakdown": breakdown,
            "dailyActivity": daily_activity,
            "topPerformers": all_student_stats[:TOP_PERFORMERS],
            "allStudentStats": all_student_stats,
        }

    async def _daily_activity(self, circle_id: str, student_ids: List[str], today) -> List[Dict[str, Any]]:
        """Approved pages per day over the last 7 days, bucketed by createdAt."""
        days = [d.isoformat() for d in last_n_days(today, 7)]
        since = datetime.combine(today - timedelta(days=6), time.min, tzinfo=timezone.utc)

        logs = await self._logs_collection.find(
            {
                "circleId": circle_id,
                "studentId": {"$in": student_ids},
                "status": "approved",
                "createdAt": {"$gte": since},
            },
            {"type": 1, "amount.pages": 1, "createdAt": 1},
        ).to_list(length=None)

        buckets = {d: {"memorized": 0, "revised": 0} for d in days}
        for log in logs:
            created_at = log.get("createdAt")
            if not created_at:
                continue
            day = created_at.date().isoformat()
            if day not in buckets:
                continue
            key = "memorized" if log.get("type") == "memorization" else "revised"
            buckets[day][key] += log_pages(log)

        return [{"date": d, **buckets[d]} for d in days]

    async def _rank_students(self, per_student: Dict[str, Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not per_student:
            return []

        users = await self._users_collection.find(
            {"_id": {"$in": list(per_student)}},
            {"displayName": 1, "photoURL": 1, "equippedFrame": 1, "equippedBadge": 1, "equippedAvatar": 1},
        ).to_list(length=None)
        users_by_id = {u["_id"]: u for u in users}

        ranked = []
        for student_id, totals in per_student.items():
            user: Optional[Dict[str, Any]] = users_by_id.get(student_id) or {}
            ranked.append({
                "id": student_id,
                "name": user.get("displayName") or DEFAULT_STUDENT_NAME,
                "avatar": user.get("photoURL"),
                "equippedFrame": user.get("equippedFrame"),
                "equippedBadge": user.get("equippedBadge"),
                "equippedAvatar": user.get("equippedAvatar"),
                "totalPages": totals["totalPages"],
                "logsCount": totals["logsCount"],
            })

        ranked.sort(key=lambda s: s["totalPages"], reverse=True)
        return ranked
