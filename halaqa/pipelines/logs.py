"""
Log review pipeline functions.
"""

import logging
from typing import Optional, Dict, Any

from common.utils.exceptions import BadRequestException
from halaqa.services.circles.circle_service import CircleService
from halaqa.services.logs.log_service import LogService
from halaqa.services.tasks.task_service import TaskService

logger = logging.getLogger(__name__)

REVIEW_ACTIONS = ("approve", "reject")


async def review_log_pipeline(
    log_service: LogService,
    task_service: TaskService,
    circle_service: CircleService,
    log_id: str,
    reviewer_id: str,
    action: str,
    teacher_notes: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Approve or reject a log and move its task along.

    Approval completes the linked task; rejection reopens it. The task
    update is best effort: the review stands even if it fails.

    Args:
        log_service: For the review itself
        task_service: For the linked task
        circle_service: To check the reviewer sheikhs the log's circle
        log_id: Log to review
        reviewer_id: Sheikh uid
        action: approve or reject
        teacher_notes: Feedback shown to the student

    Returns:
        The reviewed log
    """
    if action not in REVIEW_ACTIONS:
        raise BadRequestException(
            message=f"Action must be one of {', '.join(REVIEW_ACTIONS)}",
            code="INVALID_REVIEW_ACTION",
        )

    circles = await circle_service.list_sheikh_circles(reviewer_id)
    await log_service.ensure_log_in_circles(log_id, [c["id"] for c in circles])

    if action == "approve":
        log = await log_service.approve_log(log_id, reviewer_id, teacher_notes)
        task_status = "completed"
    else:
        log = await log_service.reject_log(log_id, reviewer_id, teacher_notes)
        task_status = "pending"

    task_id = log.get("taskId")
    if task_id:
        try:
            await task_service.set_status(task_id, task_status)
        except Exception as e:
            logger.warning(f"Failed to set task {task_id} to {task_status} after review of log {log_id}: {e}")

    return log


async def get_pending_reviews_pipeline(
    log_service: LogService,
    circle_service: CircleService,
    reviewer_id: str,
) -> Dict[str, Any]:
    """Pending logs across every circle the sheikh teaches."""
    circles = await circle_service.list_sheikh_circles(reviewer_id)
    logs = await log_service.get_pending_logs([c["id"] for c in circles])
    return {"logs": logs, "count": len(logs)}
