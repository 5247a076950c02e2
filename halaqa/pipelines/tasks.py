"""
Task submission pipeline functions.
"""

import logging
from typing import Optional, Dict, Any

from halaqa.services.logs.log_service import LogService
from halaqa.services.tasks.task_service import TaskService

logger = logging.getLogger(__name__)


async def submit_task_pipeline(
    task_service: TaskService,
    log_service: LogService,
    task_id: str,
    student_id: str,
    amount: Dict[str, Any],
    notes: Optional[str] = None,
    log_date: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Submit a task by logging the work for review.

    Claims the task first, then creates a pending log linked to it. A
    submission that loses the claim never writes a log; if the log write
    fails the task goes back to pending.

    Returns:
        dict with task and log
    """
    task = await task_service.ensure_submittable(task_id, student_id)
    await task_service.mark_submitted(task["id"])

    try:
        log = await log_service.add_log(
            student_id=student_id,
            circle_id=task["circleId"],
            log_type=task["type"],
            amount=amount,
            log_date=log_date,
            notes=notes,
            task_id=task["id"],
        )
    except Exception:
        logger.warning(f"Log write failed for task {task_id}, reopening it")
        await task_service.set_status(task["id"], "pending")
        raise

    task = await task_service.attach_log(task["id"], log["id"])

    logger.info(f"Task {task_id} submitted by {student_id} with log {log['id']}")
    return {"task": task, "log": log}
