"""
FastAPI router for task endpoints.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from halaqa.dependencies import (
    require_auth,
    require_sheikh,
    get_task_service,
    get_log_service,
    get_circle_service,
    get_membership_service,
)
from halaqa.pipelines.tasks import submit_task_pipeline
from halaqa.schemas.tasks import AssignTaskRequest, SubmitTaskRequest
from halaqa.services.circles import CircleService, MembershipService
from halaqa.services.logs import LogService
from halaqa.services.tasks import TaskService
from common.utils import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("")
async def assign_task(
    body: AssignTaskRequest,
    user: Annotated[dict, Depends(require_sheikh)],
    task_service: Annotated[TaskService, Depends(get_task_service)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Assign a task to an approved student of one of the sheikh's circles."""
    await circle_service.ensure_sheikh_access(body.circleId, user["_id"])
    await membership_service.ensure_member(body.circleId, body.studentId)

    task = await task_service.assign_task(
        teacher_id=user["_id"],
        circle_id=body.circleId,
        student_id=body.studentId,
        task_type=body.type,
        target=body.target,
        due_date=body.dueDate,
        notes=body.notes,
    )
    return success_response({"task": task})


@router.get("/mine")
async def get_my_tasks(
    user: Annotated[dict, Depends(require_auth)],
    task_service: Annotated[TaskService, Depends(get_task_service)],
):
    """Open tasks, earliest due first."""
    tasks = await task_service.get_pending_tasks(user["_id"])
    return success_response({"tasks": tasks})


@router.get("/circles/{circle_id}")
async def list_circle_tasks(
    circle_id: str,
    user: Annotated[dict, Depends(require_sheikh)],
    task_service: Annotated[TaskService, Depends(get_task_service)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
    status: Optional[str] = Query(None),
    student_id: Optional[str] = Query(None, alias="studentId"),
):
    await circle_service.ensure_sheikh_access(circle_id, user["_id"])
    tasks = await task_service.list_circle_tasks(circle_id, status=status, student_id=student_id)
    return success_response({"tasks": tasks})


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    user: Annotated[dict, Depends(require_sheikh)],
    task_service: Annotated[TaskService, Depends(get_task_service)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
):
    task = await task_service.get_task(task_id)
    await circle_service.ensure_sheikh_access(task["circleId"], user["_id"])
    await task_service.delete_task(task_id)
    return success_response()


@router.post("/{task_id}/submit")
async def submit_task(
    task_id: str,
    body: SubmitTaskRequest,
    user: Annotated[dict, Depends(require_auth)],
    task_service: Annotated[TaskService, Depends(get_task_service)],
    log_service: Annotated[LogService, Depends(get_log_service)],
):
    """Log the work for a task and send it for review."""
    result = await submit_task_pipeline(
        task_service=task_service,
        log_service=log_service,
        task_id=task_id,
        student_id=user["_id"],
        amount=body.amount.model_dump(),
        notes=body.notes,
        log_date=body.date,
    )
    return success_response(result)
