"""
FastAPI router for progress log endpoints.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from halaqa.dependencies import (
    require_auth,
    require_sheikh,
    get_log_service,
    get_task_service,
    get_circle_service,
    get_membership_service,
)
from halaqa.pipelines import logs as log_pipelines
from halaqa.schemas.logs import CreateLogRequest, UpdateLogNotesRequest, ReviewLogRequest
from halaqa.services.circles import CircleService, MembershipService
from halaqa.services.logs import LogService
from halaqa.services.tasks import TaskService
from common.utils import success_response, ForbiddenException

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/logs", tags=["logs"])


@router.post("")
async def add_log(
    body: CreateLogRequest,
    user: Annotated[dict, Depends(require_auth)],
    log_service: Annotated[LogService, Depends(get_log_service)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Record memorization or revision for the sheikh to approve."""
    circle = await membership_service.get_active_circle(user["_id"])
    if not circle:
        raise ForbiddenException(message="Join a circle first", code="NOT_CIRCLE_MEMBER")

    log = await log_service.add_log(
        student_id=user["_id"],
        circle_id=circle["id"],
        log_type=body.type,
        amount=body.amount.model_dump(),
        log_date=body.date,
        notes=body.notes,
    )
    return success_response({"log": log})


@router.get("")
async def list_my_logs(
    user: Annotated[dict, Depends(require_auth)],
    log_service: Annotated[LogService, Depends(get_log_service)],
    type: Optional[str] = Query(None, description="memorization | revision"),
    status: Optional[str] = Query(None, description="pending_approval | approved | rejected"),
    month: Optional[str] = Query(None, description="YYYY-MM"),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
):
    result = await log_service.list_logs(
        student_id=user["_id"],
        log_type=type,
        status=status,
        month=month,
        search=search,
        page=page,
    )
    return success_response(result)


@router.get("/pending")
async def get_pending_logs(
    user: Annotated[dict, Depends(require_sheikh)],
    log_service: Annotated[LogService, Depends(get_log_service)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
):
    """Logs awaiting review in the sheikh's circles."""
    result = await log_pipelines.get_pending_reviews_pipeline(log_service, circle_service, user["_id"])
    return success_response(result)


@router.get("/students/{student_id}")
async def list_student_logs(
    student_id: str,
    circle_id: Annotated[str, Query(alias="circleId")],
    user: Annotated[dict, Depends(require_sheikh)],
    log_service: Annotated[LogService, Depends(get_log_service)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
    page: int = Query(1, ge=1),
):
    """A student's logs and statistics, for the student detail page."""
    await circle_service.ensure_sheikh_access(circle_id, user["_id"])
    await membership_service.ensure_member(circle_id, student_id)

    logs = await log_service.list_logs(student_id=student_id, page=page)
    stats = await log_service.get_student_stats(student_id)
    return success_response({**logs, "stats": stats})


@router.patch("/{log_id}/notes")
async def update_notes(
    log_id: str,
    body: UpdateLogNotesRequest,
    user: Annotated[dict, Depends(require_auth)],
    log_service: Annotated[LogService, Depends(get_log_service)],
):
    log = await log_service.update_student_notes(log_id, user["_id"], body.notes)
    return success_response({"log": log})


@router.post("/{log_id}/review")
async def review_log(
    log_id: str,
    body: ReviewLogRequest,
    user: Annotated[dict, Depends(require_sheikh)],
    log_service: Annotated[LogService, Depends(get_log_service)],
    task_service: Annotated[TaskService, Depends(get_task_service)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
):
    """
    Approve or reject a pending log.

    Approval awards points; a linked task is completed or reopened.
    """
    log = await log_pipelines.review_log_pipeline(
        log_service=log_service,
        task_service=task_service,
        circle_service=circle_service,
        log_id=log_id,
        reviewer_id=user["_id"],
        action=body.action,
        teacher_notes=body.notes,
    )
    return success_response({"log": log})
