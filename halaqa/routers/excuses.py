"""
FastAPI router for absence excuse endpoints.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from halaqa.dependencies import (
    require_auth,
    require_sheikh,
    get_excuse_service,
    get_circle_service,
    get_membership_service,
)
from halaqa.schemas.attendance import SubmitExcuseRequest, ProcessExcuseRequest
from halaqa.services.attendance import ExcuseService
from halaqa.services.circles import CircleService, MembershipService
from common.utils import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/excuses", tags=["excuses"])


@router.post("")
async def submit_excuse(
    body: SubmitExcuseRequest,
    user: Annotated[dict, Depends(require_auth)],
    excuse_service: Annotated[ExcuseService, Depends(get_excuse_service)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Submit an excuse for an absence."""
    await membership_service.ensure_member(body.circleId, user["_id"])
    excuse = await excuse_service.submit_excuse(
        circle_id=body.circleId,
        student_id=user["_id"],
        date=body.date,
        reason=body.reason,
        student_name=user.get("displayName"),
    )
    return success_response({"excuse": excuse})


@router.get("/mine")
async def get_my_excuses(
    user: Annotated[dict, Depends(require_auth)],
    excuse_service: Annotated[ExcuseService, Depends(get_excuse_service)],
    circle_id: Optional[str] = Query(None, alias="circleId"),
):
    excuses = await excuse_service.get_my_excuses(user["_id"], circle_id)
    return success_response({"excuses": excuses})


@router.get("/circles/{circle_id}/pending")
async def get_pending_excuses(
    circle_id: str,
    user: Annotated[dict, Depends(require_sheikh)],
    excuse_service: Annotated[ExcuseService, Depends(get_excuse_service)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
):
    await circle_service.ensure_sheikh_access(circle_id, user["_id"])
    excuses = await excuse_service.get_pending_excuses(circle_id)
    return success_response({"excuses": excuses})


@router.get("/circles/{circle_id}/check")
async def check_pending_excuse(
    circle_id: str,
    student_id: Annotated[str, Query(alias="studentId")],
    date: Annotated[str, Query(description="YYYY-MM-DD")],
    user: Annotated[dict, Depends(require_sheikh)],
    excuse_service: Annotated[ExcuseService, Depends(get_excuse_service)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
):
    """Whether a student has an excuse awaiting review for a day."""
    await circle_service.ensure_sheikh_access(circle_id, user["_id"])
    excuse = await excuse_service.check_pending_excuse(circle_id, student_id, date)
    return success_response({"excuse": excuse})


@router.post("/{excuse_id}/process")
async def process_excuse(
    excuse_id: str,
    body: ProcessExcuseRequest,
    user: Annotated[dict, Depends(require_sheikh)],
    excuse_service: Annotated[ExcuseService, Depends(get_excuse_service)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
):
    """
    Approve or reject an excuse.

    Approval marks the student excused for that day.
    """
    excuse = await excuse_service.get_excuse(excuse_id)
    await circle_service.ensure_sheikh_access(excuse["circleId"], user["_id"])
    excuse = await excuse_service.process_excuse(excuse_id, body.action, user["_id"])
    return success_response({"excuse": excuse})
