"""
FastAPI router for attendance endpoints.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from halaqa.dependencies import (
    require_auth,
    require_sheikh,
    get_attendance_service,
    get_circle_service,
    get_membership_service,
)
from halaqa.schemas.attendance import SaveAttendanceRequest
from halaqa.services.attendance import AttendanceService, calculate_stats
from halaqa.services.circles import CircleService, MembershipService
from common.utils import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.put("/circles/{circle_id}")
async def save_attendance(
    circle_id: str,
    body: SaveAttendanceRequest,
    user: Annotated[dict, Depends(require_sheikh)],
    attendance_service: Annotated[AttendanceService, Depends(get_attendance_service)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
):
    """
    Save a day's attendance sheet.

    Approved students missing from the sheet and not yet recorded that day
    are marked absent.
    """
    await circle_service.ensure_sheikh_access(circle_id, user["_id"])
    result = await attendance_service.save_attendance(
        circle_id=circle_id,
        date=body.date,
        records=[record.model_dump() for record in body.records],
        recorded_by=user["_id"],
    )
    return success_response(result)


@router.get("/circles/{circle_id}")
async def get_daily_attendance(
    circle_id: str,
    date: Annotated[str, Query(description="YYYY-MM-DD")],
    user: Annotated[dict, Depends(require_sheikh)],
    attendance_service: Annotated[AttendanceService, Depends(get_attendance_service)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
):
    await circle_service.ensure_sheikh_access(circle_id, user["_id"])
    records = await attendance_service.fetch_daily_attendance(circle_id, date)
    return success_response({"date": date, "records": records})


@router.get("/circles/{circle_id}/students/{student_id}")
async def get_student_attendance(
    circle_id: str,
    student_id: str,
    user: Annotated[dict, Depends(require_sheikh)],
    attendance_service: Annotated[AttendanceService, Depends(get_attendance_service)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
    days: Optional[int] = Query(None, ge=1, le=365),
):
    await circle_service.ensure_sheikh_access(circle_id, user["_id"])
    summary = await attendance_service.get_student_summary(student_id, circle_id=circle_id, days=days)
    return success_response(summary)


@router.get("/me")
async def get_my_attendance(
    user: Annotated[dict, Depends(require_auth)],
    attendance_service: Annotated[AttendanceService, Depends(get_attendance_service)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
    days: Optional[int] = Query(None, ge=1, le=365),
):
    """The student's recent attendance in their active circle, with stats."""
    circle = await membership_service.get_active_circle(user["_id"])
    if not circle:
        return success_response({"records": [], "stats": calculate_stats([])})

    summary = await attendance_service.get_student_summary(user["_id"], circle_id=circle["id"], days=days)
    return success_response(summary)
