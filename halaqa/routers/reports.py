"""
FastAPI router for circle report endpoints.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from halaqa.dependencies import require_sheikh, get_report_service, get_circle_service
from halaqa.services.circles import CircleService
from halaqa.services.reports import ReportService, export_to_csv
from common.utils import success_response, today_utc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


def _report_month(year: Optional[int], month: Optional[int]) -> tuple:
    today = today_utc()
    return year or today.year, month or today.month


@router.get("/circles/{circle_id}")
async def get_circle_report(
    circle_id: str,
    user: Annotated[dict, Depends(require_sheikh)],
    report_service: Annotated[ReportService, Depends(get_report_service)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
):
    """Monthly report for a circle; defaults to the current month."""
    await circle_service.ensure_sheikh_access(circle_id, user["_id"])
    year, month = _report_month(year, month)
    report = await report_service.get_circle_report(circle_id, year, month)
    return success_response(report)


@router.get("/circles/{circle_id}/csv")
async def download_circle_report(
    circle_id: str,
    user: Annotated[dict, Depends(require_sheikh)],
    report_service: Annotated[ReportService, Depends(get_report_service)],
    circle_service: Annotated[CircleService, Depends(get_circle_service)],
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
):
    """Student ranking for the month as a CSV download."""
    await circle_service.ensure_sheikh_access(circle_id, user["_id"])
    year, month = _report_month(year, month)
    report = await report_service.get_circle_report(circle_id, year, month)

    return Response(
        content=export_to_csv(report["allStudentStats"]).encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f"attachment; filename=report-{circle_id}-{report['month']}.csv"
        },
    )
