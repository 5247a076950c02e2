"""
Attendance services - daily sheets, history and absence excuses.
"""

from halaqa.services.attendance.attendance_service import (
    AttendanceService,
    attendance_id,
    calculate_stats,
)
from halaqa.services.attendance.excuse_service import ExcuseService

__all__ = [
    "AttendanceService",
    "ExcuseService",
    "attendance_id",
    "calculate_stats",
]
