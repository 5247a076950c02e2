"""
Pydantic models for attendance and excuse requests.
"""

from typing import List
from pydantic import BaseModel, Field


class AttendanceRecordInput(BaseModel):
    studentId: str
    status: str = Field(..., description="present | late | absent | excused")


class SaveAttendanceRequest(BaseModel):
    """A day's attendance sheet; unlisted students default to absent."""
    date: str = Field(..., description="YYYY-MM-DD")
    records: List[AttendanceRecordInput] = Field(default_factory=list)


class SubmitExcuseRequest(BaseModel):
    circleId: str
    date: str = Field(..., description="YYYY-MM-DD")
    reason: str = Field(..., max_length=1000)


class ProcessExcuseRequest(BaseModel):
    action: str = Field(..., description="approved | rejected")
