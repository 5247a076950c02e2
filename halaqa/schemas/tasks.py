"""
Pydantic models for task requests.
"""

from typing import Optional
from pydantic import BaseModel, Field

from halaqa.schemas.logs import LogAmount


class AssignTaskRequest(BaseModel):
    """Request body for assigning a task."""
    circleId: str
    studentId: str
    type: str = Field(..., description="memorization | revision")
    target: str = Field(..., min_length=1, max_length=200, description="What to cover")
    dueDate: str = Field(..., description="YYYY-MM-DD")
    notes: Optional[str] = Field(None, max_length=1000)


class SubmitTaskRequest(BaseModel):
    amount: LogAmount
    date: Optional[str] = Field(None, description="YYYY-MM-DD, defaults to today")
    notes: Optional[str] = Field(None, max_length=1000)
