"""
Pydantic models for progress log requests.
"""

from typing import Optional
from pydantic import BaseModel, Field


class LogAmount(BaseModel):
    """How much was memorized or revised."""
    pages: float = Field(default=0, ge=0, le=604)
    surah: Optional[str] = Field(None, max_length=100)
    ayahFrom: Optional[int] = Field(None, ge=1)
    ayahTo: Optional[int] = Field(None, ge=1)


class CreateLogRequest(BaseModel):
    type: str = Field(..., description="memorization | revision")
    amount: LogAmount
    date: Optional[str] = Field(None, description="YYYY-MM-DD, defaults to today")
    notes: Optional[str] = Field(None, max_length=1000)


class UpdateLogNotesRequest(BaseModel):
    notes: str = Field(..., max_length=1000)


class ReviewLogRequest(BaseModel):
    action: str = Field(..., description="approve | reject")
    notes: Optional[str] = Field(None, max_length=1000)
