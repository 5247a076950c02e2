"""
Pydantic models for messaging requests.
"""

from typing import Optional
from pydantic import BaseModel, Field


class OpenThreadRequest(BaseModel):
    otherUserId: str = Field(..., min_length=1)
    circleId: Optional[str] = None


class SendMessageRequest(BaseModel):
    # Length is checked by the service so the error carries its own code
    content: str
