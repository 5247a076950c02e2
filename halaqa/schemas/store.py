"""
Pydantic models for the rewards store.
"""

from typing import Optional
from pydantic import BaseModel, Field


class PurchaseRequest(BaseModel):
    rewardId: str = Field(..., min_length=1)


class EquipRequest(BaseModel):
    type: str = Field(..., description="badge | frame | avatar")
    itemId: Optional[str] = Field(None, description="None clears the slot")
