"""
Pydantic models for profile, settings and goals requests.
"""

from typing import Optional
from pydantic import BaseModel, Field


class ProfileUpdateRequest(BaseModel):
    """Partial profile update; only provided fields change."""
    displayName: Optional[str] = Field(None, min_length=1, max_length=100)
    phoneNumber: Optional[str] = Field(None, max_length=20)
    photoURL: Optional[str] = Field(None, max_length=2048, description="Avatar URL in object storage")
    bio: Optional[str] = Field(None, max_length=500)


class SettingsUpdateRequest(BaseModel):
    language: Optional[str] = Field(None, description="ar | en")
    theme: Optional[str] = Field(None, description="light | dark")
    fontSize: Optional[str] = Field(None, description="small | medium | large")
    notifications: Optional[bool] = None


class GoalsUpdateRequest(BaseModel):
    """Daily and monthly page targets."""
    dailyMemoTarget: Optional[int] = Field(None, ge=0, le=604)
    dailyReviewTarget: Optional[int] = Field(None, ge=0, le=604)
    monthlyMemoTarget: Optional[int] = Field(None, ge=0, le=604)
    monthlyReviewTarget: Optional[int] = Field(None, ge=0, le=6040)


class FcmTokenRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=4096)
