"""
Pydantic models for circle and membership requests.
"""

from typing import Optional
from pydantic import BaseModel, Field, EmailStr


class CreateCircleRequest(BaseModel):
    """Request body for creating a circle."""
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    schedule: Optional[str] = Field(None, max_length=200, description="Free text, e.g. after Maghrib")


class UpdateCircleRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    schedule: Optional[str] = Field(None, max_length=200)


class JoinCircleRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=16, description="Circle invite code")


class AddCoSheikhRequest(BaseModel):
    email: EmailStr
    promote: bool = Field(default=False, description="Give the account the sheikh role if it lacks it")


class MemberRoleRequest(BaseModel):
    role: str = Field(..., description="student | assistant")
