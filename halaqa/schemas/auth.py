"""
Pydantic models for auth and onboarding requests.
"""

from typing import Optional
from pydantic import BaseModel, Field, EmailStr


class RegisterRequest(BaseModel):
    """Request body for email/password registration."""
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    displayName: str = Field(..., min_length=1, max_length=100)
    phoneNumber: Optional[str] = Field(None, max_length=20, description="E.164, e.g. +9665XXXXXXXX")


class LoginRequest(BaseModel):
    """Request body for email/password login."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class PasswordResetRequest(BaseModel):
    email: EmailStr


class OnboardingRequest(BaseModel):
    """Profile details collected after phone or Google sign-in."""
    displayName: str = Field(..., min_length=1, max_length=100)
    phoneNumber: Optional[str] = Field(None, max_length=20)
    photoURL: Optional[str] = Field(None, max_length=2048)


class TeacherInviteVerifyRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=32)


class TeacherSignupRequest(BaseModel):
    """Redeem a teacher invite for the signed-in account."""
    code: str = Field(..., min_length=1, max_length=32)
    displayName: str = Field(..., min_length=1, max_length=100)
    phoneNumber: Optional[str] = Field(None, max_length=20)
    photoURL: Optional[str] = Field(None, max_length=2048)
