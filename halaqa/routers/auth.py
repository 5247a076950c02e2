"""
FastAPI router for auth and onboarding endpoints.

Phone OTP and Google sign-in run in the client SDK; the resulting ID token
is sent as a bearer token and resolved here.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from common.auth import AuthProvider
from halaqa.dependencies import (
    get_auth_provider,
    get_profile_service,
    get_teacher_invite_service,
    require_token,
)
from halaqa.pipelines import auth as auth_pipelines
from halaqa.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    PasswordResetRequest,
    OnboardingRequest,
    TeacherInviteVerifyRequest,
    TeacherSignupRequest,
)
from halaqa.services.auth import ProfileService, TeacherInviteService
from common.utils import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register")
async def register(
    body: RegisterRequest,
    auth_provider: Annotated[AuthProvider, Depends(get_auth_provider)],
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
):
    """
    Register with email and password.

    Creates the Firebase account and a student profile.
    """
    result = await auth_pipelines.register_pipeline(
        auth_provider=auth_provider,
        profile_service=profile_service,
        email=body.email,
        password=body.password,
        display_name=body.displayName,
        phone_number=body.phoneNumber,
    )
    return success_response(result)


@router.post("/login")
async def login(
    body: LoginRequest,
    auth_provider: Annotated[AuthProvider, Depends(get_auth_provider)],
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
):
    """Sign in with email and password; returns Firebase tokens and the next route."""
    result = await auth_pipelines.login_pipeline(
        auth_provider=auth_provider,
        profile_service=profile_service,
        email=body.email,
        password=body.password,
    )
    return success_response(result)


@router.post("/password-reset")
async def password_reset(
    body: PasswordResetRequest,
    auth_provider: Annotated[AuthProvider, Depends(get_auth_provider)],
):
    await auth_pipelines.password_reset_pipeline(auth_provider, body.email)
    return success_response(message="If the account exists, a reset email has been sent")


@router.get("/session")
async def get_session(
    claims: Annotated[dict, Depends(require_token)],
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
):
    """Current user, whether onboarding is done, and where to go next."""
    result = await auth_pipelines.get_session_pipeline(profile_service, claims)
    return success_response(result)


@router.post("/onboarding")
async def complete_onboarding(
    body: OnboardingRequest,
    claims: Annotated[dict, Depends(require_token)],
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
):
    """Create a student profile for an account signed in with phone or Google."""
    result = await auth_pipelines.complete_onboarding_pipeline(
        profile_service=profile_service,
        claims=claims,
        data=body.model_dump(exclude_unset=True),
    )
    return success_response(result)


@router.post("/teacher-invites/verify")
async def verify_teacher_invite(
    body: TeacherInviteVerifyRequest,
    invite_service: Annotated[TeacherInviteService, Depends(get_teacher_invite_service)],
):
    """Check a teacher invite code before sign-up."""
    invite = await invite_service.verify_teacher_invite(body.code)
    return success_response(invite)


@router.post("/teacher-signup")
async def teacher_signup(
    body: TeacherSignupRequest,
    claims: Annotated[dict, Depends(require_token)],
    invite_service: Annotated[TeacherInviteService, Depends(get_teacher_invite_service)],
):
    """Redeem a teacher invite and create a sheikh profile."""
    data = body.model_dump(exclude={"code"}, exclude_unset=True)
    result = await auth_pipelines.teacher_signup_pipeline(
        invite_service=invite_service,
        claims=claims,
        code=body.code,
        data=data,
    )
    return success_response(result)
