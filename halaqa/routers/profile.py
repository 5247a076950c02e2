"""
FastAPI router for profile, settings, goals and account endpoints.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from common.auth import AuthProvider
from halaqa.dependencies import (
    require_auth,
    get_auth_provider,
    get_profile_service,
    get_log_service,
    get_account_service,
)
from halaqa.pipelines.account import delete_account_pipeline
from halaqa.schemas.profile import (
    ProfileUpdateRequest,
    SettingsUpdateRequest,
    GoalsUpdateRequest,
    FcmTokenRequest,
)
from halaqa.services.account import AccountService
from halaqa.services.auth import ProfileService, get_dashboard_route
from halaqa.services.logs import LogService
from common.utils import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("")
async def get_profile(user: Annotated[dict, Depends(require_auth)]):
    return success_response({
        "profile": user,
        "redirectTo": get_dashboard_route(user.get("role")),
    })


@router.patch("")
async def update_profile(
    body: ProfileUpdateRequest,
    user: Annotated[dict, Depends(require_auth)],
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
):
    """
    Update the current user's profile.

    Only provided fields will be updated (partial update).
    """
    profile = await profile_service.update_profile(user["_id"], body.model_dump(exclude_unset=True))
    return success_response({"profile": profile})


@router.patch("/settings")
async def update_settings(
    body: SettingsUpdateRequest,
    user: Annotated[dict, Depends(require_auth)],
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
):
    settings = await profile_service.update_settings(user["_id"], body.model_dump(exclude_unset=True))
    return success_response({"settings": settings})


@router.get("/goals")
async def get_goals(
    user: Annotated[dict, Depends(require_auth)],
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
):
    goals = await profile_service.get_goals(user["_id"])
    return success_response({"goals": goals})


@router.patch("/goals")
async def update_goals(
    body: GoalsUpdateRequest,
    user: Annotated[dict, Depends(require_auth)],
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
):
    goals = await profile_service.update_goals(user["_id"], body.model_dump(exclude_unset=True))
    return success_response({"goals": goals})


@router.post("/fcm-token")
async def save_fcm_token(
    body: FcmTokenRequest,
    user: Annotated[dict, Depends(require_auth)],
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
):
    """Register this device for push notifications."""
    await profile_service.save_fcm_token(user["_id"], body.token)
    return success_response()


@router.get("/stats")
async def get_my_stats(
    user: Annotated[dict, Depends(require_auth)],
    log_service: Annotated[LogService, Depends(get_log_service)],
):
    """Progress statistics over the current user's approved logs."""
    stats = await log_service.get_student_stats(user["_id"])
    return success_response(stats)


@router.delete("")
async def delete_account(
    user: Annotated[dict, Depends(require_auth)],
    account_service: Annotated[AccountService, Depends(get_account_service)],
    auth_provider: Annotated[AuthProvider, Depends(get_auth_provider)],
):
    """
    Delete the current account.

    Removes memberships, co-sheikh entries, the profile and the Firebase user.
    """
    summary = await delete_account_pipeline(
        account_service=account_service,
        auth_provider=auth_provider,
        uid=user["_id"],
    )
    return success_response(summary)
