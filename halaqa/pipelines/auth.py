"""
Auth pipeline functions.

Sign-in itself happens against Firebase; these functions tie the identity
to the profile stored in MongoDB and tell the client where to go next.
"""

import logging
from typing import Optional, Dict, Any

from common.auth import AuthProvider, AuthProviderError
from halaqa.services.auth.auth_errors import auth_error_to_exception
from halaqa.services.auth.profile_service import ProfileService, get_dashboard_route
from halaqa.services.auth.teacher_invite_service import TeacherInviteService

logger = logging.getLogger(__name__)

ONBOARDING_ROUTE = "/onboarding"


def _session_payload(uid: str, profile: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "uid": uid,
        "hasProfile": profile is not None,
        "role": profile.get("role") if profile else None,
        "redirectTo": get_dashboard_route(profile.get("role")) if profile else ONBOARDING_ROUTE,
    }


async def get_session_pipeline(
    profile_service: ProfileService,
    claims: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Resolve the current session from verified token claims.

    Returns:
        dict with uid, hasProfile, role, redirectTo and profile
    """
    uid = claims["uid"]
    profile = await profile_service.get_profile(uid)

    result = _session_payload(uid, profile)
    result["profile"] = profile
    return result


async def register_pipeline(
    auth_provider: AuthProvider,
    profile_service: ProfileService,
    email: str,
    password: str,
    display_name: str,
    phone_number: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create a Firebase account and its student profile.

    Args:
        auth_provider: Identity provider
        profile_service: For the profile document
        email: Account email
        password: Account password
        display_name: Shown to sheikhs and other students
        phone_number: Optional E.164 phone number

    Returns:
        dict with uid, profile and redirectTo
    """
    try:
        uid = await auth_provider.create_user(
            email=email,
            password=password,
            display_name=display_name,
            phone_number=phone_number,
        )
    except AuthProviderError as e:
        raise auth_error_to_exception(e)

    profile = await profile_service.create_user_profile(uid, {
        "email": email,
        "displayName": display_name,
        "phoneNumber": phone_number,
        "role": "student",
    })

    logger.info(f"Registered user {uid}")
    return {"uid": uid, "profile": profile, "redirectTo": get_dashboard_route("student")}


async def login_pipeline(
    auth_provider: AuthProvider,
    profile_service: ProfileService,
    email: str,
    password: str,
) -> Dict[str, Any]:
    """
    Sign in with email and password.

    Returns:
        Firebase tokens plus the session payload (hasProfile, role,
        redirectTo)
    """
    try:
        tokens = await auth_provider.sign_in_with_password(email, password)
    except AuthProviderError as e:
        raise auth_error_to_exception(e)

    profile = await profile_service.get_profile(tokens["uid"])

    return {
        "idToken": tokens["idToken"],
        "refreshToken": tokens["refreshToken"],
        "expiresIn": tokens["expiresIn"],
        **_session_payload(tokens["uid"], profile),
    }


async def password_reset_pipeline(auth_provider: AuthProvider, email: str) -> None:
    try:
        await auth_provider.send_password_reset(email)
    except AuthProviderError as e:
        raise auth_error_to_exception(e)


async def complete_onboarding_pipeline(
    profile_service: ProfileService,
    claims: Dict[str, Any],
    data: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Create the student profile for an account that signed in with phone or
    Google and has no profile yet.
    """
    uid = claims["uid"]
    fields = {
        "email": claims.get("email"),
        "phoneNumber": claims.get("phone_number"),
        "photoURL": claims.get("picture"),
        **{key: value for key, value in data.items() if value is not None},
        "role": "student",
    }
    profile = await profile_service.create_user_profile(uid, fields)
    return {"profile": profile, "redirectTo": get_dashboard_route("student")}


async def teacher_signup_pipeline(
    invite_service: TeacherInviteService,
    claims: Dict[str, Any],
    code: str,
    data: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Redeem a teacher invite for the signed-in account.

    Returns:
        dict with profile and redirectTo
    """
    profile = {
        "email": claims.get("email"),
        "phoneNumber": claims.get("phone_number"),
        "photoURL": claims.get("picture"),
        **{key: value for key, value in data.items() if value is not None},
    }
    fields = await invite_service.create_teacher_profile(claims["uid"], code, profile)
    return {"profile": fields, "redirectTo": get_dashboard_route("sheikh")}
