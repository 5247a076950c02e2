"""
Auth services - profiles, teacher invites and provider error mapping.
"""

from halaqa.services.auth.profile_service import ProfileService, get_dashboard_route
from halaqa.services.auth.teacher_invite_service import TeacherInviteService
from halaqa.services.auth.auth_errors import auth_error_to_exception

__all__ = [
    "ProfileService",
    "TeacherInviteService",
    "get_dashboard_route",
    "auth_error_to_exception",
]
