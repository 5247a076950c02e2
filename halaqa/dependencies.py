"""
FastAPI dependencies for the Halaqa application.

Provides dependency injection for all services.
"""

from typing import Annotated, Optional, Dict, Any

from fastapi import Depends, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.auth import AuthProvider
from common.i18n import I18nService
from halaqa.config import Settings
from halaqa.middleware.auth import AuthMiddleware
from halaqa.services.account import AccountService
from halaqa.services.attendance import AttendanceService, ExcuseService
from halaqa.services.auth import ProfileService, TeacherInviteService
from halaqa.services.circles import CircleService, MembershipService
from halaqa.services.logs import LogService
from halaqa.services.messages import ThreadService
from halaqa.services.points import PointsService
from halaqa.services.reports import ReportService
from halaqa.services.tasks import TaskService


# ─────────────────────────────────────────────────────────────────
# Global service instances
# ─────────────────────────────────────────────────────────────────

# Auth
_auth_provider: Optional[AuthProvider] = None
_auth_middleware: Optional[AuthMiddleware] = None
_profile_service: Optional[ProfileService] = None
_teacher_invite_service: Optional[TeacherInviteService] = None

# i18n
_i18n_service: Optional[I18nService] = None

# Circles
_circle_service: Optional[CircleService] = None
_membership_service: Optional[MembershipService] = None

# Progress
_log_service: Optional[LogService] = None
_task_service: Optional[TaskService] = None
_points_service: Optional[PointsService] = None
_report_service: Optional[ReportService] = None

# Attendance
_attendance_service: Optional[AttendanceService] = None
_excuse_service: Optional[ExcuseService] = None

# Messaging
_thread_service: Optional[ThreadService] = None

# Account
_account_service: Optional[AccountService] = None


def init_all_services(
    db: AsyncIOMotorDatabase,
    settings: Settings,
    auth_provider: AuthProvider,
    i18n_service: I18nService,
) -> None:
    """
    Initialize all services with database connection.

    Called once at application startup.

    Args:
        db: MongoDB database connection
        settings: Application settings
        auth_provider: Identity provider (Firebase in production)
        i18n_service: Loaded translations
    """
    global _auth_provider, _auth_middleware, _profile_service, _teacher_invite_service
    global _i18n_service
    global _circle_service, _membership_service
    global _log_service, _task_service, _points_service, _report_service
    global _attendance_service, _excuse_service
    global _thread_service, _account_service

    use_transactions = settings.MONGODB_USE_TRANSACTIONS

    _auth_provider = auth_provider
    _i18n_service = i18n_service

    _profile_service = ProfileService(db=db)
    _teacher_invite_service = TeacherInviteService(db=db, use_transactions=use_transactions)
    _auth_middleware = AuthMiddleware(
        auth_provider=auth_provider,
        profile_service=_profile_service,
    )

    _circle_service = CircleService(db=db)
    _membership_service = MembershipService(db=db)

    _log_service = LogService(db=db, use_transactions=use_transactions)
    _task_service = TaskService(db=db)
    _points_service = PointsService(db=db)
    _report_service = ReportService(db=db)

    _attendance_service = AttendanceService(db=db, history_days=settings.ATTENDANCE_HISTORY_DAYS)
    _excuse_service = ExcuseService(
        db=db,
        attendance_service=_attendance_service,
        use_transactions=use_transactions,
    )

    _thread_service = ThreadService(
        db=db,
        thread_limit=settings.THREAD_LIST_LIMIT,
        message_limit=settings.THREAD_MESSAGE_LIMIT,
    )
    _account_service = AccountService(db=db, use_transactions=use_transactions)


# ─────────────────────────────────────────────────────────────────
# Service getters
# ─────────────────────────────────────────────────────────────────

def _not_initialized(name: str) -> RuntimeError:
    return RuntimeError(f"{name} not initialized. Call init_all_services first.")


def get_auth_provider() -> AuthProvider:
    if _auth_provider is None:
        raise _not_initialized("Auth provider")
    return _auth_provider


def get_auth_middleware() -> AuthMiddleware:
    if _auth_middleware is None:
        raise _not_initialized("Auth middleware")
    return _auth_middleware


def get_profile_service() -> ProfileService:
    if _profile_service is None:
        raise _not_initialized("Profile service")
    return _profile_service


def get_teacher_invite_service() -> TeacherInviteService:
    if _teacher_invite_service is None:
        raise _not_initialized("Teacher invite service")
    return _teacher_invite_service


def get_i18n_service() -> I18nService:
    if _i18n_service is None:
        raise _not_initialized("i18n service")
    return _i18n_service


def get_circle_service() -> CircleService:
    if _circle_service is None:
        raise _not_initialized("Circle service")
    return _circle_service


def get_membership_service() -> MembershipService:
    if _membership_service is None:
        raise _not_initialized("Membership service")
    return _membership_service


def get_log_service() -> LogService:
    if _log_service is None:
        raise _not_initialized("Log service")
    return _log_service


def get_task_service() -> TaskService:
    if _task_service is None:
        raise _not_initialized("Task service")
    return _task_service


def get_points_service() -> PointsService:
    if _points_service is None:
        raise _not_initialized("Points service")
    return _points_service


def get_report_service() -> ReportService:
    if _report_service is None:
        raise _not_initialized("Report service")
    return _report_service


def get_attendance_service() -> AttendanceService:
    if _attendance_service is None:
        raise _not_initialized("Attendance service")
    return _attendance_service


def get_excuse_service() -> ExcuseService:
    if _excuse_service is None:
        raise _not_initialized("Excuse service")
    return _excuse_service


def get_thread_service() -> ThreadService:
    if _thread_service is None:
        raise _not_initialized("Thread service")
    return _thread_service


def get_account_service() -> AccountService:
    if _account_service is None:
        raise _not_initialized("Account service")
    return _account_service


# ─────────────────────────────────────────────────────────────────
# Auth dependencies
# ─────────────────────────────────────────────────────────────────

async def require_token(
    request: Request,
    auth_middleware: Annotated[AuthMiddleware, Depends(get_auth_middleware)],
) -> Dict[str, Any]:
    """
    Dependency that requires a valid ID token, profile or not.

    Usage:
        @router.post("/onboarding")
        async def onboarding(claims: Annotated[dict, Depends(require_token)]):
            return {"uid": claims["uid"]}
    """
    return await auth_middleware.require_token(request)


async def require_auth(
    request: Request,
    auth_middleware: Annotated[AuthMiddleware, Depends(get_auth_middleware)],
) -> Dict[str, Any]:
    """Dependency that requires a signed-in user with a profile."""
    return await auth_middleware.require_profile(request)


async def require_sheikh(
    request: Request,
    auth_middleware: Annotated[AuthMiddleware, Depends(get_auth_middleware)],
) -> Dict[str, Any]:
    """Dependency that requires the sheikh role."""
    return await auth_middleware.require_sheikh(request)
