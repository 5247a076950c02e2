"""
Halaqa API routers.
"""

from halaqa.routers.auth import router as auth_router
from halaqa.routers.profile import router as profile_router
from halaqa.routers.circles import router as circles_router
from halaqa.routers.logs import router as logs_router
from halaqa.routers.tasks import router as tasks_router
from halaqa.routers.attendance import router as attendance_router
from halaqa.routers.excuses import router as excuses_router
from halaqa.routers.messages import router as messages_router
from halaqa.routers.reports import router as reports_router
from halaqa.routers.store import router as store_router

all_routers = [
    auth_router,
    profile_router,
    circles_router,
    logs_router,
    tasks_router,
    attendance_router,
    excuses_router,
    messages_router,
    reports_router,
    store_router,
]

__all__ = ["all_routers"]
