"""
Halaqa FastAPI Application

Main entry point for the Halaqa API: Quran memorization circles with
attendance, progress logs, tasks, messaging and reports.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Common library imports
from common.auth import FirebaseAuth
from common.database import MongoDB
from common.i18n import I18nService
from common.utils import success_response

# App-specific imports
from halaqa.config import settings
from halaqa.database import ensure_indexes
from halaqa.dependencies import init_all_services
from halaqa.middleware.errors import register_exception_handlers
from halaqa.routers import all_routers

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Database and Translations
# =============================================================================
main_db = MongoDB()

locales_dir = Path(settings.LOCALES_DIR)
if not locales_dir.is_absolute():
    locales_dir = Path(__file__).parent / locales_dir

i18n_service = I18nService(
    locales_dir=str(locales_dir),
    default_language=settings.DEFAULT_LANGUAGE,
    supported_languages=settings.get_supported_languages(),
)


# =============================================================================
# Application Lifespan
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown tasks like database connections
    and service initialization.
    """
    logger.info("Starting Halaqa API...")
    settings.validate_required()

    await main_db.connect(
        uri=settings.MONGODB_URI,
        database_name=settings.MONGODB_DATABASE,
    )
    await ensure_indexes(main_db.db)

    auth_provider = FirebaseAuth(
        credentials_path=settings.FIREBASE_CREDENTIALS_PATH,
        project_id=settings.FIREBASE_PROJECT_ID,
        api_key=settings.FIREBASE_API_KEY,
    )

    init_all_services(
        db=main_db.db,
        settings=settings,
        auth_provider=auth_provider,
        i18n_service=i18n_service,
    )
    logger.info("All services initialized")

    yield

    logger.info("Shutting down Halaqa API...")
    await main_db.disconnect()


# =============================================================================
# FastAPI Application
# =============================================================================
app = FastAPI(
    title="Halaqa API",
    description="Quran memorization circle management",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.is_development() else None,
    redoc_url="/redoc" if settings.is_development() else None,
)

register_exception_handlers(app, i18n_service)

# =============================================================================
# CORS Middleware
# =============================================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# =============================================================================
# Include Routers (all under /api/v1 prefix)
# =============================================================================
API_PREFIX = "/api/v1"

for router in all_routers:
    app.include_router(router, prefix=API_PREFIX)


# =============================================================================
# Health Check Endpoint
# =============================================================================
@app.get("/health", tags=["Health"])
async def health():
    """
    Health check endpoint.

    Returns the status of the API and database connection.
    """
    return success_response({
        "status": "ok",
        "version": "1.0.0",
        "database": main_db.is_connected,
    })


# =============================================================================
# Run with Uvicorn
# =============================================================================
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development(),
    )
