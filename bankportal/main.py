"""
FastAPI application entry point for the bank portal backend.

This module creates the FastAPI app instance and registers all routers.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bankportal.config import settings
from bankportal.db.client import get_service_role_client
from bankportal.routes.accounts import router as accounts_router
from bankportal.routes.admin import router as admin_router
from bankportal.routes.cards import router as cards_router
from bankportal.routes.health import router as health_router
from bankportal.routes.notifications import router as notifications_router
from bankportal.routes.profile import router as profile_router
from bankportal.routes.realtime import router as realtime_router
from bankportal.routes.table_editor import router as table_editor_router
from bankportal.routes.transactions import router as transactions_router
from bankportal.services.table_editor_service import verify_catalog
from bankportal.utils.errors import CatalogDriftError
from bankportal.utils.logging import DATE_FORMAT, LOG_FORMAT, resolve_level

# Configure logging
logging.basicConfig(
    level=resolve_level(settings.LOG_LEVEL),
    format=LOG_FORMAT,
    datefmt=DATE_FORMAT
)

logger = logging.getLogger(__name__)


def _get_cors_origins() -> list[str]:
    """
    Get allowed CORS origins based on environment.

    - ENVIRONMENT=production: Uses CORS_ALLOWED_ORIGINS (none allowed if unset)
    - Anything else: Allows all origins for local development

    Returns:
        List of allowed origin URLs, or ["*"] for development.
    """
    if settings.is_production():
        origins = settings.CORS_ALLOWED_ORIGINS
        if origins:
            logger.info(f"CORS configured for production with {len(origins)} allowed origins")
        else:
            logger.warning(
                "CORS_ALLOWED_ORIGINS not set in production. "
                "No web origins allowed. Set CORS_ALLOWED_ORIGINS for the web portal."
            )
        return origins

    logger.info(f"CORS configured for {settings.ENVIRONMENT}: allowing all origins")
    return ["*"]


async def check_table_catalog() -> None:
    """
    Compare the table editor catalog with the live schema.

    Skipped when TABLE_CATALOG_CHECK is off or no service-role key is
    configured. Drift aborts startup outside development.
    """
    if not settings.TABLE_CATALOG_CHECK:
        logger.info("Table catalog check disabled")
        return

    if not settings.has_service_role():
        logger.warning("Table catalog check skipped: SUPABASE_SERVICE_ROLE_KEY not configured")
        return

    try:
        await verify_catalog(get_service_role_client())
    except CatalogDriftError as e:
        if settings.is_development():
            logger.error(f"{e}")
            return
        raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    await check_table_catalog()
    yield


# Create FastAPI app
app = FastAPI(
    title="Bank Portal API",
    description="Data-access and admin backend for the bank customer portal",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


def _jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold exception instances that are not JSON serializable
    return [
        {key: (str(value) if key == "ctx" else value) for key, value in error.items()}
        for error in exc.errors()
    ]


# Custom validation error handler to log detailed errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log detailed validation errors and return them as 422."""
    logger.error(
        f"Validation error on {request.method} {request.url.path}: {exc.errors()}"
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "details": _jsonable_errors(exc),
        }
    )


# Configure CORS with environment-based origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=_get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health_router)
app.include_router(accounts_router)
app.include_router(transactions_router)
app.include_router(cards_router)
app.include_router(profile_router)
app.include_router(notifications_router)
app.include_router(realtime_router)
app.include_router(admin_router)
app.include_router(table_editor_router)

logger.info("FastAPI app initialized successfully")
