"""
CRA Request Workflow Service

FastAPI entry point. The app exposes the request lifecycle (drafts, status
changes, edits, re-notify) and the in-app notification bell; e-mail and
digest rows are only queued here and drained by the external mail sender.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config.settings import settings
from .api.routes import api_router
from .api.deps import reset_services
from .api.middleware import CorrelationIdMiddleware, register_error_handlers
from .repositories.mongo_client import create_indexes, close_connection, health_check
from .utils.logger import setup_logging, get_logger

setup_logging()
logger = get_logger(__name__)

APP_NAME = "CRA Request Workflow Service"
APP_VERSION = "1.0.0"
API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Ensure indexes on startup (one live draft per session relies on them); close Mongo on shutdown"""
    logger.info(f"Starting {APP_NAME} ({settings.environment})")
    try:
        create_indexes()
    except Exception as e:
        # The service still answers; draft dedup falls back to the advisory lock alone
        logger.error(f"Failed to create indexes: {e}", exc_info=True)

    yield

    reset_services()
    close_connection()
    logger.info(f"{APP_NAME} stopped")


def create_app() -> FastAPI:
    """Build the FastAPI application"""
    docs_enabled = settings.debug and not settings.is_production
    application = FastAPI(
        title=APP_NAME,
        description="CRA request lifecycle and notification dispatch",
        version=APP_VERSION,
        lifespan=lifespan,
        docs_url="/api/docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if docs_enabled else None,
    )

    # allow_credentials must be off when every origin is allowed
    allow_all = settings.cors_origins.strip() == "*"
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_origins_list,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-Id"],
    )
    application.add_middleware(CorrelationIdMiddleware)

    register_error_handlers(application)
    application.include_router(api_router, prefix=API_PREFIX)
    _add_service_routes(application, docs_enabled)
    return application


def _add_service_routes(app: FastAPI, docs_enabled: bool) -> None:
    """Unauthenticated health and info endpoints"""

    @app.get("/health", tags=["Health"])
    async def health():
        mongo = health_check()
        return {
            "status": "healthy" if mongo.get("status") == "healthy" else "degraded",
            "version": APP_VERSION,
            "environment": settings.environment,
            "mongo": mongo,
        }

    @app.get("/", tags=["Health"])
    async def root():
        return {
            "name": APP_NAME,
            "version": APP_VERSION,
            "api": API_PREFIX,
            "docs": "/api/docs" if docs_enabled else None,
        }


app = create_app()
