import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1 import forms, submissions
from app.core.config import Settings, settings
from app.core.errors import register_exception_handlers
from app.core.logging import setup_logging
from app.core.middleware import RequestIdMiddleware
from app.db.session import Database
from app.forms.registry import build_registry
from app.services.notification_service import Notifier, create_notifier
from app.services.submission_service import SubmissionHandler
from app.services.submission_store import SubmissionStore
from app.services.upload_service import LocalFileSink

logger = logging.getLogger(__name__)


# =============================================================================
# OpenAPI Tags Metadata
# =============================================================================
tags_metadata = [
    {
        "name": "submissions",
        "description": "**Form submissions** - Contact messages, writer applications and generic requests. Multipart posts may carry one document.",
    },
    {
        "name": "forms",
        "description": "**Form definitions** - Field rules the static site uses for client-side validation.",
    },
]


def create_app(
    app_settings: Optional[Settings] = None, notifier: Optional[Notifier] = None
) -> FastAPI:
    """
    Build the intake API.

    `notifier` overrides the channel chosen by NOTIFICATION_CHANNEL; tests use
    it to capture admin notifications.
    """
    app_settings = app_settings or settings
    setup_logging(app_settings.LOG_DIR, app_settings.LOG_LEVEL)

    registry = build_registry(
        contact_email_required=app_settings.CONTACT_EMAIL_REQUIRED,
        allowed_extensions=app_settings.ALLOWED_UPLOAD_EXTENSIONS,
        max_upload_bytes=app_settings.MAX_UPLOAD_BYTES,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events"""
        logger.info(f"Starting {app_settings.PROJECT_NAME} v{app_settings.VERSION}")
        logger.info(f"Environment: {app_settings.ENVIRONMENT}")
        logger.info(f"Notification channel: {app_settings.NOTIFICATION_CHANNEL}")

        database = Database(
            app_settings.DATABASE_URL,
            pool_size=app_settings.DB_POOL_SIZE,
            max_overflow=app_settings.DB_MAX_OVERFLOW,
            pool_pre_ping=app_settings.DB_POOL_PRE_PING,
            pool_timeout=app_settings.DB_POOL_TIMEOUT,
            connect_timeout=app_settings.DB_CONNECT_TIMEOUT,
            statement_timeout=app_settings.PERSISTENCE_TIMEOUT_SECONDS,
        )
        # Refuse to serve when storage is unreachable
        database.connect()

        app.state.database = database
        app.state.submission_handler = SubmissionHandler(
            store=SubmissionStore(database),
            notifier=notifier or create_notifier(app_settings),
            sink=LocalFileSink(app_settings.UPLOAD_DIR),
            registry=registry,
            notification_timeout=app_settings.NOTIFICATION_TIMEOUT_SECONDS,
            project_name=app_settings.PROJECT_NAME,
        )

        yield

        logger.info("Shutting down...")
        app.state.submission_handler = None
        database.dispose()

    app = FastAPI(
        title=app_settings.PROJECT_NAME,
        version=app_settings.VERSION,
        description="""
## NoteEase Intake API

Receives the public contact, writer application and request forms of the
NoteEase site, stores every submission and notifies the site admin.
        """,
        openapi_tags=tags_metadata,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url=f"{app_settings.API_PREFIX}/openapi.json",
    )

    app.state.settings = app_settings
    app.state.form_registry = registry
    app.state.submission_rate_limit = app_settings.SUBMISSION_RATE_LIMIT_PER_MINUTE
    app.state.submission_handler = None

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.ALLOWED_ORIGINS,
        allow_credentials=False,
        allow_methods=app_settings.ALLOWED_METHODS,
        allow_headers=app_settings.ALLOWED_HEADERS,
        expose_headers=["X-Request-ID"],
    )

    # Request ID Tracing
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)

    app.include_router(
        submissions.router, prefix=app_settings.API_PREFIX, tags=["submissions"]
    )
    app.include_router(forms.router, prefix=app_settings.API_PREFIX, tags=["forms"])

    @app.get(
        "/health",
        summary="Health check",
        description="Returns service health metadata for monitoring and uptime checks.",
    )
    async def health_check():
        """Health check endpoint"""
        database = getattr(app.state, "database", None)
        database_ok = database is not None and await asyncio.to_thread(database.ping)
        body = {
            "status": "healthy" if database_ok else "degraded",
            "version": app_settings.VERSION,
            "environment": app_settings.ENVIRONMENT,
            "database": "ok" if database_ok else "unavailable",
        }
        return JSONResponse(status_code=200 if database_ok else 503, content=body)

    @app.get(
        "/",
        summary="API root",
        description="Returns basic API metadata and links to documentation and health endpoints.",
    )
    async def root():
        """Root endpoint with API info"""
        return {
            "name": app_settings.PROJECT_NAME,
            "version": app_settings.VERSION,
            "docs": "/docs",
            "health": "/health",
            "forms": f"{app_settings.API_PREFIX}/forms",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
