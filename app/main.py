from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pathlib import Path
from typing import Optional
import logging
import structlog
import time

from app.api.v1.router import api_router
from app.middleware.errors import install_error_handlers
from app.middleware.rate_limit import setup_rate_limiting
from app.utils.pagination import PAGINATION_HEADERS
from core.cache import build_cache
from core.config import Settings, get_settings
from core.database import create_db_engine, create_session_factory, init_models
from services.uploads import ImageStore


def configure_logging(settings: Settings) -> None:
    """Route stdlib logging through structlog's JSON renderer."""
    logging.basicConfig(
        format="%(message)s",
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Get structured logger
logger = structlog.get_logger()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the Evently API application.

    Args:
        settings: Application settings (defaults to get_settings())

    Returns:
        FastAPI: application with database pool, cache, middleware and routes
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Event management REST API: events, categories, reviews and notifications"
    )

    # Shared resources, one instance per application
    engine = create_db_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.cache = build_cache(settings)
    app.state.image_store = ImageStore.from_settings(settings)

    # Create tables if they don't exist
    try:
        init_models(engine)
        logger.info("database_tables_created", status="success")
    except Exception as e:
        logger.warning("database_table_creation_warning", error=str(e))

    setup_rate_limiting(app, settings)
    install_error_handlers(app, settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Accept"],
        expose_headers=PAGINATION_HEADERS,
        max_age=86400,
    )

    @app.middleware("http")
    async def add_security_headers(request, call_next):
        response = await call_next(request)

        # Security headers
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response

    @app.middleware("http")
    async def request_logging_middleware(request, call_next):
        """
        Log all API requests with structured logging.

        Logs request details, response status, and execution time.
        """
        start_time = time.time()

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                duration_ms=round(duration_ms, 2),
                exc_info=True
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2)
        )
        return response

    # Uploaded images
    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount(settings.UPLOAD_URL_PREFIX, StaticFiles(directory=upload_dir), name="uploads")

    # Include API router
    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get(settings.API_PREFIX)
    async def api_root():
        return {
            "message": f"{settings.APP_NAME} API",
            "version": settings.APP_VERSION,
            "docs": "/docs",
        }

    @app.on_event("shutdown")
    def dispose_engine():
        engine.dispose()
        logger.info("server_shutdown", status="pool_disposed")

    logger.info("app_created", environment=settings.ENVIRONMENT, cache_backend=settings.CACHE_BACKEND)
    return app


app = create_app()
