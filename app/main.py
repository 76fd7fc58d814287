"""
FastAPI application entry point.
Main application setup and configuration.
"""

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from pathlib import Path
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from pydantic import ValidationError as PydanticValidationError
import logging

from app.config import settings
from app.database import check_database_connection, close_db_connection, create_tables
from app.routers import (
    admin_router,
    auth_router,
    currency_router,
    images_router,
    properties_router
)
from app.services.currency import CurrencyRateProvider
from app.services.error_handler import ErrorReporter, REQUEST_ID_HEADER
from app.utils.dependencies import get_error_reporter
from app.utils.exceptions import APIException

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    if not settings.is_production:
        await create_tables()
    elif not await check_database_connection():
        logger.error("Failed to connect to database on startup")

    yield

    # Shutdown
    logger.info("Shutting down application")
    app.state.error_reporter.close()
    await app.state.rate_provider.close()
    await close_db_connection()


def register_exception_handlers(app: FastAPI) -> None:
    """Route every failure through the application's error reporter."""

    @app.exception_handler(APIException)
    async def api_exception_handler(request: Request, exc: APIException):
        return get_error_reporter(request).handle_api_exception(exc, request)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return get_error_reporter(request).handle_validation_error(exc.errors(), request)

    @app.exception_handler(PydanticValidationError)
    async def pydantic_validation_exception_handler(request: Request, exc: PydanticValidationError):
        return get_error_reporter(request).handle_validation_error(exc.errors(), request)

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        return get_error_reporter(request).handle_database_error(exc, request)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return get_error_reporter(request).handle_http_exception(exc, request)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        return get_error_reporter(request).handle_unexpected_error(exc, request)


def create_app() -> FastAPI:
    """Build the application with its own error reporter and rate provider."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="""
    Backend for a GHS-based real-estate marketplace.

    ## Features

    * **Listings**: Multi-step creation, partial updates and archiving
    * **Moderation**: Approve, reject or request changes; assign agents; soft delete and restore
    * **Images**: Uploads against a property or a staging id, validated with Pillow
    * **Currency**: Live GHS rates with fallback and display formatting for diaspora buyers

    ## Authentication

    Use `/auth/login` to obtain a JWT token, then send it in the Authorization
    header as `Bearer <token>`.
    """,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "Authentication", "description": "Accounts and token management"},
            {"name": "Properties", "description": "Listing management and search"},
            {"name": "Images", "description": "Property image upload and management"},
            {"name": "Admin", "description": "Moderation and verification"},
            {"name": "Currency", "description": "Exchange rates and price formatting"},
            {"name": "Health", "description": "System health"}
        ],
        lifespan=lifespan,
    )

    app.state.error_reporter = ErrorReporter(max_log_size=settings.error_log_size)
    app.state.rate_provider = CurrencyRateProvider(
        settings.currency_rates_url,
        timeout=settings.currency_rates_timeout,
        ttl_seconds=settings.currency_rates_ttl_seconds
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    register_exception_handlers(app)

    # Include API routers
    app.include_router(auth_router)
    app.include_router(properties_router)
    app.include_router(images_router)
    app.include_router(admin_router)
    app.include_router(currency_router)

    media_dir = Path(settings.media_dir)
    media_dir.mkdir(parents=True, exist_ok=True)
    app.mount(settings.media_url, StaticFiles(directory=media_dir), name="media")

    @app.get("/health", tags=["Health"])
    async def health_check():
        """
        Health check endpoint with database connectivity test.
        Used by Docker health checks and load balancers.
        """
        if not await check_database_connection():
            raise HTTPException(status_code=503, detail="Database connection failed")

        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
            "database": "connected"
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
