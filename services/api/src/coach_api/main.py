"""FastAPI application factory and main entry point."""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from coach_shared.config import get_settings
from coach_shared.db.connection import get_db
from coach_shared.logging.config import configure_logging, get_logger

from .middleware import CORRELATION_ID_HEADER, CorrelationIdMiddleware, get_correlation_id
from .models.base import ErrorDetail, ErrorResponse
from .routes import admin_usage, health, subscriptions, usage_limits
from .services.exceptions import UsageLimitsError

logger = get_logger(__name__)

DB_INIT_MAX_RETRIES = 30
DB_INIT_RETRY_DELAY = 2  # seconds


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()

    logger.info(
        "Starting application",
        service=settings.service_name,
        version=settings.service_version,
        environment=settings.environment,
    )

    app.state.db_initialized = False
    for attempt in range(1, DB_INIT_MAX_RETRIES + 1):
        try:
            db = get_db()
            await db.connect()
            await db.create_tables()
            app.state.db_initialized = True
            logger.info("Database connection established and tables created")
            break
        except Exception as e:
            if attempt < DB_INIT_MAX_RETRIES:
                logger.warning(
                    "Database initialization failed, retrying",
                    attempt=attempt,
                    max_retries=DB_INIT_MAX_RETRIES,
                    retry_in_seconds=DB_INIT_RETRY_DELAY,
                    error=str(e),
                )
                await asyncio.sleep(DB_INIT_RETRY_DELAY)
            else:
                # Keep serving; requests needing storage fail with a storage error
                logger.error(
                    "Failed to initialize database",
                    attempts=DB_INIT_MAX_RETRIES,
                    error=str(e),
                )

    yield

    logger.info("Shutting down application")
    await get_db().close()


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error in the ``{"error": {...}}`` envelope."""
    app.add_exception_handler(UsageLimitsError, usage_limits_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    configure_logging(
        level=settings.logging.level,
        json_format=settings.logging.json_format,
        service_name=settings.service_name,
        service_version=settings.service_version,
        environment=settings.environment,
    )

    app = FastAPI(
        title="Leadcoach API",
        description="Leadership coaching backend: usage limits, entitlements and subscriptions",
        version=settings.service_version,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        openapi_url="/openapi.json" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # Add middleware (order matters - first added = last executed)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_ID_HEADER],
    )
    app.add_middleware(CorrelationIdMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router, tags=["Health"])
    app.include_router(usage_limits.router)
    app.include_router(admin_usage.router)
    app.include_router(subscriptions.router)

    return app


def _error_response(
    request: Request,
    status_code: int,
    message: object,
    details: list[ErrorDetail] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    correlation_id = get_correlation_id(request)
    response_headers = dict(headers or {})
    if correlation_id:
        response_headers[CORRELATION_ID_HEADER] = correlation_id
    body = ErrorResponse.create(
        code=status_code,
        message=message,
        correlation_id=correlation_id,
        details=details,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.to_content(),
        headers=response_headers,
    )


async def usage_limits_error_handler(request: Request, exc: UsageLimitsError) -> JSONResponse:
    """Handle quota subsystem errors (not found, bad action type, storage failure)."""
    if exc.status_code >= 500:
        logger.error(
            "Usage limits request failed",
            path=request.url.path,
            method=request.method,
            error=exc.message,
            cause=repr(exc.__cause__) if exc.__cause__ else None,
        )
    return _error_response(request, exc.status_code, exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions."""
    return _error_response(
        request,
        exc.status_code,
        exc.detail,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle request validation errors."""
    details = [
        ErrorDetail(
            field=".".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
            type=error["type"],
        )
        for error in exc.errors()
    ]
    return _error_response(request, 422, "Validation Error", details=details)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
    )
    return _error_response(request, 500, "Internal Server Error")


# Create the app instance
app = create_app()


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "coach_api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
        log_config=None,
    )


if __name__ == "__main__":
    run()
