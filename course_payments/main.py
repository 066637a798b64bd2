"""Course Payments: FastAPI application entry point."""

import signal
import uuid
from contextlib import asynccontextmanager

# CRITICAL ORDER: configure_structlog MUST be called before all other app imports
# (structlog caches the processor chain on first use).
from course_payments.core.logging import configure_structlog
from course_payments.core.config import get_settings as _get_settings_early

_early_settings = _get_settings_early()
configure_structlog(
    log_level="DEBUG" if _early_settings.debug else "INFO",
    json_logs=not _early_settings.debug,
)

import structlog

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from course_payments.api.routes import api_router
from course_payments.core.config import get_settings, validate_payment_settings
from course_payments.core.exceptions import PaymentsError
from course_payments.db import close_db, init_db
from course_payments.db.seed import seed_demo_courses
from course_payments.middleware.correlation import (
    get_correlation_id,
    setup_correlation_middleware,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # SIGTERM flips this so the health check returns 503 while draining
    app.state.shutting_down = False

    def handle_sigterm(signum, frame):
        app.state.shutting_down = True
        logger.info("sigterm_received", action="health_check_503_draining_connections")

    signal.signal(signal.SIGTERM, handle_sigterm)

    settings = get_settings()
    logger.info("startup_begin", app_name=settings.app_name, environment=settings.environment)

    validate_payment_settings(settings)
    if not settings.webhook_signature_required:
        logger.warning("stripe_webhook_secret_missing", mode="unsigned_webhooks_dev_only")
    logger.info("payment_settings_validated")

    app.state.db = await init_db(settings)
    logger.info("db_initialized")

    if not settings.is_production:
        await seed_demo_courses(app.state.db.session_factory)
        logger.info("demo_courses_seeded")

    yield

    logger.info("shutdown_begin")
    await close_db(app.state.db)
    logger.info("shutdown_complete")


def _error_response(status_code: int, message: str, debug_id: str, retryable: bool = False) -> JSONResponse:
    content = {"ok": False, "error": message, "debug_id": debug_id}
    if retryable:
        content["retryable"] = True
    return JSONResponse(status_code=status_code, content=content)


async def payments_exception_handler(request: Request, exc: PaymentsError) -> JSONResponse:
    """Render service errors in the stable ``{ok: false, error}`` envelope."""
    debug_id = str(uuid.uuid4())
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "payments_error",
        status_code=exc.status_code,
        debug_id=debug_id,
        error_code=exc.code,
        detail=exc.message,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        user_id=getattr(request.state, "user_id", None),
    )
    return _error_response(exc.status_code, exc.message, debug_id, exc.retryable)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are InvalidArgument, not 422."""
    debug_id = str(uuid.uuid4())
    logger.info("request_validation_failed", debug_id=debug_id, path=request.url.path, errors=str(exc.errors()))
    return _error_response(400, "Invalid request body", debug_id)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Global exception handler for HTTPException.

    Routing misses are logged at info; only 5xx is an error.
    """
    debug_id = str(uuid.uuid4())
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "http_exception",
        status_code=exc.status_code,
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        detail=exc.detail,
    )
    return _error_response(exc.status_code, str(exc.detail), debug_id)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled errors.

    Logs full exception with traceback, returns generic 500 to client.
    """
    debug_id = str(uuid.uuid4())
    logger.error(
        "unhandled_exception",
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        user_id=getattr(request.state, "user_id", None),
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )
    return _error_response(500, "Internal server error", debug_id)


def install_exception_handlers(app: FastAPI) -> None:
    app.exception_handler(PaymentsError)(payments_exception_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(HTTPException)(http_exception_handler)
    app.exception_handler(Exception)(generic_exception_handler)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Course checkout, Stripe webhooks and enrollment fulfillment",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Correlation ID middleware (runs first on incoming requests)
    setup_correlation_middleware(app)

    install_exception_handlers(app)

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "course_payments.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
