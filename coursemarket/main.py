"""coursemarket API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from coursemarket.admin.router import router as admin_router
from coursemarket.admin.service import AdminService
from coursemarket.auth.repository import UserRepository
from coursemarket.auth.router import router as auth_router
from coursemarket.auth.service import AuthService
from coursemarket.config import Settings, get_settings
from coursemarket.core.context import get_request_id
from coursemarket.core.database import init_async_cassandra, shutdown_async_cassandra
from coursemarket.core.exceptions import AppError
from coursemarket.core.logging import configure_structlog, get_logger
from coursemarket.core.middleware import RequestContextMiddleware
from coursemarket.courses.repository import CourseRepository, LectureRepository
from coursemarket.courses.router import router_courses, router_lectures
from coursemarket.courses.service import CourseService
from coursemarket.entitlements.gateway import StripeGateway
from coursemarket.entitlements.repository import EntitlementRepository, PaymentRepository
from coursemarket.entitlements.router import router as entitlements_router
from coursemarket.entitlements.service import EntitlementService
from coursemarket.health import router as health_router
from coursemarket.progress.repository import ProgressRepository
from coursemarket.progress.router import router as progress_router
from coursemarket.progress.service import ProgressService
from coursemarket.storage.service import FirebaseStorageService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


def build_services(app: FastAPI, session, settings: Settings) -> None:
    """Construct repositories, clients and services onto ``app.state``."""
    keyspace = settings.cassandra_keyspace

    users = UserRepository(session, keyspace)
    courses = CourseRepository(session, keyspace)
    lectures = LectureRepository(session, keyspace)
    progress = ProgressRepository(session, keyspace)
    payments = PaymentRepository(session, keyspace)
    entitlements = EntitlementRepository(session, keyspace)

    storage = FirebaseStorageService(settings)
    gateway = StripeGateway(settings)

    app.state.auth_service = AuthService(users, settings)
    app.state.course_service = CourseService(courses, lectures, users)
    app.state.entitlement_service = EntitlementService(
        users=users,
        courses=courses,
        payments=payments,
        entitlements=entitlements,
        gateway=gateway,
        settings=settings,
    )
    app.state.progress_service = ProgressService(progress, lectures)
    app.state.admin_service = AdminService(
        courses=courses,
        lectures=lectures,
        users=users,
        progress=progress,
        storage=storage,
    )
    logger.info(
        "services_initialized",
        storage_configured=settings.firebase_configured,
        payments_configured=settings.stripe_configured,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    try:
        session = await init_async_cassandra()
        app.state.cassandra_session = session
        logger.info("cassandra_initialized")
        build_services(app, session, settings)
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    logger.info("shutting_down_application")
    await shutdown_async_cassandra()


def _get_request_id_safe(request: Request) -> str | None:
    """Get request_id from request state or context."""
    if hasattr(request.state, "request_id"):
        return request.state.request_id
    return get_request_id()


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error as ``{error, message, status_code, request_id}``."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> ORJSONResponse:
        """Handle domain errors raised by services."""
        logger.warning(
            "app_error",
            code=exc.code,
            status_code=exc.status_code,
            detail=exc.message,
            path=request.url.path,
            method=request.method,
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content={
                "error": True,
                "message": exc.message,
                "code": exc.code,
                "status_code": exc.status_code,
                "request_id": _get_request_id_safe(request),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content={
                "error": True,
                "message": str(exc.detail)
                if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
                else "Internal server error",
                "status_code": exc.status_code,
                "request_id": _get_request_id_safe(request),
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors with safe error messages."""
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )
        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "message": "Validation error",
                "status_code": status.HTTP_422_UNPROCESSABLE_ENTITY,
                "request_id": _get_request_id_safe(request),
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler; details are logged, never returned."""
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "message": "An unexpected error occurred. Please try again later.",
                "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
                "request_id": _get_request_id_safe(request),
            },
        )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Course marketplace API",
        debug=False,  # Never expose stack traces in responses
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(router_courses)
    app.include_router(router_lectures)
    app.include_router(entitlements_router)
    app.include_router(progress_router)
    app.include_router(admin_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "coursemarket API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()
