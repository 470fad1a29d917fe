"""LearnHub API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.config import get_settings
from src.core import (
    AppError,
    ErrorKind,
    RequestContextMiddleware,
    configure_structlog,
    get_logger,
    get_request_id,
    init_async_cassandra,
    kind_for_status,
    shutdown_async_cassandra,
)
from src.courses.dependencies import (
    set_course_service_getter,
    set_lesson_service_getter,
)
from src.courses.repository import CourseRepository, LessonRepository
from src.courses.router import router_courses
from src.courses.service import CourseService, LessonService
from src.health import router as health_router
from src.progress.dependencies import set_progress_service_getter
from src.progress.repository import EnrollmentRepository, LessonProgressRepository
from src.progress.router import enrollments_router
from src.progress.router import router as progress_router
from src.progress.service import ProgressService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


class AppState:
    """Application state container."""

    cassandra_session: Any = None
    course_service: CourseService | None = None
    lesson_service: LessonService | None = None
    progress_service: ProgressService | None = None


app_state = AppState()


def get_course_service() -> CourseService:
    if app_state.course_service is None:
        msg = "CourseService not initialized"
        raise RuntimeError(msg)
    return app_state.course_service


def get_lesson_service() -> LessonService:
    if app_state.lesson_service is None:
        msg = "LessonService not initialized"
        raise RuntimeError(msg)
    return app_state.lesson_service


def get_progress_service() -> ProgressService:
    if app_state.progress_service is None:
        msg = "ProgressService not initialized"
        raise RuntimeError(msg)
    return app_state.progress_service


def build_services(session: Any, keyspace: str) -> None:
    """Create repositories over one session and wire the services."""
    courses = CourseRepository(session, keyspace)
    lessons = LessonRepository(session, keyspace)
    enrollments = EnrollmentRepository(session, keyspace)
    progress = LessonProgressRepository(session, keyspace)

    app_state.course_service = CourseService(courses, lessons, enrollments, progress)
    app_state.lesson_service = LessonService(courses, lessons, progress)
    app_state.progress_service = ProgressService(
        enrollments, progress, courses, lessons
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
        app_state.cassandra_session = await init_async_cassandra()
        build_services(app_state.cassandra_session, settings.cassandra_keyspace)
        logger.info("services_initialized")
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    logger.info("shutting_down_application")
    await shutdown_async_cassandra()


def _error_content(
    request: Request,
    status_code: int,
    kind: ErrorKind,
    code: str,
    message: str,
) -> dict[str, Any]:
    request_id = getattr(request.state, "request_id", None) or get_request_id()
    return {
        "error": True,
        "kind": kind.value,
        "code": code,
        "message": message,
        "status_code": status_code,
        "request_id": request_id,
    }


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # debug stays off so Starlette never renders stack traces
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Course enrollment and progress API",
        debug=False,
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

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> ORJSONResponse:
        """Render domain errors with their kind and code."""
        logger.warning(
            "app_error",
            kind=exc.kind.value,
            code=exc.code,
            status_code=exc.status_code,
            path=request.url.path,
            method=request.method,
        )
        headers = (
            {"WWW-Authenticate": "Bearer"}
            if exc.kind == ErrorKind.UNAUTHORIZED
            else None
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content=_error_content(
                request, exc.status_code, exc.kind, exc.code, exc.message
            ),
            headers=headers,
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

        kind = kind_for_status(exc.status_code)
        message = (
            str(exc.detail)
            if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
            else "Internal server error"
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content=_error_content(
                request, exc.status_code, kind, kind.value, message
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle request validation errors (safe to expose)."""
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )

        content = _error_content(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            ErrorKind.VALIDATION,
            "validation_error",
            "Validation error",
        )
        content["details"] = [
            {
                "field": ".".join(str(loc) for loc in err.get("loc", [])),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=content
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler: full details are logged, none are returned."""
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_content(
                request,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                ErrorKind.INTERNAL,
                "internal_error",
                "An unexpected error occurred. Please try again later.",
            ),
        )

    app.include_router(health_router)
    app.include_router(router_courses)
    app.include_router(enrollments_router)
    app.include_router(progress_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        return {
            "message": "LearnHub API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


set_course_service_getter(get_course_service)
set_lesson_service_getter(get_lesson_service)
set_progress_service_getter(get_progress_service)


app = create_app()
