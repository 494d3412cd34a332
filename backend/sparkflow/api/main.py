"""
SparkPro Studio Workflow - FastAPI Application
==============================================

Main application factory with all routers and middleware.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sparkflow.api import auth, notifications, projects, workflow
from sparkflow.core.config import settings
from sparkflow.core.database import check_connection, close_db, init_db
from sparkflow.core.schemas import ErrorResponse, HealthResponse
from sparkflow.core.workflow import (
    ConcurrentModificationError,
    DuplicateProjectCode,
    EmptyAssigneePool,
    IneligibleAssignee,
    IntegrityViolation,
    InvalidTransition,
    PersistenceError,
    ProjectNotFound,
    TimeTrackingError,
    TransitionGate,
    Unauthorized,
    WorkflowError,
)

# Configure structured logging
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
        structlog.processors.JSONRenderer() if settings.is_production else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


# ==========================================================================
# Error Mapping
# ==========================================================================

WORKFLOW_ERROR_STATUS: dict[type[WorkflowError], tuple[int, str]] = {
    Unauthorized: (status.HTTP_403_FORBIDDEN, "Forbidden"),
    ProjectNotFound: (status.HTTP_404_NOT_FOUND, "Not Found"),
    InvalidTransition: (status.HTTP_422_UNPROCESSABLE_ENTITY, "Invalid Transition"),
    IneligibleAssignee: (status.HTTP_422_UNPROCESSABLE_ENTITY, "Ineligible Assignee"),
    TimeTrackingError: (status.HTTP_422_UNPROCESSABLE_ENTITY, "Time Tracking Error"),
    EmptyAssigneePool: (status.HTTP_409_CONFLICT, "Assignment Unavailable"),
    ConcurrentModificationError: (status.HTTP_409_CONFLICT, "Project Changed"),
    IntegrityViolation: (status.HTTP_409_CONFLICT, "Data Integrity Error"),
    DuplicateProjectCode: (status.HTTP_409_CONFLICT, "Conflict"),
    PersistenceError: (status.HTTP_503_SERVICE_UNAVAILABLE, "Service Unavailable"),
}


def workflow_error_status(exc: WorkflowError) -> tuple[int, str]:
    for error_type in type(exc).__mro__:
        if error_type in WORKFLOW_ERROR_STATUS:
            return WORKFLOW_ERROR_STATUS[error_type]
    return status.HTTP_400_BAD_REQUEST, "Workflow Error"


# ==========================================================================
# Lifespan
# ==========================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.

    Startup: create tables, set up the in-flight transition guard.
    Shutdown: close database connections.
    """
    logger.info("Starting SparkPro Studio Workflow", version=settings.APP_VERSION)

    await init_db()
    logger.info("Database initialized")

    app.state.transition_gate = TransitionGate()

    yield

    logger.info("Shutting down SparkPro Studio Workflow")
    await close_db()
    logger.info("Database connections closed")


# ==========================================================================
# App Factory
# ==========================================================================

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Creative studio project workflow: intake, assignment, QC and client review",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    # ==========================================================================
    # Middleware
    # ==========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ==========================================================================
    # Exception Handlers
    # ==========================================================================

    @app.exception_handler(WorkflowError)
    async def workflow_exception_handler(request: Request, exc: WorkflowError) -> JSONResponse:
        """Map workflow failures to HTTP status codes."""
        status_code, error = workflow_error_status(exc)

        log = logger.error if status_code >= 500 else logger.info
        log(
            "Workflow request rejected",
            code=exc.code,
            project_code=exc.project_code,
            detail=exc.message,
            path=request.url.path,
        )

        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=error,
                detail=exc.message,
                code=exc.code,
            ).model_dump(),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions."""
        logger.error(
            "Unhandled exception",
            exc_info=exc,
            path=request.url.path,
            method=request.method,
        )

        if settings.is_development:
            detail = str(exc)
        else:
            detail = "An unexpected error occurred"

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                error="Internal Server Error",
                detail=detail,
                code="INTERNAL_ERROR",
            ).model_dump(),
        )

    # ==========================================================================
    # Routers
    # ==========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["Health"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Check application and database health."""
        database = "connected" if await check_connection() else "unavailable"

        return HealthResponse(
            status="healthy" if database == "connected" else "degraded",
            version=settings.APP_VERSION,
            environment=settings.ENVIRONMENT,
            database=database,
        )

    app.include_router(auth.router, prefix=settings.API_V1_PREFIX)
    app.include_router(projects.router, prefix=settings.API_V1_PREFIX)
    app.include_router(workflow.router, prefix=settings.API_V1_PREFIX)
    app.include_router(notifications.router, prefix=settings.API_V1_PREFIX)

    @app.get("/", tags=["Root"])
    async def root() -> dict:
        """Root endpoint with API info."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "docs": "/docs" if settings.is_development else "Disabled in production",
            "health": "/health",
            "api": settings.API_V1_PREFIX,
        }

    return app


# ==========================================================================
# Application Instance
# ==========================================================================

app = create_app()


# ==========================================================================
# Development Server
# ==========================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "sparkflow.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level="info",
    )
