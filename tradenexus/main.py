"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError

from tradenexus.api.v1.router import api_router
from tradenexus.core.config import settings
from tradenexus.core.database import async_session_maker, close_database, init_database
from tradenexus.core.exceptions import (
    AppError,
    DatabaseError,
    InvalidJobTransitionError,
    NotFoundError,
    ValidationError,
)
from tradenexus.services.providers import get_crawler_provider
from tradenexus.services.queue_service import QueueService
from tradenexus.utils.logging import get_logger

LOGGER = get_logger(__name__, level=settings.log_level)

UNAVAILABLE_MESSAGE = "Service temporarily unavailable"


class RootResponse(BaseModel):
    """Root endpoint response payload."""

    message: str = Field(..., description="Service status message")
    version: str = Field(..., description="Running application version")
    docs: str = Field(..., description="Path to the interactive API docs")
    health: str = Field(..., description="Path to the health check endpoint")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    The database and the job queue each get one connection attempt at
    startup; a failure leaves that component in offline mode.

    Args:
        app: FastAPI application instance

    Yields:
        None
    """
    # Startup
    LOGGER.info(
        "Starting application",
        extra={
            "app_name": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
        },
    )

    await init_database(auto_migrate=settings.db.auto_migrate)

    provider = get_crawler_provider(settings)
    queue_service = QueueService(settings, async_session_maker, provider)
    await queue_service.start()

    app.state.crawler_provider = provider
    app.state.queue_service = queue_service

    yield

    # Shutdown
    LOGGER.info("Shutting down application")

    await queue_service.stop()

    try:
        await close_database()
    except Exception as e:
        LOGGER.error(
            "Error closing database",
            exc_info=True,
            extra={"error": str(e)}
        )


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Long-term memory and crawler job backend for the TradeNexus AI agent team",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# Domain errors that map straight onto an HTTP status with their own message
_STATUS_FOR_ERROR = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidJobTransitionError: status.HTTP_409_CONFLICT,
    ValidationError: status.HTTP_400_BAD_REQUEST,
}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    for error_type, status_code in _STATUS_FOR_ERROR.items():
        if isinstance(exc, error_type):
            return JSONResponse(status_code=status_code, content={"detail": exc.message})
    LOGGER.error("Unhandled application error", extra={"path": request.url.path, "error": exc.message})
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": exc.message})


async def database_error_handler(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.error(
        "Database unavailable",
        exc_info=isinstance(exc, SQLAlchemyError),
        extra={"path": request.url.path, "error": str(exc)},
    )
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": UNAVAILABLE_MESSAGE})


app.add_exception_handler(DatabaseError, database_error_handler)
app.add_exception_handler(SQLAlchemyError, database_error_handler)
app.add_exception_handler(AppError, app_error_handler)


# Root endpoint
@app.get(
    "/",
    response_model=RootResponse,
    tags=["Root"],
    summary="Root endpoint",
    description="Get basic information about the API",
    operation_id="get_public_root_metadata",
)
async def root() -> RootResponse:
    """Root endpoint.

    Returns:
        RootResponse: Basic API information
    """
    return RootResponse(
        message=f"{settings.app_name} is running",
        version=settings.app_version,
        docs="/docs",
        health="/health",
    )


# Include routers
app.include_router(api_router, prefix=settings.api_prefix)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tradenexus.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
