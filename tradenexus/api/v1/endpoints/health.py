"""Health check API endpoints."""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from tradenexus.core.config import settings
from tradenexus.core.database import db_client
from tradenexus.core.dependencies import get_queue_service
from tradenexus.services.queue_service import QueueService
from tradenexus.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


class HealthCheckResponse(BaseModel):
    status: str = Field(..., description="Health check status")
    version: str = Field(..., description="Running application version")
    service: str = Field(..., description="Service name")
    timestamp: str = Field(..., description="Current server time (ISO 8601)")
    database: str = Field(..., description="Database connection state")
    queue: str = Field(..., description="Job queue state")
    services: Dict[str, str] = Field(default_factory=dict, description="Component readiness")


class DatabaseHealthResponse(BaseModel):
    status: str = Field(..., description="connected, disconnected or error")
    message: str = Field(..., description="Human readable state")


@router.get(
    "",
    response_model=HealthCheckResponse,
    summary="Health check endpoint",
    description="Check if the service is running and healthy",
    operation_id="get_service_health_status",
)
async def health_check(
    queue_service: Annotated[QueueService, Depends(get_queue_service)],
) -> HealthCheckResponse:
    """Health check endpoint; degraded upstreams do not fail the check."""
    database = "disconnected" if db_client.is_offline else ("connected" if db_client.is_connected else "unknown")

    return HealthCheckResponse(
        status="ok",
        version=settings.app_version,
        service=settings.app_name,
        timestamp=datetime.now(timezone.utc).isoformat(),
        database=database,
        queue="connected" if queue_service.available else "offline",
        services={
            "api": "running",
            "memory": "ready" if not db_client.is_offline else "offline",
            "jobs": "ready",
        },
    )


@router.get(
    "/db",
    response_model=DatabaseHealthResponse,
    summary="Database connectivity check",
    operation_id="get_database_health_status",
)
async def database_health() -> DatabaseHealthResponse:
    result: Dict[str, Any] = await db_client.health_check()
    return DatabaseHealthResponse(status=result["status"], message=result["message"])
