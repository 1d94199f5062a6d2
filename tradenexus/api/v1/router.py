from fastapi import APIRouter

from tradenexus.api.v1.endpoints import health, jobs, memory

# Create API router
api_router = APIRouter()

# Include routers
api_router.include_router(memory.router, prefix="/memory", tags=["Memory"])
api_router.include_router(jobs.router, prefix="/jobs", tags=["Jobs"])
api_router.include_router(health.router, prefix="/health", tags=["Health"])

__all__ = ["api_router"]
