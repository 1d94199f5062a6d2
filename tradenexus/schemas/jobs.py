"""Request and response schemas for the jobs API."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import Field

from tradenexus.schemas.memory import CamelModel

CrawlerJobType = Literal["search-1688", "scrape-amazon", "monitor-price"]
JobType = Literal[
    "AMAZON_SEARCH",
    "1688_FIND",
    "PROFIT_CALC",
    "COMPLIANCE_CHECK",
    "AI_ANALYSIS",
    "search-1688",
    "scrape-amazon",
    "monitor-price",
]
JobStatus = Literal["pending", "running", "completed", "failed"]

TERMINAL_STATUSES = frozenset({"completed", "failed"})


class JobCreateRequest(CamelModel):
    type: JobType
    input_data: Optional[Dict[str, Any]] = None


class QueueAddRequest(CamelModel):
    """Crawler job to hand to the queue."""

    type: CrawlerJobType
    product_id: Optional[str] = None
    keywords: Optional[str] = None
    image_url: Optional[str] = None
    asin: Optional[str] = None
    domain: Optional[str] = None


class JobResponse(CamelModel):
    id: UUID
    user_id: str
    type: str
    status: str
    progress: int
    input_data: Optional[Dict[str, Any]] = None
    output_data: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
    queue_job_id: Optional[str] = None
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class JobListResponse(CamelModel):
    data: List[JobResponse]
    pagination: Pagination


class QueueStatsResponse(CamelModel):
    available: bool
    waiting: int = 0
    active: int = 0
    completed: int = 0
    failed: int = 0


class QueueAddResponse(JobResponse):
    queue_job_id: Optional[str] = None
    queue_available: bool = Field(..., description="False when the job ran synchronously instead")
