"""Background job API endpoints (JWT guarded)."""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from tradenexus.core.auth import get_current_user
from tradenexus.core.dependencies import get_job_service, get_provider, get_queue_service
from tradenexus.core.exceptions import AppError
from tradenexus.schemas.auth import CurrentUser
from tradenexus.schemas.jobs import (
    JobCreateRequest,
    JobListResponse,
    JobResponse,
    QueueAddRequest,
    QueueAddResponse,
    QueueStatsResponse,
)
from tradenexus.services.job_service import JobService
from tradenexus.services.providers import CrawlerProvider
from tradenexus.services.queue_service import QueueService
from tradenexus.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.post(
    "",
    response_model=JobResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a job",
    operation_id="create_job",
)
async def create_job(
    payload: JobCreateRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    job_service: Annotated[JobService, Depends(get_job_service)],
) -> JobResponse:
    job = await job_service.create_job(current_user.id, payload.type, payload.input_data)
    return JobResponse.model_validate(job)


@router.get(
    "",
    response_model=JobListResponse,
    summary="List the current user's jobs",
    operation_id="get_user_jobs",
)
async def get_user_jobs(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    job_service: Annotated[JobService, Depends(get_job_service)],
    status_filter: Annotated[Optional[str], Query(alias="status")] = None,
    job_type: Annotated[Optional[str], Query(alias="type")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> JobListResponse:
    result = await job_service.get_user_jobs(
        current_user.id, status=status_filter, job_type=job_type, page=page, limit=limit
    )
    return JobListResponse.model_validate(result)


@router.get(
    "/queue/stats",
    response_model=QueueStatsResponse,
    summary="Queue statistics",
    operation_id="get_queue_stats",
)
async def get_queue_stats(
    queue_service: Annotated[QueueService, Depends(get_queue_service)],
) -> QueueStatsResponse:
    return QueueStatsResponse(**await queue_service.get_queue_stats())


@router.post(
    "/queue/add",
    response_model=QueueAddResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a crawler job to the queue",
    operation_id="add_to_queue",
)
async def add_to_queue(
    payload: QueueAddRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    job_service: Annotated[JobService, Depends(get_job_service)],
    queue_service: Annotated[QueueService, Depends(get_queue_service)],
    provider: Annotated[CrawlerProvider, Depends(get_provider)],
) -> QueueAddResponse:
    """Create the job record and enqueue it.

    When the queue is unavailable the crawler runs synchronously within the
    request and the record reflects its outcome.
    """
    data = payload.model_dump(mode="json", by_alias=True, exclude_none=True, exclude={"type"})
    job = await job_service.create_job(current_user.id, payload.type, data)

    queue_job_id = await queue_service.add_job(payload.type, {"job_id": str(job.id), **data})
    if queue_job_id is not None:
        job = await job_service.attach_queue_id(job.id, queue_job_id)
    else:
        job = await _run_synchronously(job_service, provider, job.id, payload.type, data)

    return QueueAddResponse.model_validate(
        {
            **JobResponse.model_validate(job).model_dump(),
            "queue_job_id": queue_job_id,
            "queue_available": queue_service.available,
        }
    )


async def _run_synchronously(
    job_service: JobService,
    provider: CrawlerProvider,
    job_id: UUID,
    job_type: str,
    data: dict,
):
    await job_service.update_job_status(job_id, "running")
    try:
        output = await provider.run(job_type, data)
    except Exception as e:
        message = e.message if isinstance(e, AppError) else str(e)
        LOGGER.error(
            "Synchronous crawler job failed",
            exc_info=True,
            extra={"job_id": str(job_id), "error": message},
        )
        return await job_service.update_job_status(job_id, "failed", error_message=message)

    return await job_service.update_job_status(job_id, "completed", output_data=output)


@router.get(
    "/{job_id}",
    response_model=JobResponse,
    summary="Get a job",
    operation_id="get_job",
)
async def get_job(
    job_id: UUID,
    job_service: Annotated[JobService, Depends(get_job_service)],
) -> JobResponse:
    job = await job_service.get_job(job_id)
    return JobResponse.model_validate(job)
