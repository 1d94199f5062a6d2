"""Job record service.

Job status moves ``pending -> running -> completed | failed``; ``completed``
and ``failed`` are terminal.
"""

import math
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from tradenexus.core.exceptions import InvalidJobTransitionError, JobNotFoundError
from tradenexus.database.models import Job, utcnow
from tradenexus.repositories import JobRepository
from tradenexus.schemas.jobs import TERMINAL_STATUSES
from tradenexus.utils.logging import get_logger

LOGGER = get_logger(__name__)


class JobService:
    """Service for creating and tracking background job records."""

    def __init__(self, session: AsyncSession):
        """Initialize job service with database session.

        Args:
            session: Async database session for repository access
        """
        self.session = session
        self.job_repo = JobRepository(session)

    async def create_job(
        self, user_id: str, job_type: str, input_data: Optional[Dict[str, Any]] = None
    ) -> Job:
        job = await self.job_repo.create_job(user_id, job_type, input_data)
        LOGGER.info(
            "Job created",
            extra={"job_id": str(job.id), "job_type": job_type, "user_id": user_id},
        )
        return job

    async def update_job_status(
        self,
        job_id: UUID,
        status: str,
        progress: Optional[int] = None,
        output_data: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None,
    ) -> Job:
        """Move a job to ``status`` and stamp its timestamps.

        ``running`` stamps ``started_at``; ``completed`` and ``failed`` stamp
        ``completed_at`` and ``completed`` forces progress to 100.

        Raises:
            JobNotFoundError: If the job does not exist
            InvalidJobTransitionError: If the job is already completed or failed
        """
        job = await self.job_repo.get_by_id(job_id)
        if job is None:
            raise JobNotFoundError(f"Job {job_id} not found")
        if job.status in TERMINAL_STATUSES:
            raise InvalidJobTransitionError(
                f"Job {job_id} is already {job.status} and cannot move to {status}"
            )

        updates: Dict[str, Any] = {"status": status}
        if progress is not None:
            updates["progress"] = progress
        if output_data is not None:
            updates["output_data"] = output_data
        if error_message is not None:
            updates["error_message"] = error_message

        if status == "running":
            updates["started_at"] = utcnow()
        elif status == "completed":
            updates["completed_at"] = utcnow()
            updates["progress"] = 100
        elif status == "failed":
            updates["completed_at"] = utcnow()

        job = await self.job_repo.update(job_id, **updates)
        LOGGER.info(
            "Job status updated",
            extra={"job_id": str(job_id), "status": status},
        )
        return job

    async def get_job(self, job_id: UUID) -> Job:
        job = await self.job_repo.get_by_id(job_id)
        if job is None:
            raise JobNotFoundError(f"Job {job_id} not found")
        return job

    async def get_user_jobs(
        self,
        user_id: str,
        status: Optional[str] = None,
        job_type: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        """Page through a user's jobs, newest first.

        Returns:
            ``{"data": [...], "pagination": {page, limit, total, total_pages}}``
        """
        page = max(page, 1)
        limit = max(limit, 1)
        jobs, total = await self.job_repo.list_for_user(
            user_id,
            status=status,
            job_type=job_type,
            skip=(page - 1) * limit,
            limit=limit,
        )
        return {
            "data": jobs,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit),
            },
        }

    async def get_pending_jobs(self, job_type: Optional[str] = None, limit: int = 10) -> List[Job]:
        return await self.job_repo.get_pending(job_type=job_type, limit=limit)

    async def attach_queue_id(self, job_id: UUID, queue_job_id: str) -> Optional[Job]:
        return await self.job_repo.set_queue_job_id(job_id, queue_job_id)
