import uuid
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tradenexus.database.models import Job
from tradenexus.repositories.base_repository import BaseRepository


class JobRepository(BaseRepository[Job]):
    """Repository for background job records."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Job)

    async def create_job(self, user_id: str, job_type: str, input_data: Optional[dict]) -> Job:
        """Create a pending job with zero progress."""
        return await self.create(
            user_id=user_id,
            type=job_type,
            input_data=input_data,
            status="pending",
            progress=0,
        )

    async def list_for_user(
        self,
        user_id: str,
        status: Optional[str] = None,
        job_type: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Job], int]:
        """Newest jobs first, plus the total matching count."""
        filters = {"user_id": user_id, "status": status, "type": job_type}
        jobs = await self.find(filters, order_by=[Job.created_at.desc()], skip=skip, limit=limit)

        total = await self.count(filters=filters)
        return jobs, total

    async def get_pending(self, job_type: Optional[str] = None, limit: int = 10) -> List[Job]:
        """Oldest pending jobs first."""
        return await self.find(
            {"status": "pending", "type": job_type},
            order_by=[Job.created_at.asc()],
            limit=limit,
        )

    async def set_queue_job_id(self, job_id: uuid.UUID, queue_job_id: str) -> Optional[Job]:
        return await self.update(job_id, queue_job_id=queue_job_id)

    async def count_enqueued_by_status(self) -> Dict[str, int]:
        """Status counts over jobs that were handed to the queue."""
        query = (
            select(Job.status, func.count())
            .where(Job.queue_job_id.is_not(None))
            .group_by(Job.status)
        )
        result = await self.session.execute(query)
        return {status: count for status, count in result.all()}
