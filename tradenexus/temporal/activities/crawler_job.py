"""Crawler job activities.

Activities are bound methods so the worker can inject the session factory and
the crawler provider chosen at startup.
"""

from typing import Any, Dict, List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from temporalio import activity
from temporalio.exceptions import ApplicationError

from tradenexus.core.exceptions import InvalidJobTransitionError, JobNotFoundError, ValidationError
from tradenexus.services.job_service import JobService
from tradenexus.services.providers import CrawlerProvider
from tradenexus.temporal.core.constants import (
    MARK_JOB_COMPLETED_ACTIVITY,
    MARK_JOB_FAILED_ACTIVITY,
    MARK_JOB_RUNNING_ACTIVITY,
    RUN_CRAWLER_JOB_ACTIVITY,
)


class CrawlerActivities:
    """Activities for ``CrawlerJobWorkflow``."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        provider: CrawlerProvider,
    ):
        self.session_maker = session_maker
        self.provider = provider

    async def _set_status(self, job_id: str, status: str, **fields: Any) -> None:
        async with self.session_maker() as session:
            try:
                await JobService(session).update_job_status(UUID(job_id), status, **fields)
            except InvalidJobTransitionError as e:
                # A retried status activity may find its own earlier write
                activity.logger.warning(f"Skipping status update for job {job_id}: {e.message}")
            except JobNotFoundError as e:
                raise ApplicationError(e.message, non_retryable=True) from e

    @activity.defn(name=MARK_JOB_RUNNING_ACTIVITY)
    async def mark_running(self, job_id: str) -> None:
        activity.logger.info(f"Crawler job {job_id} running")
        await self._set_status(job_id, "running")

    @activity.defn(name=RUN_CRAWLER_JOB_ACTIVITY)
    async def run_job(self, job_type: str, data: Dict[str, Any]) -> Dict[str, Any]:
        info = activity.info()
        activity.logger.info(
            f"Processing crawler job {job_type} (attempt {info.attempt})",
        )
        try:
            return await self.provider.run(job_type, data)
        except ValidationError as e:
            raise ApplicationError(e.message, non_retryable=True) from e

    @activity.defn(name=MARK_JOB_COMPLETED_ACTIVITY)
    async def mark_completed(self, job_id: str, output: Dict[str, Any]) -> None:
        activity.logger.info(f"Crawler job {job_id} completed")
        await self._set_status(job_id, "completed", output_data=output)

    @activity.defn(name=MARK_JOB_FAILED_ACTIVITY)
    async def mark_failed(self, job_id: str, error_message: str) -> None:
        activity.logger.error(f"Crawler job {job_id} failed: {error_message}")
        await self._set_status(job_id, "failed", error_message=error_message)

    def all(self) -> List[Any]:
        return [self.mark_running, self.run_job, self.mark_completed, self.mark_failed]
