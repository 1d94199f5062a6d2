"""Crawler job queue backed by Temporal.

On startup the service tries to reach the Temporal server once, with a short
timeout. When that fails the queue stays disabled for the lifetime of the
process: ``add_job`` returns ``None`` and callers run the job synchronously.
Outside production an in-process worker polls the crawler task queue.
"""

import asyncio
import uuid
from datetime import timedelta
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from temporalio.client import Client
from temporalio.worker import Worker
from temporalio.worker.workflow_sandbox import SandboxedWorkflowRunner, SandboxRestrictions

from tradenexus.core.config import Settings
from tradenexus.repositories import JobRepository
from tradenexus.services.providers import CrawlerProvider
from tradenexus.temporal.activities.crawler_job import CrawlerActivities
from tradenexus.temporal.core.constants import DEFAULT_WORKFLOW_TIMEOUT_SECONDS
from tradenexus.temporal.workflows.crawler_job import CrawlerJobWorkflow
from tradenexus.utils.logging import get_logger

LOGGER = get_logger(__name__)


def unavailable_stats() -> Dict[str, Any]:
    return {"available": False, "waiting": 0, "active": 0, "completed": 0, "failed": 0}


class QueueService:
    """Wraps the Temporal client for crawler jobs."""

    def __init__(
        self,
        settings: Settings,
        session_maker: async_sessionmaker[AsyncSession],
        provider: CrawlerProvider,
    ):
        """Initialize queue service.

        Args:
            settings: Application settings; only ``queue`` and ``environment`` are read
            session_maker: Session factory for job records
            provider: Crawler provider used by the inline worker
        """
        self.settings = settings
        self.queue_settings = settings.queue
        self.session_maker = session_maker
        self.provider = provider

        self._client: Optional[Client] = None
        self._worker: Optional[Worker] = None
        self._worker_task: Optional[asyncio.Task] = None
        self._connected = False

    @property
    def available(self) -> bool:
        return self._connected and self._client is not None

    @property
    def client(self) -> Optional[Client]:
        return self._client

    async def start(self) -> bool:
        """Connect to Temporal once; disable the queue on failure.

        Returns:
            True when the queue is usable
        """
        target = self.queue_settings.target_host
        try:
            self._client = await asyncio.wait_for(
                Client.connect(target, namespace=self.queue_settings.namespace),
                timeout=self.queue_settings.connect_timeout,
            )
        except Exception as e:
            self._client = None
            self._connected = False
            LOGGER.warning(
                "Queue connection failed - running in offline mode",
                extra={"target": target, "reason": str(e) or type(e).__name__},
            )
            return False

        self._connected = True
        LOGGER.info(f"Queue connected to Temporal at {target}")

        if not self.settings.is_production and self.queue_settings.inline_worker:
            self._start_inline_worker()
        return True

    def _start_inline_worker(self) -> None:
        activities = CrawlerActivities(self.session_maker, self.provider)
        self._worker = Worker(
            self._client,
            task_queue=self.queue_settings.task_queue,
            workflows=[CrawlerJobWorkflow],
            activities=activities.all(),
            workflow_runner=SandboxedWorkflowRunner(
                restrictions=SandboxRestrictions.default.with_passthrough_all_modules()
            ),
        )
        self._worker_task = asyncio.create_task(self._worker.run())
        self._worker_task.add_done_callback(self._on_worker_exit)
        LOGGER.info(
            "Inline worker started (development mode)",
            extra={"task_queue": self.queue_settings.task_queue},
        )

    def _on_worker_exit(self, task: asyncio.Task) -> None:
        """Disable the queue when the inline worker dies; jobs would never run."""
        if task.cancelled():
            return
        error = task.exception()
        if error is None:
            return

        self._connected = False
        LOGGER.error(
            "Inline worker stopped unexpectedly - queue disabled",
            exc_info=error,
            extra={"task_queue": self.queue_settings.task_queue},
        )

    async def add_job(self, job_type: str, data: Dict[str, Any]) -> Optional[str]:
        """Start a durable crawler job.

        Args:
            job_type: Crawler job type
            data: Job payload; ``job_id`` links it to its job record

        Returns:
            The queue job id, or None when the queue is disabled
        """
        if not self.available:
            LOGGER.warning("Queue unavailable, job will run synchronously", extra={"job_type": job_type})
            return None

        job_id = str(data.get("job_id") or uuid.uuid4())
        payload = {
            "job_id": job_id,
            "type": job_type,
            "data": {k: v for k, v in data.items() if k != "job_id"},
            "retry": {
                "maximum_attempts": self.queue_settings.max_attempts,
                "initial_interval_seconds": self.queue_settings.initial_retry_seconds,
                "backoff_coefficient": self.queue_settings.backoff_coefficient,
            },
        }
        handle = await self._client.start_workflow(
            CrawlerJobWorkflow.run,
            payload,
            id=f"crawler-{job_type}-{job_id}",
            task_queue=self.queue_settings.task_queue,
            execution_timeout=timedelta(seconds=DEFAULT_WORKFLOW_TIMEOUT_SECONDS),
        )
        LOGGER.info("Job added to queue", extra={"job_type": job_type, "queue_job_id": handle.id})
        return handle.id

    async def _count_workflows(self, execution_status: str) -> int:
        query = (
            f"WorkflowType='{CrawlerJobWorkflow.__name__}' "
            f"AND TaskQueue='{self.queue_settings.task_queue}' "
            f"AND ExecutionStatus='{execution_status}'"
        )
        result = await self._client.count_workflows(query)
        return result.count

    async def _count_waiting(self) -> int:
        async with self.session_maker() as session:
            counts = await JobRepository(session).count_enqueued_by_status()
        return counts.get("pending", 0)

    async def get_queue_stats(self) -> Dict[str, Any]:
        """Queue counters; all zero and ``available: False`` when disabled."""
        if not self.available:
            return unavailable_stats()

        try:
            active, completed, failed = await asyncio.gather(
                self._count_workflows("Running"),
                self._count_workflows("Completed"),
                self._count_workflows("Failed"),
            )
            waiting = await self._count_waiting()
        except Exception as e:
            LOGGER.error("Failed to read queue stats", extra={"error": str(e)})
            return {"available": True, "waiting": 0, "active": 0, "completed": 0, "failed": 0}

        return {
            "available": True,
            "waiting": waiting,
            "active": active,
            "completed": completed,
            "failed": failed,
        }

    async def stop(self) -> None:
        """Stop the inline worker and drop the client."""
        if self._worker is not None:
            try:
                await self._worker.shutdown()
            except Exception as e:
                LOGGER.error("Error stopping inline worker", extra={"error": str(e)})
            self._worker = None

        if self._worker_task is not None:
            if not self._worker_task.done():
                self._worker_task.cancel()
            await asyncio.gather(self._worker_task, return_exceptions=True)
            self._worker_task = None

        self._client = None
        self._connected = False
        LOGGER.info("Queue service stopped")
