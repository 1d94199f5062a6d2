"""Crawler job Temporal workflow."""

from datetime import timedelta
from typing import Any, Dict

from temporalio import workflow
from temporalio.common import RetryPolicy
from temporalio.exceptions import ActivityError, ApplicationError

from tradenexus.temporal.core.constants import (
    CRAWLER_ACTIVITY_TIMEOUT_SECONDS,
    DEFAULT_BACKOFF_COEFFICIENT,
    DEFAULT_INITIAL_RETRY_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    MARK_JOB_COMPLETED_ACTIVITY,
    MARK_JOB_FAILED_ACTIVITY,
    MARK_JOB_RUNNING_ACTIVITY,
    RUN_CRAWLER_JOB_ACTIVITY,
    STATUS_ACTIVITY_TIMEOUT_SECONDS,
)


@workflow.defn
class CrawlerJobWorkflow:
    """Runs one crawler job and mirrors its state onto the job record.

    Payload keys: ``job_id``, ``type``, ``data`` and optionally ``retry``
    (``maximum_attempts``, ``initial_interval_seconds``,
    ``backoff_coefficient``).
    """

    def __init__(self):
        self._status = "initialized"
        self._job_id: str | None = None

    @workflow.query
    def get_status(self) -> dict:
        """Query handler for real-time status updates."""
        return {"status": self._status, "job_id": self._job_id}

    @workflow.run
    async def run(self, payload: Dict[str, Any]) -> dict:
        self._job_id = payload["job_id"]
        job_type = payload["type"]
        data = payload.get("data") or {}
        retry = payload.get("retry") or {}

        status_timeout = timedelta(seconds=STATUS_ACTIVITY_TIMEOUT_SECONDS)

        await workflow.execute_activity(
            MARK_JOB_RUNNING_ACTIVITY,
            args=[self._job_id],
            start_to_close_timeout=status_timeout,
        )
        self._status = "running"

        try:
            result = await workflow.execute_activity(
                RUN_CRAWLER_JOB_ACTIVITY,
                args=[job_type, data],
                start_to_close_timeout=timedelta(seconds=CRAWLER_ACTIVITY_TIMEOUT_SECONDS),
                retry_policy=RetryPolicy(
                    maximum_attempts=retry.get("maximum_attempts", DEFAULT_MAX_ATTEMPTS),
                    initial_interval=timedelta(
                        seconds=retry.get("initial_interval_seconds", DEFAULT_INITIAL_RETRY_SECONDS)
                    ),
                    backoff_coefficient=retry.get("backoff_coefficient", DEFAULT_BACKOFF_COEFFICIENT),
                ),
            )
        except ActivityError as e:
            # Retries are exhausted at this point
            message = str(e.cause) if e.cause else str(e)
            self._status = "failed"
            await workflow.execute_activity(
                MARK_JOB_FAILED_ACTIVITY,
                args=[self._job_id, message],
                start_to_close_timeout=status_timeout,
            )
            raise ApplicationError(f"Crawler job {job_type} failed: {message}", non_retryable=True) from e

        await workflow.execute_activity(
            MARK_JOB_COMPLETED_ACTIVITY,
            args=[self._job_id, result],
            start_to_close_timeout=status_timeout,
        )
        self._status = "completed"
        return result
