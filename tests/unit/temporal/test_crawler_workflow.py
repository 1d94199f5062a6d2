"""Workflow tests for crawler jobs on the Temporal time-skipping test server."""

import uuid
from typing import Any, Dict
from uuid import UUID

import pytest
from temporalio.client import WorkflowFailureError
from temporalio.testing import WorkflowEnvironment
from temporalio.worker import Worker
from temporalio.worker.workflow_sandbox import SandboxedWorkflowRunner, SandboxRestrictions

from tradenexus.services.job_service import JobService
from tradenexus.temporal.activities.crawler_job import CrawlerActivities
from tradenexus.temporal.workflows.crawler_job import CrawlerJobWorkflow


class UnreachableUpstreamProvider:
    """Crawler provider whose every call fails with a retryable error."""

    def __init__(self):
        self.calls = 0

    async def run(self, job_type: str, data: Dict[str, Any]) -> Dict[str, Any]:
        self.calls += 1
        raise RuntimeError("upstream returned 502")


async def _create_job(session_maker) -> str:
    async with session_maker() as session:
        job = await JobService(session).create_job("user-1", "scrape-amazon", {"asin": "B0TEST"})
    return str(job.id)


async def _get_job(session_maker, job_id: str):
    async with session_maker() as session:
        return await JobService(session).get_job(UUID(job_id))


async def _run_workflow(session_maker, provider, job_id: str) -> Dict[str, Any]:
    task_queue = f"crawler-test-{uuid.uuid4()}"
    activities = CrawlerActivities(session_maker, provider)

    async with await WorkflowEnvironment.start_time_skipping() as env:
        async with Worker(
            env.client,
            task_queue=task_queue,
            workflows=[CrawlerJobWorkflow],
            activities=activities.all(),
            workflow_runner=SandboxedWorkflowRunner(
                restrictions=SandboxRestrictions.default.with_passthrough_all_modules()
            ),
        ):
            return await env.client.execute_workflow(
                CrawlerJobWorkflow.run,
                {"job_id": job_id, "type": "scrape-amazon", "data": {"asin": "B0TEST"}},
                id=f"crawler-scrape-amazon-{job_id}",
                task_queue=task_queue,
            )


@pytest.mark.asyncio
async def test_workflow_moves_job_from_pending_to_completed(session_maker, provider):
    job_id = await _create_job(session_maker)
    assert (await _get_job(session_maker, job_id)).status == "pending"

    result = await _run_workflow(session_maker, provider, job_id)

    job = await _get_job(session_maker, job_id)
    assert result["product"]["asin"] == "B0TEST"
    assert job.status == "completed"
    assert job.progress == 100
    assert job.output_data == result
    assert job.error_message is None
    assert job.started_at is not None
    assert job.completed_at is not None


@pytest.mark.asyncio
async def test_workflow_marks_job_failed_after_last_attempt(session_maker):
    provider = UnreachableUpstreamProvider()
    job_id = await _create_job(session_maker)

    with pytest.raises(WorkflowFailureError):
        await _run_workflow(session_maker, provider, job_id)

    job = await _get_job(session_maker, job_id)
    assert provider.calls == 3
    assert job.status == "failed"
    assert job.error_message == "upstream returned 502"
    assert job.output_data is None
    assert job.completed_at is not None
