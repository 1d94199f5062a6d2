"""Unit tests for crawler job activities."""

from uuid import UUID, uuid4

import pytest
from temporalio.exceptions import ApplicationError
from temporalio.testing import ActivityEnvironment

from tradenexus.services.job_service import JobService
from tradenexus.temporal.activities.crawler_job import CrawlerActivities


@pytest.fixture
def activities(session_maker, provider) -> CrawlerActivities:
    return CrawlerActivities(session_maker, provider)


@pytest.fixture
def env() -> ActivityEnvironment:
    return ActivityEnvironment()


async def _create_job(session_maker) -> str:
    async with session_maker() as session:
        job = await JobService(session).create_job("user-1", "scrape-amazon", {"asin": "B0TEST"})
    return str(job.id)


async def _get_job(session_maker, job_id: str):
    async with session_maker() as session:
        return await JobService(session).get_job(UUID(job_id))


@pytest.mark.asyncio
async def test_activities_drive_job_to_completion(activities, env, session_maker):
    job_id = await _create_job(session_maker)

    await env.run(activities.mark_running, job_id)
    output = await env.run(activities.run_job, "scrape-amazon", {"asin": "B0TEST"})
    await env.run(activities.mark_completed, job_id, output)

    job = await _get_job(session_maker, job_id)
    assert job.status == "completed"
    assert job.progress == 100
    assert job.output_data["product"]["asin"] == "B0TEST"


@pytest.mark.asyncio
async def test_repeated_terminal_update_is_ignored(activities, env, session_maker):
    job_id = await _create_job(session_maker)

    await env.run(activities.mark_failed, job_id, "provider down")
    await env.run(activities.mark_failed, job_id, "provider down again")

    job = await _get_job(session_maker, job_id)
    assert job.status == "failed"
    assert job.error_message == "provider down"


@pytest.mark.asyncio
async def test_missing_job_is_not_retried(activities, env):
    with pytest.raises(ApplicationError) as exc_info:
        await env.run(activities.mark_running, str(uuid4()))

    assert exc_info.value.non_retryable is True


@pytest.mark.asyncio
async def test_unknown_job_type_is_not_retried(activities, env):
    with pytest.raises(ApplicationError) as exc_info:
        await env.run(activities.run_job, "scrape-ebay", {})

    assert exc_info.value.non_retryable is True
