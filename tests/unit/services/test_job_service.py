"""Unit tests for the job record service."""

import pytest
from uuid import uuid4

from tradenexus.core.exceptions import InvalidJobTransitionError, JobNotFoundError
from tradenexus.services.job_service import JobService


@pytest.mark.asyncio
async def test_job_lifecycle_stamps_timestamps(session_maker):
    async with session_maker() as session:
        service = JobService(session)
        job = await service.create_job("user-1", "scrape-amazon", {"asin": "B0TEST"})

        assert job.status == "pending"
        assert job.progress == 0

        job = await service.update_job_status(job.id, "running")
        assert job.started_at is not None
        assert job.completed_at is None

        job = await service.update_job_status(job.id, "completed", output_data={"success": True})
        assert job.progress == 100
        assert job.completed_at is not None
        assert job.output_data == {"success": True}


@pytest.mark.asyncio
async def test_terminal_jobs_reject_further_updates(session_maker):
    async with session_maker() as session:
        service = JobService(session)
        job = await service.create_job("user-1", "monitor-price")
        await service.update_job_status(job.id, "failed", error_message="boom")

        with pytest.raises(InvalidJobTransitionError):
            await service.update_job_status(job.id, "running")

        stored = await service.get_job(job.id)
        assert stored.status == "failed"
        assert stored.error_message == "boom"


@pytest.mark.asyncio
async def test_unknown_job_raises_not_found(session_maker):
    async with session_maker() as session:
        service = JobService(session)

        with pytest.raises(JobNotFoundError):
            await service.get_job(uuid4())
        with pytest.raises(JobNotFoundError):
            await service.update_job_status(uuid4(), "running")


@pytest.mark.asyncio
async def test_user_jobs_are_paginated_and_filtered(session_maker):
    async with session_maker() as session:
        service = JobService(session)
        for _ in range(3):
            await service.create_job("user-1", "search-1688")
        await service.create_job("user-1", "scrape-amazon")
        await service.create_job("user-2", "search-1688")

        result = await service.get_user_jobs("user-1", job_type="search-1688", page=2, limit=2)

        assert len(result["data"]) == 1
        assert result["pagination"] == {"page": 2, "limit": 2, "total": 3, "total_pages": 2}

        pending = await service.get_pending_jobs(job_type="scrape-amazon")
        assert [j.type for j in pending] == ["scrape-amazon"]
