"""Standalone Temporal worker for crawler jobs.

This worker:
- Connects to the Temporal server from settings, with retries
- Initializes the database and picks the crawler provider once
- Polls the crawler task queue until interrupted
- Serves a minimal health endpoint

Run with ``python -m tradenexus.temporal.worker``.
"""

import asyncio
import os

import uvicorn
from fastapi import FastAPI
from temporalio.client import Client
from temporalio.worker import Worker
from temporalio.worker.workflow_sandbox import SandboxedWorkflowRunner, SandboxRestrictions

from tradenexus.core.config import settings
from tradenexus.core.database import async_session_maker, close_database, init_database
from tradenexus.services.providers import get_crawler_provider
from tradenexus.temporal.activities.crawler_job import CrawlerActivities
from tradenexus.temporal.workflows.crawler_job import CrawlerJobWorkflow
from tradenexus.utils.logging import get_logger

logger = get_logger(__name__)

# Minimal app for health checks
app = FastAPI(title="TradeNexus Crawler Worker Health Check")


@app.get("/health")
async def health():
    return {"status": "ok", "service": "crawler-worker"}


async def run_health_check_server():
    """Run the health check server."""
    port = int(os.getenv("WORKER_HEALTH_PORT", 8001))
    logger.info(f"Starting health check server on port {port}")
    config = uvicorn.Config(app, host="0.0.0.0", port=port, log_level="info")
    server = uvicorn.Server(config)
    await server.serve()


async def connect_with_retries(max_retries: int = 5, retry_delay: int = 5) -> Client:
    target = settings.queue.target_host
    for attempt in range(max_retries):
        try:
            logger.info(f"Connecting to Temporal server at {target} (Attempt {attempt + 1}/{max_retries})")
            return await Client.connect(target, namespace=settings.queue.namespace)
        except Exception as e:
            if attempt < max_retries - 1:
                logger.warning(f"Connection attempt {attempt + 1} failed: {e}. Retrying in {retry_delay}s...")
                await asyncio.sleep(retry_delay)
            else:
                logger.error(f"Failed to connect to Temporal server after {max_retries} attempts: {e}")
                raise


async def run_worker():
    """Connect to Temporal and run the crawler worker."""
    if not await init_database(auto_migrate=settings.db.auto_migrate):
        logger.warning("Database unavailable - job records will not be updated")

    client = await connect_with_retries()
    logger.info("Successfully connected to Temporal server")

    activities = CrawlerActivities(async_session_maker, get_crawler_provider(settings))
    worker = Worker(
        client,
        task_queue=settings.queue.task_queue,
        workflows=[CrawlerJobWorkflow],
        activities=activities.all(),
        max_concurrent_activities=10,
        workflow_runner=SandboxedWorkflowRunner(
            restrictions=SandboxRestrictions.default.with_passthrough_all_modules()
        ),
    )

    logger.info("=" * 60)
    logger.info("TradeNexus Crawler Worker Started")
    logger.info(f"Connected to: {settings.queue.target_host}")
    logger.info(f"Task queue: {settings.queue.task_queue}")
    logger.info("=" * 60)

    try:
        await worker.run()
    finally:
        await close_database()


async def main():
    """Start the crawler worker and its health endpoint."""
    await asyncio.gather(run_health_check_server(), run_worker())


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Worker stopped by user")
    except Exception as e:
        logger.error(f"Worker failed: {e}", exc_info=True)
        raise
