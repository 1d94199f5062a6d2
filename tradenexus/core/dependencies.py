"""FastAPI dependencies shared by the API routers."""

from collections.abc import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tradenexus.core.config import settings
from tradenexus.core.database import async_session_maker, db_client
from tradenexus.services.job_service import JobService
from tradenexus.services.memory_service import MemoryService
from tradenexus.services.memory_tools import MemoryToolExecutor
from tradenexus.services.providers import CrawlerProvider, get_crawler_provider
from tradenexus.services.queue_service import QueueService


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Session factory for request handlers.

    Raises:
        DatabaseUnavailableError: If the database is running in offline mode
    """
    db_client.ensure_available()
    return async_session_maker


async def get_db_session(
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


def get_memory_service(
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
) -> MemoryService:
    return MemoryService(session_maker)


def get_tool_executor(
    memory_service: MemoryService = Depends(get_memory_service),
) -> MemoryToolExecutor:
    return MemoryToolExecutor(memory_service)


def get_job_service(session: AsyncSession = Depends(get_db_session)) -> JobService:
    return JobService(session)


def get_provider(request: Request) -> CrawlerProvider:
    provider = getattr(request.app.state, "crawler_provider", None)
    if provider is None:
        provider = get_crawler_provider(settings)
        request.app.state.crawler_provider = provider
    return provider


def get_queue_service(request: Request) -> QueueService:
    """The queue service started at application startup.

    Without a started service (lifespan not run) a disabled one is returned.
    """
    queue_service = getattr(request.app.state, "queue_service", None)
    if queue_service is None:
        queue_service = QueueService(settings, async_session_maker, get_provider(request))
        request.app.state.queue_service = queue_service
    return queue_service
