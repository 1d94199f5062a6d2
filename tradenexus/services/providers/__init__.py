"""Crawler capability providers."""

from tradenexus.core.config import Settings
from tradenexus.services.providers.base import CRAWLER_JOB_TYPES, CrawlerProvider
from tradenexus.services.providers.rapidapi import RapidApiCrawlerProvider
from tradenexus.services.providers.simulated import SimulatedCrawlerProvider
from tradenexus.utils.logging import get_logger

LOGGER = get_logger(__name__)


def get_crawler_provider(settings: Settings) -> CrawlerProvider:
    """Pick the crawler provider from configuration.

    RapidAPI is used when a key is configured, the simulated provider otherwise.
    """
    simulated = SimulatedCrawlerProvider(
        latency_seconds=settings.providers.simulated_latency_seconds
    )
    if settings.providers.rapidapi_configured:
        LOGGER.info("Using RapidAPI crawler provider")
        return RapidApiCrawlerProvider(
            api_key=settings.providers.rapidapi_key,
            host=settings.providers.rapidapi_host,
            timeout=settings.providers.http_timeout,
            fallback=simulated,
        )

    LOGGER.info("No crawler data provider configured, using simulated provider")
    return simulated


__all__ = [
    "CRAWLER_JOB_TYPES",
    "CrawlerProvider",
    "RapidApiCrawlerProvider",
    "SimulatedCrawlerProvider",
    "get_crawler_provider",
]
