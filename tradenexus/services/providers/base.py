"""Crawler capability provider interface."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from tradenexus.core.exceptions import ValidationError

CRAWLER_JOB_TYPES = ("search-1688", "scrape-amazon", "monitor-price")


class CrawlerProvider(ABC):
    """Capabilities behind the three crawler job types.

    Implementations are either backed by a real data provider or simulated;
    one is selected at startup from configuration.
    """

    name: str = "base"

    @abstractmethod
    async def search_1688(
        self,
        product_id: Optional[str] = None,
        keywords: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Search 1688 for suppliers of a product."""

    @abstractmethod
    async def scrape_amazon(self, asin: Optional[str], domain: Optional[str] = None) -> Dict[str, Any]:
        """Fetch an Amazon product by ASIN."""

    @abstractmethod
    async def monitor_price(self, product_id: Optional[str]) -> Dict[str, Any]:
        """Check the current price of a tracked product."""

    async def run(self, job_type: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Dispatch a crawler job to the matching capability.

        Args:
            job_type: One of ``search-1688``, ``scrape-amazon``, ``monitor-price``
            data: Job payload with camelCase or snake_case keys

        Raises:
            ValidationError: If ``job_type`` is unknown
        """
        def pick(*keys: str) -> Optional[Any]:
            for key in keys:
                if data.get(key) is not None:
                    return data[key]
            return None

        if job_type == "search-1688":
            return await self.search_1688(
                product_id=pick("productId", "product_id"),
                keywords=pick("keywords"),
                image_url=pick("imageUrl", "image_url"),
            )
        if job_type == "scrape-amazon":
            return await self.scrape_amazon(pick("asin"), pick("domain"))
        if job_type == "monitor-price":
            return await self.monitor_price(pick("productId", "product_id"))

        raise ValidationError(f"Unknown crawler job type: {job_type}")
