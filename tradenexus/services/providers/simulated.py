"""Simulated crawler provider returning mock data after a fixed latency."""

import asyncio
from typing import Any, Dict, Optional

from tradenexus.services.providers.base import CrawlerProvider
from tradenexus.utils.logging import get_logger

LOGGER = get_logger(__name__)

MOCK_TITLES = [
    "LED Strip Lights 5M RGB Color Changing",
    "Wireless Earbuds Bluetooth 5.3",
    "Stainless Steel Water Bottle 1L",
    "Silicone Kitchen Utensil Set 12 Pieces",
    "Portable Phone Stand Adjustable",
]


def mock_amazon_product(asin: str, index: int = 0) -> Dict[str, Any]:
    code = asin or f"MOCK{index:06d}"
    return {
        "asin": code,
        "title": MOCK_TITLES[index % len(MOCK_TITLES)],
        "price": round(19.99 + index * 5, 2),
        "currency": "USD",
        "rating": 4.3,
        "reviews": 1200 + index * 150,
        "link": f"https://www.amazon.com/dp/{code}",
        "dataSource": "mock",
    }


class SimulatedCrawlerProvider(CrawlerProvider):
    """Mock crawler used when no data provider is configured."""

    name = "simulated"

    def __init__(self, latency_seconds: float = 1.0):
        self.latency_seconds = latency_seconds

    async def _simulate(self) -> None:
        if self.latency_seconds > 0:
            await asyncio.sleep(self.latency_seconds)

    async def search_1688(
        self,
        product_id: Optional[str] = None,
        keywords: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        LOGGER.info(
            "Simulating 1688 search",
            extra={"product_id": product_id, "query": keywords or image_url},
        )
        await self._simulate()
        return {
            "success": True,
            "resultsCount": 3,
            "results": [
                {
                    "supplierUrl": "https://detail.1688.com/offer/mock123.html",
                    "supplierName": "Mock Supplier",
                    "costPrice": 45.0,
                    "currency": "CNY",
                    "moq": 100,
                    "supplierRating": 4.5,
                    "shopYears": 3,
                    "matchScore": 0.85,
                }
            ],
            "message": "Search completed (mock)",
            "dataSource": "mock",
        }

    async def scrape_amazon(self, asin: Optional[str], domain: Optional[str] = None) -> Dict[str, Any]:
        LOGGER.info("Simulating Amazon scrape", extra={"asin": asin, "domain": domain})
        await self._simulate()
        return {"success": True, "asin": asin, "product": mock_amazon_product(asin or "")}

    async def monitor_price(self, product_id: Optional[str]) -> Dict[str, Any]:
        LOGGER.info("Simulating price monitor", extra={"product_id": product_id})
        await self._simulate()
        return {"success": True, "productId": product_id}
