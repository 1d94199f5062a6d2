"""Crawler provider backed by the Real-Time Amazon Data RapidAPI."""

from typing import Any, Dict, Optional

import httpx
from httpx import HTTPStatusError, TimeoutException

from tradenexus.core.exceptions import APIClientError, APITimeoutError
from tradenexus.services.providers.base import CrawlerProvider
from tradenexus.services.providers.simulated import SimulatedCrawlerProvider, mock_amazon_product
from tradenexus.utils.logging import get_logger

LOGGER = get_logger(__name__)

# Amazon marketplace domain -> RapidAPI country code
DOMAIN_COUNTRIES = {
    "amazon.com": "US",
    "amazon.co.uk": "GB",
    "amazon.de": "DE",
    "amazon.fr": "FR",
    "amazon.it": "IT",
    "amazon.es": "ES",
    "amazon.ca": "CA",
    "amazon.co.jp": "JP",
    "amazon.com.au": "AU",
}


def country_for_domain(domain: Optional[str]) -> str:
    if not domain:
        return "US"
    host = domain.lower().removeprefix("https://").removeprefix("http://").removeprefix("www.")
    return DOMAIN_COUNTRIES.get(host.rstrip("/"), "US")


class RapidApiCrawlerProvider(CrawlerProvider):
    """Fetches Amazon product details from RapidAPI.

    1688 search and price monitoring have no real backend yet and delegate to
    the simulated provider. Any RapidAPI failure falls back to mock data.
    """

    name = "rapidapi"

    def __init__(
        self,
        api_key: str,
        host: str = "real-time-amazon-data.p.rapidapi.com",
        timeout: float = 30.0,
        fallback: Optional[SimulatedCrawlerProvider] = None,
    ):
        self.api_key = api_key
        self.host = host
        self.base_url = f"https://{host}"
        self.timeout = timeout
        self.fallback = fallback or SimulatedCrawlerProvider()

    async def _get(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{endpoint}"
        headers = {
            "x-rapidapi-key": self.api_key,
            "x-rapidapi-host": self.host,
        }

        LOGGER.debug(f"Calling RapidAPI: {url}", extra={"params": params})
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, headers=headers, params=params)
                response.raise_for_status()
                return response.json()
        except HTTPStatusError as e:
            raise APIClientError(
                f"RapidAPI error {e.response.status_code}: {e.response.text[:500]}",
                original_error=e,
            ) from e
        except TimeoutException as e:
            raise APITimeoutError(f"RapidAPI timeout: {url}", original_error=e) from e
        except httpx.HTTPError as e:
            raise APIClientError(f"RapidAPI request failed: {e}", original_error=e) from e

    async def search_1688(
        self,
        product_id: Optional[str] = None,
        keywords: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self.fallback.search_1688(product_id, keywords, image_url)

    async def scrape_amazon(self, asin: Optional[str], domain: Optional[str] = None) -> Dict[str, Any]:
        if not asin:
            return await self.fallback.scrape_amazon(asin, domain)

        try:
            payload = await self._get(
                "/product-details",
                {"asin": asin, "country": country_for_domain(domain)},
            )
        except APIClientError as e:
            LOGGER.error(
                "RapidAPI product lookup failed, using mock data",
                extra={"asin": asin, "error": e.message},
            )
            return {"success": True, "asin": asin, "product": mock_amazon_product(asin)}

        data = payload.get("data") or {}
        if not data:
            LOGGER.warning("RapidAPI returned no product data", extra={"asin": asin})
            return {"success": True, "asin": asin, "product": mock_amazon_product(asin)}

        return {
            "success": True,
            "asin": asin,
            "product": {
                "asin": data.get("asin", asin),
                "title": data.get("product_title"),
                "price": data.get("product_price"),
                "currency": data.get("currency"),
                "rating": data.get("product_star_rating"),
                "reviews": data.get("product_num_ratings"),
                "link": data.get("product_url"),
                "image": data.get("product_photo"),
                "dataSource": "real",
            },
        }

    async def monitor_price(self, product_id: Optional[str]) -> Dict[str, Any]:
        return await self.fallback.monitor_price(product_id)
