"""SerpAPI client for web and reverse-image search."""

from typing import Any, Dict, List, Optional

import aiohttp

from ..config.settings import settings
from ..errors import ScreeningUnavailable, SourceUnavailable
from ..models.brand import ScreeningHit
from ..utils.logging import get_logger
from ..utils.rate_limiter import RateLimiter

logger = get_logger(__name__)

SOURCE_NAME = "serpapi"


class SerpApiClient:
    """Thin async wrapper over the SerpAPI JSON endpoint.

    All calls share one rate limiter so concurrent screening never exceeds the
    configured requests per minute.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        endpoint: Optional[str] = None,
        timeout: Optional[int] = None,
        rate_limiter: Optional[RateLimiter] = None
    ):
        self.api_key = api_key if api_key is not None else settings.serpapi_key
        self.endpoint = endpoint or settings.serpapi_endpoint
        self.timeout = timeout or settings.http_timeout
        self.rate_limiter = rate_limiter or RateLimiter(rpm_limit=settings.search_rpm_limit)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def _get(self, params: Dict[str, Any], call_id: str) -> Dict[str, Any]:
        if not self.configured:
            raise ScreeningUnavailable(SOURCE_NAME, "SERPAPI_KEY not set")

        await self.rate_limiter.wait_if_needed(call_id)
        query = dict(params, api_key=self.api_key)
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.get(self.endpoint, params=query) as response:
                    if response.status != 200:
                        body = await response.text()
                        raise SourceUnavailable(SOURCE_NAME, f"HTTP {response.status}: {body[:200]}")
                    data = await response.json(content_type=None)
        except SourceUnavailable:
            raise
        except Exception as e:
            raise SourceUnavailable(SOURCE_NAME, str(e)) from e

        if isinstance(data, dict) and data.get("error"):
            raise SourceUnavailable(SOURCE_NAME, str(data["error"]))
        return data if isinstance(data, dict) else {}

    async def web_search(self, query: str, max_results: int = 3, uk_only: bool = False) -> List[ScreeningHit]:
        """
        Run a Google web search.

        Args:
            query: Search query
            max_results: Organic results to keep
            uk_only: Localize the search to the UK

        Returns:
            List[ScreeningHit]: Organic results, in rank order

        Raises:
            ScreeningUnavailable: If no API key is configured
            SourceUnavailable: If the request fails
        """
        params = {"engine": "google", "q": query, "num": max_results}
        if uk_only:
            params.update({"gl": "uk", "hl": "en"})
        data = await self._get(params, call_id=f"search:{query[:40]}")

        hits = []
        for item in (data.get("organic_results") or [])[:max_results]:
            hits.append(ScreeningHit(
                title=item.get("title") or "",
                url=item.get("link") or "",
                snippet=item.get("snippet") or "",
                source=SOURCE_NAME,
                query=query,
            ))
        logger.debug("Web search complete", query=query, results=len(hits))
        return hits

    async def reverse_image_search(self, image_url: str, uk_only: bool = True) -> Dict[str, Any]:
        """Run a Google Lens search for an image URL and return the raw payload."""
        params = {"engine": "google_lens", "url": image_url}
        if uk_only:
            params.update({"gl": "uk", "hl": "en"})
        return await self._get(params, call_id="lens")
