"""Trademark screening across registry, web search and commercial sources.

Every source is isolated: a failure or missing credential becomes a warning on
the aggregate and the remaining sources still run. Nothing here is a legal
clearance; results only feed the advisory notes.
"""

import asyncio
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

import aiohttp
from bs4 import BeautifulSoup

from ..config.settings import settings
from ..errors import ScreeningUnavailable, SourceUnavailable
from ..models.brand import ScreeningHit, ScreeningResult
from ..utils.cache import TTLCache
from ..utils.logging import get_logger
from ..utils.text import normalize_key
from .search import SerpApiClient

logger = get_logger(__name__)

USER_AGENT = "Brandscape/1.0"
EUIPO_DETAILS_URL = "https://euipo.europa.eu/eSearch/#details/trademarks/{}"
EUIPO_HOME_URL = "https://euipo.europa.eu/eSearch/"

UK_QUERIES = [
    '"{name}" trademark site:ipo.gov.uk',
    '"{name}" trademark site:gov.uk',
    '"{name}" "trade mark" site:gov.uk',
    '"{name}" site:trademarkia.com OR site:trademarknow.com OR site:wipo.int',
]
BROAD_QUERIES = [
    '"{name}" trademark site:ipo.gov.uk',
    '"{name}" trademark site:euipo.europa.eu OR site:tmview.europa.eu',
    '"{name}" trademark OR "trade mark"',
    '"{name}" site:trademarkia.com OR site:trademarknow.com OR site:wipo.int OR site:uspto.gov',
]


@dataclass
class SourceReport:
    """What one source contributed to the aggregate."""

    hits: List[ScreeningHit] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    summary: List[str] = field(default_factory=list)


def dedupe_hits(hits: Iterable[ScreeningHit]) -> List[ScreeningHit]:
    """Drop repeated ``(url, title)`` pairs, keeping the first occurrence.

    Hits with neither a url nor a title are always kept.
    """
    seen = set()
    unique = []
    for hit in hits:
        identity = hit.identity()
        if identity == "|":
            unique.append(hit)
            continue
        if identity in seen:
            continue
        seen.add(identity)
        unique.append(hit)
    return unique


class TrademarkSource:
    """Base class for one trademark signal source."""

    name = "source"

    async def search(self, mark: str, uk_only: bool = True) -> SourceReport:
        raise NotImplementedError


class EuipoSource(TrademarkSource):
    """EUIPO eSearch API; the database still carries historical UK marks."""

    name = "EUIPO API"

    def __init__(self, url: Optional[str] = None, max_results: int = 20, timeout: Optional[int] = None):
        self.url = url or settings.euipo_search_url
        self.max_results = max_results
        self.timeout = timeout or settings.http_timeout

    @staticmethod
    def transform_results(data: Any, searched: str) -> List[ScreeningHit]:
        if not isinstance(data, dict):
            return []
        results = data.get("results") or data.get("data") or data.get("items") or []
        hits = []
        for result in results:
            if not isinstance(result, dict):
                continue
            mark_name = result.get("markText") or result.get("name") or result.get("trademarkName") or searched
            mark_id = result.get("id") or result.get("trademarkId") or result.get("applicationNumber")
            status = result.get("status") or result.get("markStatus") or "Unknown"
            classes = result.get("classes") or result.get("niceClasses") or []
            owner = result.get("owner") or result.get("applicant") or ""

            snippet = f"Status: {status}"
            if classes:
                snippet += f" | Classes: {', '.join(str(c) for c in classes)}"
            if owner:
                snippet += f" | Owner: {owner}"
            hits.append(ScreeningHit(
                title=str(mark_name),
                url=EUIPO_DETAILS_URL.format(mark_id) if mark_id else EUIPO_HOME_URL,
                snippet=snippet,
                source="euipo_api",
                raw=result,
            ))
        return hits

    async def search(self, mark: str, uk_only: bool = True) -> SourceReport:
        headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        body = {"query": mark, "rows": self.max_results, "start": 0, "filters": {}}
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.post(self.url, json=body, headers=headers) as response:
                    if response.status == 200:
                        data = await response.json(content_type=None)
                    else:
                        # POST rejected; the GET form of the same search
                        params = {"query": mark, "rows": self.max_results}
                        async with session.get(self.url, params=params, headers=headers) as fallback:
                            if fallback.status != 200:
                                raise SourceUnavailable(self.name, f"status {fallback.status}")
                            data = await fallback.json(content_type=None)
        except SourceUnavailable:
            raise
        except Exception as e:
            raise SourceUnavailable(self.name, str(e)) from e

        hits = self.transform_results(data, mark)
        report = SourceReport(hits=hits)
        if hits:
            report.summary.append(f"EUIPO API: Found {len(hits)} trademark(s)")
        return report


class UkIpoSource(TrademarkSource):
    """UK IPO text search page, scraped only when explicitly enabled."""

    name = "UK IPO"

    def __init__(self, enabled: Optional[bool] = None, url: Optional[str] = None, timeout: Optional[int] = None):
        self.enabled = settings.uk_ipo_web_scraping if enabled is None else enabled
        self.url = url or settings.uk_ipo_search_url
        self.timeout = timeout or settings.http_timeout

    def search_url(self, query: str) -> str:
        return f"{self.url}?textquery={quote(query)}"

    def parse_page(self, text: str, mark: str) -> List[ScreeningHit]:
        """Pick trademark records out of the page text with line heuristics."""
        page_url = self.search_url(mark)
        lines = [line.strip() for line in text.splitlines() if line.strip()]
        hits = []
        for i, line in enumerate(lines):
            lowered = line.lower()
            if not any(k in lowered for k in ("trade mark", "trademark", "application number")):
                continue
            quoted = re.search(r'"([^"]+)"', line) or re.search(r"(?:name|mark):\s*([^\n,]+)", line, re.IGNORECASE)
            if quoted:
                mark_name = quoted.group(1).strip()
            elif i > 0 and 3 < len(lines[i - 1]) < 100:
                mark_name = lines[i - 1]
            else:
                continue
            if len(mark_name) <= 2:
                continue
            number = re.search(r"(?:application|registration)\s*(?:number|no)[:\s]+([A-Z0-9]+)", line, re.IGNORECASE)
            app_num = number.group(1) if number else None
            hits.append(ScreeningHit(
                title=mark_name,
                url=self.search_url(app_num) if app_num else page_url,
                snippet=f"UK IPO Trademark | Application: {app_num}" if app_num else "UK IPO Trademark",
                source="uk_ipo_web",
                raw={"name": mark_name, "applicationNumber": app_num, "line": line},
            ))

        if not hits and mark.lower() in text.lower():
            hits.append(ScreeningHit(
                title=mark,
                url=page_url,
                snippet=f"Found in UK IPO search results - check manually at {page_url}",
                source="uk_ipo_web",
                raw={"note": "Parsing incomplete - manual verification recommended"},
            ))
        return hits

    async def search(self, mark: str, uk_only: bool = True) -> SourceReport:
        if not self.enabled:
            logger.debug("UK IPO web scraping disabled; relying on EUIPO data")
            return SourceReport()

        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.get(self.search_url(mark), headers={"User-Agent": USER_AGENT}) as response:
                    if response.status != 200:
                        raise SourceUnavailable(self.name, f"web search status {response.status}")
                    html = await response.text()
        except SourceUnavailable:
            raise
        except Exception as e:
            raise SourceUnavailable(self.name, f"web search: {e}") from e

        text = BeautifulSoup(html, "html.parser").get_text("\n")
        if not text.strip():
            raise SourceUnavailable(self.name, "No content retrieved from UK IPO")
        hits = self.parse_page(text, mark)
        report = SourceReport(hits=hits)
        if hits:
            report.summary.append(f"UK IPO: Found {len(hits)} trademark(s)")
        return report


class WebTrademarkSource(TrademarkSource):
    """Trademark-focused web searches through SerpAPI."""

    name = "SerpAPI"

    def __init__(self, client: SerpApiClient, results_per_query: int = 8):
        self.client = client
        self.results_per_query = results_per_query

    @staticmethod
    def queries_for(mark: str, uk_only: bool = True) -> List[str]:
        templates = UK_QUERIES if uk_only else BROAD_QUERIES
        return [t.format(name=mark) for t in templates]

    async def search(self, mark: str, uk_only: bool = True) -> SourceReport:
        if not self.client.configured:
            raise ScreeningUnavailable(
                self.name,
                "No search provider available (set SERPAPI_KEY); skipping web search layer."
            )
        report = SourceReport()
        for query in self.queries_for(mark, uk_only):
            try:
                report.hits.extend(await self.client.web_search(query, max_results=self.results_per_query, uk_only=uk_only))
            except SourceUnavailable as e:
                logger.warning("Trademark web query failed", query=query, error=e.reason)
                report.warnings.append(f"SerpAPI query failed: {e.reason}")
        return report


class WhoisXmlSource(TrademarkSource):
    """WhoisXML API trademark search (requires ``WHOISXMLAPI_KEY``)."""

    name = "WhoisXMLAPI"

    def __init__(self, api_key: Optional[str] = None, url: Optional[str] = None, timeout: Optional[int] = None):
        self.api_key = api_key if api_key is not None else settings.whoisxmlapi_key
        self.url = url or settings.whoisxml_trademark_url
        self.timeout = timeout or settings.http_timeout

    @staticmethod
    def transform_body(body: Any) -> List[ScreeningHit]:
        records = None
        if isinstance(body, dict):
            for key in ("trademarks", "results", "data", "items"):
                if isinstance(body.get(key), list):
                    records = body[key]
                    break
        elif isinstance(body, list):
            records = body
        if records is None:
            # Unknown shape: keep the payload as one raw entry
            return [ScreeningHit(source="whoisxml", raw=body)]

        hits = []
        for record in records:
            if not isinstance(record, dict):
                continue
            hits.append(ScreeningHit(
                title=str(record.get("name") or record.get("mark") or record.get("trademark") or ""),
                url=str(record.get("url") or ""),
                snippet=str(record.get("status") or record.get("description") or ""),
                source="whoisxml",
                raw=record,
            ))
        return hits

    async def search(self, mark: str, uk_only: bool = True) -> SourceReport:
        if not self.api_key:
            raise ScreeningUnavailable(self.name, "WHOISXMLAPI_KEY not set")
        params = {"apiKey": self.api_key, "searchTerm": mark, "limit": 10}
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.get(self.url, params=params) as response:
                    if response.status != 200:
                        raise SourceUnavailable(self.name, f"whoisxml status {response.status}")
                    body = await response.json(content_type=None)
        except SourceUnavailable:
            raise
        except Exception as e:
            raise SourceUnavailable(self.name, str(e)) from e
        return SourceReport(
            hits=self.transform_body(body),
            summary=["WhoisXMLAPI results included (requires API key)."]
        )


class TrademarkScreener:
    """Runs every trademark source for a name and merges the results.

    Aggregates are cached per normalized name; a cached aggregate is returned
    without touching any source.
    """

    def __init__(self, sources: List[TrademarkSource], cache: TTLCache, uk_only: bool = True):
        self.sources = sources
        self.cache = cache
        self.uk_only = uk_only

    @staticmethod
    def cache_key(name: str) -> str:
        return f"tm:{normalize_key(name)}"

    async def _run_source(self, source: TrademarkSource, name: str, uk_only: bool) -> SourceReport:
        try:
            return await source.search(name, uk_only=uk_only)
        except SourceUnavailable as e:
            logger.warning("Trademark source unavailable", source=source.name, error=e.reason)
            return SourceReport(warnings=[f"{source.name}: {e.reason}"])
        except Exception as e:
            logger.warning("Trademark source failed", source=source.name, error=str(e))
            return SourceReport(warnings=[f"{source.name} error: {e}"])

    async def check_trademarks(self, name: str, context: Optional[str] = None, uk_only: Optional[bool] = None) -> ScreeningResult:
        """
        Screen a name against every configured source.

        Args:
            name: Candidate business name
            context: Business description, carried for logging only; it does not affect the cache key
            uk_only: Override the UK-focused web query set

        Returns:
            ScreeningResult: Deduplicated hits in source order, plus warnings and summary lines
        """
        key = self.cache_key(name)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Trademark cache hit", name=name)
            return cached.model_copy(update={"cached": True}, deep=True)

        uk = self.uk_only if uk_only is None else uk_only
        reports = await asyncio.gather(*(self._run_source(s, name, uk) for s in self.sources))

        result = ScreeningResult()
        for report in reports:
            result.hits.extend(report.hits)
            result.warnings.extend(report.warnings)
            result.summary.extend(report.summary)
        result.hits = dedupe_hits(result.hits)

        logger.info(
            "Trademark screening complete",
            name=name,
            context=context,
            hits=len(result.hits),
            warnings=len(result.warnings)
        )
        self.cache.set(key, result.model_copy(deep=True))
        return result
