"""Reverse-image screening of generated logos."""

from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

from ..config.settings import settings
from ..errors import SourceUnavailable
from ..models.brand import LogoScreening, ScreeningHit
from ..utils.cache import TTLCache
from ..utils.logging import get_logger
from .search import SerpApiClient

logger = get_logger(__name__)

VISUAL_DISCLAIMER = "⚠️ DISCLAIMER: This is a visual similarity check only, not a legal trademark clearance."
MISSING_KEY_WARNING = "SERPAPI_KEY not set; cannot perform reverse image search for logo screening."

_TRADEMARK_KEYWORDS = ("trademark", "trade mark", "ipo.gov.uk", "trademark database", "registered mark")


def is_trademark_related(hit: ScreeningHit) -> bool:
    """Whether a visual match looks like it comes from a trademark record or brand logo."""
    combined = " ".join([hit.title or "", hit.url or "", hit.snippet or ""]).lower()
    if any(keyword in combined for keyword in _TRADEMARK_KEYWORDS):
        return True
    return "logo" in combined and ("brand" in combined or "company" in combined)


def absolute_url(locator: str, base_url: Optional[str] = None) -> str:
    """Turn an artifact route like ``/api/logo/x.png`` into a URL the search API can fetch."""
    if locator.startswith(("http://", "https://")):
        return locator
    base = (base_url or settings.public_base_url).rstrip("/") + "/"
    return urljoin(base, locator.lstrip("/"))


def build_notes(hits: List[ScreeningHit], related: List[ScreeningHit], warnings: List[str]) -> str:
    lines = []
    if warnings and not hits:
        lines.append("Logo trademark check unavailable")
    elif not hits:
        lines.append("No visually similar logos found in search results.")
    else:
        lines.append(f"Found {len(hits)} visually similar image(s) in search results.")
        if related:
            lines.append(f"{len(related)} result(s) appear to be trademark-related:")
            for i, hit in enumerate(related[:5], 1):
                lines.append(f"{i}) {hit.title or 'No title'}" + (f" - {hit.url}" if hit.url else ""))
        else:
            lines.append("None of the similar images appear to be from trademark databases.")
            for i, hit in enumerate(hits[:3], 1):
                lines.append(f"{i}) {hit.title or 'No title'}" + (f" - {hit.snippet}" if hit.snippet else ""))
    lines.append(VISUAL_DISCLAIMER)
    return "\n".join(lines)


class LogoScreener:
    """Google Lens reverse-image search over a logo, cached per image URL."""

    def __init__(self, client: SerpApiClient, cache: TTLCache, base_url: Optional[str] = None):
        self.client = client
        self.cache = cache
        self.base_url = base_url

    @staticmethod
    def parse_matches(body: Dict[str, Any]) -> List[ScreeningHit]:
        hits = []
        for match in body.get("visual_matches") or []:
            if not isinstance(match, dict):
                continue
            hits.append(ScreeningHit(
                title=match.get("title") or "",
                url=match.get("link") or "",
                snippet=match.get("source") or "",
                source="serpapi_images",
                raw=match,
            ))
        return hits

    async def screen_logo_image(self, locator: str, uk_only: bool = True) -> LogoScreening:
        """
        Screen a logo for visually similar marks.

        Args:
            locator: Public URL or server route of the logo artifact
            uk_only: Localize the search to the UK

        Returns:
            LogoScreening: Matches, trademark-related subset, warnings and notes ending with the disclaimer
        """
        image_url = absolute_url(locator, self.base_url)
        key = f"logo:{image_url}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached.model_copy(update={"cached": True}, deep=True)

        hits: List[ScreeningHit] = []
        warnings: List[str] = []
        summary: List[str] = []
        if not self.client.configured:
            warnings.append(MISSING_KEY_WARNING)
        else:
            try:
                body = await self.client.reverse_image_search(image_url, uk_only=uk_only)
                hits = self.parse_matches(body)
                graph = body.get("knowledge_graph")
                if graph:
                    title = graph.get("title") if isinstance(graph, dict) else None
                    summary.append(f"Found knowledge graph data: {title or 'N/A'}")
            except SourceUnavailable as e:
                logger.warning("Logo image search failed", image_url=image_url, error=e.reason)
                warnings.append(f"SerpAPI image search failed: {e.reason}")

        related = [h for h in hits if is_trademark_related(h)]
        screening = LogoScreening(
            image_url=image_url,
            hits=hits,
            warnings=warnings,
            summary=summary,
            trademark_related=related,
            notes=build_notes(hits, related, warnings),
        )
        logger.info("Logo screening complete", image_url=image_url, matches=len(hits), trademark_related=len(related))
        self.cache.set(key, screening.model_copy(deep=True))
        return screening
