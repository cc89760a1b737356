"""Advisory trademark notes built from a screening result.

The notes classify the exact-match situation (official registry, general web
results only, or none) and point out confusingly similar marks. Every note
string ends with the disclaimer line.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..models.app_config import TrademarkSimilarityConfig
from ..models.brand import ScreeningHit, ScreeningResult
from ..utils.logging import get_logger

logger = get_logger(__name__)

DISCLAIMER = "DISCLAIMER: This is not a legal clearance."

OFFICIAL_SOURCES = {"euipo_api", "uk_ipo_web"}
OFFICIAL_DOMAINS = ("ipo.gov.uk", "gov.uk", "euipo.europa.eu", "tmview.europa.eu")

_TITLE_NOISE = [
    r"\btrademark\b", r"\btrade\s+mark\b", r"\bipo\b", r"\bsearch\b",
    r"\bresults?\b", r"\bfor\b", r"\bthe\b",
]
_QUOTED = re.compile(r'"([^"]{3,50})"')
_CAPITALIZED = re.compile(r"\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+){0,3})\b")


@dataclass
class SimilarMark:
    name: str
    context_match: bool
    snippet: str
    url: str


def sounds_similar(word1: str, word2: str, substitutions: Optional[Sequence[Sequence[str]]] = None) -> bool:
    """Loose phonetic match: equality, containment, or equality after a letter substitution."""
    w1 = re.sub(r"[^a-z]", "", (word1 or "").lower())
    w2 = re.sub(r"[^a-z]", "", (word2 or "").lower())
    if not w1 or not w2:
        return False
    if w1 == w2 or w1 in w2 or w2 in w1:
        return True
    for source, target in substitutions or TrademarkSimilarityConfig().phonetic_substitutions:
        for v1, v2 in ((w1.replace(source, target), w2), (w1, w2.replace(source, target))):
            if v1 == v2 or v1 in v2 or v2 in v1:
                return True
    return False


def _hit_text(hit: ScreeningHit) -> str:
    return f"{hit.title or ''} {hit.snippet or ''}".lower()


def is_official_hit(hit: ScreeningHit) -> bool:
    url = (hit.url or "").lower()
    return hit.source in OFFICIAL_SOURCES or any(domain in url for domain in OFFICIAL_DOMAINS)


class TrademarkRiskAnalyzer:
    """Turns screening hits into the human-readable trademark notes."""

    def __init__(self, config: Optional[TrademarkSimilarityConfig] = None):
        self.config = config or TrademarkSimilarityConfig()

    def _similar(self, a: str, b: str) -> bool:
        return sounds_similar(a, b, self.config.phonetic_substitutions)

    def _matches_any(self, matching_words: List[str], text: str) -> bool:
        lowered = text.lower()
        words = lowered.split()
        return any(mw in lowered or any(self._similar(mw, w) for w in words) for mw in matching_words)

    def _similar_name_from(self, hit: ScreeningHit, matching_words: List[str]) -> str:
        title = (hit.title or "").lower()
        snippet = hit.snippet or ""

        if title and len(title) < 150:
            cleaned = title
            for pattern in _TITLE_NOISE:
                cleaned = re.sub(pattern, "", cleaned, flags=re.IGNORECASE)
            cleaned = re.sub(r"\s+", " ", re.sub(r"[:\-–—]", " ", cleaned)).strip()
            if 2 < len(cleaned) < 60:
                title_words = cleaned.split()
                if any(tw in mw or mw in tw or self._similar(mw, tw) for mw in matching_words for tw in title_words):
                    return cleaned

        for match in _QUOTED.finditer(snippet):
            if self._matches_any(matching_words, match.group(1)):
                return match.group(1)

        for match in _CAPITALIZED.finditer(snippet):
            candidate = match.group(1)
            if 3 <= len(candidate) < 50 and self._matches_any(matching_words, candidate):
                return candidate
        return ""

    def find_similar_marks(self, name: str, hits: Sequence[ScreeningHit], business_context: str = "") -> List[SimilarMark]:
        """Find trademark-related hits that are confusingly similar to, but not exactly, ``name``."""
        cfg = self.config
        normalized = re.sub(r"\s+", " ", name.lower().strip())
        name_words = [w for w in normalized.split() if len(w) >= cfg.min_word_length]
        context_words = [w for w in (business_context or "").lower().split() if len(w) >= cfg.min_context_word_length]
        if not name_words:
            return []

        similar = []
        for hit in hits:
            combined = _hit_text(hit)
            url = (hit.url or "").lower()
            trademark_related = (
                "trademark" in combined or "trade mark" in combined
                or "ipo.gov.uk" in url or "trademark" in url
            )
            if not trademark_related or normalized in combined:
                continue

            text_words = combined.split()
            matching = [
                w for w in name_words
                if w in combined or any(self._similar(w, tw) for tw in text_words)
            ]
            if not matching or len(matching) >= len(name_words):
                continue

            ratio = len(matching) / len(name_words)
            context_match = bool(context_words) and any(cw in combined for cw in context_words)
            if not (
                len(matching) >= cfg.min_matching_words
                or ratio >= cfg.min_match_ratio
                or (len(matching) >= cfg.context_matching_words and context_match)
            ):
                continue

            similar_name = self._similar_name_from(hit, matching)
            if similar_name and len(similar_name) > 2:
                similar.append(SimilarMark(similar_name, context_match, (hit.snippet or "")[:120], url))
            elif context_match and len(matching) >= 2:
                similar.append(SimilarMark(" ".join(matching), context_match, (hit.snippet or "")[:120], url))

        return [
            m for m in similar
            if len(m.name.strip()) > 2 and not any(noise in m.name.lower() for noise in ("trademark", "search", "result"))
        ]

    def analyze(self, name: str, result: Optional[ScreeningResult], business_context: str = "") -> str:
        """
        Build the advisory notes for a name.

        Args:
            name: The screened name
            result: Aggregated screening result (may be None or empty)
            business_context: Business description used for context matching

        Returns:
            str: Notes separated by blank lines, always ending with the disclaimer
        """
        hits = list(result.hits) if result else []
        normalized = re.sub(r"\s+", " ", (name or "").lower().strip())
        notes = []

        exact = [h for h in hits if normalized and normalized in _hit_text(h)]
        official = [h for h in exact if is_official_hit(h)]
        if official:
            notes.append(
                f'The exact name "{name}" was found as a registered trademark in official registry '
                f'(UK IPO / EUIPO) search results.'
            )
        elif exact:
            notes.append(
                f'The exact name "{name}" was found in trademark-related search results, '
                f'but not confirmed in official UK IPO records.'
            )
        else:
            notes.append(f'The exact name "{name}" was not found as a registered trademark in the web search results.')

        similar = self.find_similar_marks(name, hits, business_context)
        if similar:
            in_context = [m for m in similar if m.context_match]
            if in_context:
                notes.append(
                    f'Found similar name "{in_context[0].name}" in trademark-related results within the same business context.'
                )
            else:
                notes.append(f'Found similar name "{similar[0].name}" in trademark-related results.')

        notes.append(DISCLAIMER)
        return "\n\n".join(notes)


def analyze_trademark_risk(
    name: str,
    result: Optional[ScreeningResult],
    business_context: str = "",
    config: Optional[TrademarkSimilarityConfig] = None
) -> str:
    """Convenience wrapper around ``TrademarkRiskAnalyzer.analyze``."""
    return TrademarkRiskAnalyzer(config).analyze(name, result, business_context)
