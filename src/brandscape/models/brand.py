"""Records passed between the pipeline stages."""

import re
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

HEX_PATTERN = re.compile(r"^#[0-9A-F]{6}$")

MAX_DESCRIPTION_WORDS = 5
MAX_KEYWORDS = 2


def normalize_hex(value: Any) -> Optional[str]:
    """Return ``#RRGGBB`` in upper case, or None when the value is not a 6-digit hex color."""
    if not value:
        return None
    text = str(value).strip().upper()
    if not text.startswith("#"):
        text = "#" + text
    if HEX_PATTERN.match(text):
        return text
    return None


class BusinessBrief(BaseModel):
    """What the user told us about their business."""

    model_config = ConfigDict(frozen=True)

    description: str = Field(description="Short business description (first five words)")
    visuals: List[str] = Field(default_factory=list, description="Visual elements that represent the business")
    brand_values: List[str] = Field(default_factory=list, description="Brand values")

    @field_validator("description")
    @classmethod
    def _limit_description(cls, value: str) -> str:
        words = [w for w in str(value or "").split() if w]
        if not words:
            raise ValueError("business description must not be empty")
        return " ".join(words[:MAX_DESCRIPTION_WORDS])

    @field_validator("visuals", "brand_values")
    @classmethod
    def _limit_keywords(cls, value: List[str]) -> List[str]:
        cleaned = [str(v).strip() for v in (value or []) if str(v).strip()]
        return cleaned[:MAX_KEYWORDS]

    @staticmethod
    def parse_visuals(raw: Optional[str]) -> List[str]:
        """Split a comma-separated visuals answer."""
        return [s.strip() for s in (raw or "").split(",") if s.strip()][:MAX_KEYWORDS]

    @staticmethod
    def parse_brand_values(raw: Optional[str]) -> List[str]:
        """Split a brand values answer on commas, slashes or the word "and"."""
        raw = (raw or "").strip()
        if not raw:
            return []
        values = [s.strip() for s in re.split(r",|\band\b|/", raw, flags=re.IGNORECASE) if s.strip()]
        if not values:
            fallback = " ".join(raw.split()[:MAX_KEYWORDS])
            return [fallback] if fallback else []
        return values[:MAX_KEYWORDS]

    @classmethod
    def from_answers(cls, description: str, visuals: Optional[str] = None, brand_values: Optional[str] = None) -> "BusinessBrief":
        """Build a brief from the three free-text wizard answers."""
        return cls(
            description=description,
            visuals=cls.parse_visuals(visuals),
            brand_values=cls.parse_brand_values(brand_values),
        )


class ContextChunk(BaseModel):
    """A ranked fragment of retrieved text."""

    content: str
    index: int = 0
    embedding: Optional[List[float]] = None
    similarity: Optional[float] = None


class DomainStatus(str, Enum):
    TAKEN = "taken"
    AVAILABLE = "available"
    UNKNOWN = "unknown"


class ScreeningHit(BaseModel):
    """A single search or registry result record."""

    title: str = ""
    url: str = ""
    snippet: str = ""
    source: str = ""
    query: Optional[str] = None
    raw: Optional[Any] = None

    def identity(self) -> str:
        return f"{self.url}|{self.title}".lower()


class ScreeningResult(BaseModel):
    """Aggregate of every screening source for one candidate."""

    hits: List[ScreeningHit] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    summary: List[str] = Field(default_factory=list)
    cached: bool = False


class TrademarkReport(BaseModel):
    """Trademark screening result plus the advisory notes rendered from it."""

    name: str
    result: ScreeningResult
    notes: str

    @property
    def hits(self) -> List[ScreeningHit]:
        return self.result.hits

    @property
    def warnings(self) -> List[str]:
        return self.result.warnings


class LogoScreening(BaseModel):
    """Reverse-image screening result for a generated logo."""

    image_url: str
    hits: List[ScreeningHit] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    summary: List[str] = Field(default_factory=list)
    trademark_related: List[ScreeningHit] = Field(default_factory=list)
    notes: str = ""
    cached: bool = False


class NameCandidate(BaseModel):
    """A generated business name and its screening enrichment."""

    title: str
    description: str = ""
    domains: Dict[str, DomainStatus] = Field(default_factory=dict)
    trademark_notes: Optional[str] = None
    screening: Optional[ScreeningResult] = None
    salvaged: bool = False


class ColorPalette(BaseModel):
    """A primary/accent color pair with its explanation."""

    hex1: str
    hex2: str
    name_pair: str = ""
    name1: str = ""
    name2: str = ""
    explanation: str = ""
    raw: str = ""
    fallback: bool = False

    @field_validator("hex1", "hex2", mode="before")
    @classmethod
    def _validate_hex(cls, value: Any) -> str:
        normalized = normalize_hex(value)
        if normalized is None:
            raise ValueError(f"invalid hex color: {value!r}")
        return normalized

    def as_line(self) -> str:
        return f"{self.hex1},{self.hex2} - {self.name_pair} - {self.explanation}"


class LogoPrompt(BaseModel):
    """Visual-only description used to generate the logo image."""

    text: str
    hex1: str
    hex2: str
    includes_hex_codes: bool = True
    edited: bool = False


class LogoImage(BaseModel):
    """A persisted logo artifact."""

    locator: str
    prompt: str
    source_url: Optional[str] = None
    seed: Optional[int] = None
