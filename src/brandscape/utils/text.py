"""Name normalization helpers shared by the generation and screening stages."""

import re
from typing import Optional

# Business-entity designators that must never trail a suggested name
_SUFFIX_PATTERN = re.compile(
    r"\s+(?:Branding\s+Co\.?|Co\.?|Company|Inc\.?|LLC|Ltd\.?|Design|Studio|Group|"
    r"Solutions|Corp\.?|Corporation)[\s,;:]*$",
    re.IGNORECASE,
)
_NUMBERING_PATTERN = re.compile(r"^\s*\d+\s*[\.\)]\s*")
_TRAILING_JOINER = re.compile(r"\s*(?:&|\+|,|-|\band)\s*$", re.IGNORECASE)
_WRAPPING_CHARS = "\"'`*_ \t"


def strip_suffixes(name: Optional[str]) -> str:
    """Remove trailing company-designator tokens until none remain.

    Stripping repeats until the value is stable, so applying it twice gives the
    same result as applying it once.
    """
    if not name:
        return ""
    cleaned = str(name).strip()
    while True:
        stripped = _SUFFIX_PATTERN.sub("", cleaned).strip()
        if stripped == cleaned:
            return cleaned
        cleaned = stripped


def clean_title(name: Optional[str]) -> str:
    """Normalize a generated title: drop numbering, wrapping quotes, entity suffixes and dangling joiners."""
    if not name:
        return ""
    cleaned = str(name).strip()
    previous = None
    while cleaned != previous:
        previous = cleaned
        cleaned = _NUMBERING_PATTERN.sub("", cleaned)
        cleaned = cleaned.strip(_WRAPPING_CHARS)
        cleaned = strip_suffixes(cleaned)
        cleaned = _TRAILING_JOINER.sub("", cleaned)
    return cleaned


def normalize_key(value: Optional[str]) -> str:
    """Lowercase, trim and collapse whitespace; used for cache keys and seen-title tracking."""
    return re.sub(r"\s+", " ", str(value or "").strip().lower())


def domain_base(name: Optional[str]) -> str:
    """Compact a name into the label checked against each TLD.

    A name containing ``&`` is spelled with "and" instead; only that variant is used.
    """
    text = str(name or "").lower()
    if "&" in text:
        text = text.replace("&", " and ")
    return "".join(re.sub(r"[^a-z0-9]+", " ", text).split())
