"""Best-effort recovery of name suggestions from malformed model output.

Used only after the strict parser has failed every attempt. Nothing here
validates counts or formats; whatever can be recovered is returned and the
caller marks it as lower confidence.
"""

import json
import re
import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

_NUMBERED_TITLE = re.compile(r'"(\d+\.\s[^"}]+)"\s*,?')
_DESCRIPTION_FIELD = re.compile(r'"description"\s*:\s*"([^"]+)"')
_NAME_FIELD = re.compile(r'"(?:title|name)"\s*:\s*"([^"]+)"')
_SHORT_LINE = re.compile(r"^[A-Za-z0-9\-\s]{2,40}$")

MAX_SALVAGED_MATCHES = 10


def fix_unescaped_quotes(json_str: str) -> Optional[Any]:
    """Try the quote-repair rewrites on a JSON string with stray inner quotes.

    Returns the parsed value, or None when neither rewrite produces valid JSON.
    """
    text = json_str.strip()
    if text.startswith("```"):
        text = re.sub(r"^```(?:json)?\s*|```$", "", text).strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    # Single stray quoted phrase inside a string value
    simple = re.sub(r'("[\w_]+"\s*:\s*"[^"]*)"([^"]*)"([^"]*)', r"\1'\2'\3", text)
    try:
        return json.loads(simple)
    except json.JSONDecodeError:
        pass

    def replace_inner_quotes(match):
        fixed_value = match.group(2).replace('"', "'")
        return f'"{match.group(1)}":"{fixed_value}"'

    aggressive = re.sub(r'"([\w_]+)"\s*:\s*"(.+?)"(?=\s*,|\s*})', replace_inner_quotes, text, flags=re.DOTALL)
    try:
        return json.loads(aggressive)
    except json.JSONDecodeError:
        return None


def salvage_numbered_pairs(text: str, limit: int = 5) -> List[Dict[str, str]]:
    """Pair quoted ``"1. Title"`` strings with ``"description"`` fields in order."""
    titles = _NUMBERED_TITLE.findall(text)[:MAX_SALVAGED_MATCHES]
    descriptions = _DESCRIPTION_FIELD.findall(text)[:MAX_SALVAGED_MATCHES]
    if not titles:
        return []
    pairs = []
    for i, title in enumerate(titles[:limit]):
        description = descriptions[i] if i < len(descriptions) else ""
        pairs.append({"title": title.strip(), "description": description.strip()})
    return pairs


def salvage_name_fields(text: str, limit: int = 5) -> List[Dict[str, str]]:
    """Collect ``"title": "..."`` / ``"name": "..."`` values, pairing descriptions when present."""
    names = _NAME_FIELD.findall(text)[:MAX_SALVAGED_MATCHES]
    descriptions = _DESCRIPTION_FIELD.findall(text)[:MAX_SALVAGED_MATCHES]
    paired = len(descriptions) == len(names)
    return [
        {"title": name.strip(), "description": descriptions[i].strip() if paired else ""}
        for i, name in enumerate(names[:limit])
    ]


def salvage_short_lines(text: str, limit: int = 5) -> List[Dict[str, str]]:
    """Treat short plain alphanumeric lines as bare names."""
    found = []
    for line in text.splitlines():
        candidate = line.strip()
        if candidate and _SHORT_LINE.match(candidate):
            found.append({"title": candidate, "description": ""})
        if len(found) >= limit:
            break
    return found


def _from_repaired(text: str, limit: int) -> List[Dict[str, str]]:
    repaired = fix_unescaped_quotes(text)
    if isinstance(repaired, dict):
        repaired = repaired.get("suggestions")
    if not isinstance(repaired, list):
        return []
    results = []
    for item in repaired[:limit]:
        if isinstance(item, dict) and (item.get("title") or item.get("name")):
            results.append({
                "title": str(item.get("title") or item.get("name")).strip(),
                "description": str(item.get("description") or "").strip(),
            })
    return results


def salvage_name_suggestions(raw: Optional[str], limit: int = 5) -> List[Dict[str, str]]:
    """Run the salvage heuristics in order and return the first non-empty result.

    Order: quote repair, numbered title/description pairs, title/name fields,
    short plain lines.
    """
    text = raw or ""
    if not text.strip():
        return []

    strategies = [
        ("quote_repair", _from_repaired),
        ("numbered_pairs", salvage_numbered_pairs),
        ("name_fields", salvage_name_fields),
        ("short_lines", salvage_short_lines),
    ]
    for label, strategy in strategies:
        results = [r for r in strategy(text, limit) if r["title"]]
        if results:
            logger.info(f"Salvaged {len(results)} name suggestions using {label}")
            return results

    logger.warning("No name suggestions could be salvaged")
    return []
