"""Strict parsers for the structured outputs the generation stages request.

Everything here either returns exactly what the stage asked for or raises
``ParseError``. Best-effort recovery lives in ``brandscape.utils.salvage``.
"""

import json
import re
import logging
from typing import Any, Dict, List, Optional

from ..errors import ParseError, ParseErrorKind
from ..models.brand import ColorPalette

logger = logging.getLogger(__name__)

PALETTE_LINE_PATTERN = re.compile(
    r"^#([0-9A-F]{6})\s*,\s*#([0-9A-F]{6})\s*-\s*([^\-]{3,80}?)\s*-\s*(.{15,500})$",
    re.IGNORECASE,
)
_NAME_SPLIT_PATTERN = re.compile(r"\s*(?:&|\band\b|\+|/)\s*", re.IGNORECASE)


def try_parse_json(json_str: str):
    """Attempt to parse JSON string directly."""
    try:
        return True, json.loads(json_str)
    except (json.JSONDecodeError, TypeError):
        return False, None


def extract_json_from_markdown(text: str) -> Optional[str]:
    """Extract the body of the first fenced code block, with or without a ``json`` tag."""
    match = re.search(r"```(?:json|JSON)?\s*\n?([\s\S]*?)```", text)
    if match:
        return match.group(1).strip()
    return None


def extract_balanced_object(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` substring, honouring quoted strings."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for pos in range(start, len(text)):
            char = text[pos]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start:pos + 1]
        # Unbalanced from this brace; try the next opening brace
        start = text.find("{", start + 1)
    return None


def parse_json_object(raw: Optional[str]) -> Any:
    """Parse a model response as JSON.

    Tries the whole text, then a markdown code fence, then the first balanced
    object embedded in prose.

    Raises:
        ParseError: with kind ``NO_JSON_FOUND`` when none of the strategies parse.
    """
    text = (raw or "").strip()
    if not text:
        raise ParseError(ParseErrorKind.NO_JSON_FOUND, "empty response")

    success, parsed = try_parse_json(text)
    if success:
        return parsed

    fenced = extract_json_from_markdown(text)
    if fenced:
        success, parsed = try_parse_json(fenced)
        if success:
            logger.debug("Parsed JSON from markdown code block")
            return parsed

    candidate = extract_balanced_object(fenced or text)
    if candidate is None and fenced:
        candidate = extract_balanced_object(text)
    if candidate is not None:
        success, parsed = try_parse_json(candidate)
        if success:
            logger.debug("Parsed JSON from embedded object")
            return parsed

    raise ParseError(ParseErrorKind.NO_JSON_FOUND, "no parseable JSON object in response")


def _suggestion_list(parsed: Any) -> Optional[List[Any]]:
    if isinstance(parsed, list):
        return parsed
    if not isinstance(parsed, dict):
        return None
    suggestions = parsed.get("suggestions")
    if isinstance(suggestions, list):
        return suggestions
    # Some backends wrap the payload in a "response" string
    nested = parsed.get("response")
    if isinstance(nested, str):
        try:
            return _suggestion_list(parse_json_object(nested))
        except ParseError:
            return None
    if isinstance(nested, (dict, list)):
        return _suggestion_list(nested)
    return None


def parse_name_suggestions(raw: Optional[str], expected: int = 5) -> List[Dict[str, str]]:
    """Parse ``{"suggestions": [{"title", "description"}]}`` into title/description dicts.

    At least ``expected`` entries with a non-empty title are required; the first
    ``expected`` are returned. Titles are returned as given; normalization is the
    caller's job.
    """
    parsed = parse_json_object(raw)
    items = _suggestion_list(parsed)
    if items is None:
        raise ParseError(ParseErrorKind.FORMAT_MISMATCH, "response has no suggestions array")

    suggestions = []
    for item in items:
        if isinstance(item, dict):
            title = item.get("title") or item.get("name") or ""
            description = item.get("description") or ""
        elif isinstance(item, str):
            title, description = item, ""
        else:
            continue
        title = str(title).strip()
        if title:
            suggestions.append({"title": title, "description": str(description).strip()})

    if len(suggestions) < expected:
        raise ParseError(
            ParseErrorKind.FORMAT_MISMATCH,
            f"expected {expected} suggestions, got {len(suggestions)}"
        )
    return suggestions[:expected]


def split_name_pair(name_pair: str) -> List[str]:
    """Split "Deep Navy & Warm Apricot" into its two color names."""
    parts = [p.strip() for p in _NAME_SPLIT_PATTERN.split(name_pair.strip(), maxsplit=1) if p.strip()]
    if len(parts) == 2:
        return parts
    return [name_pair.strip(), ""]


def parse_palette_line(line: str) -> ColorPalette:
    """Parse one ``#HEX1,#HEX2 - Name & Name - explanation`` line."""
    match = PALETTE_LINE_PATTERN.match(line.strip())
    if not match:
        raise ParseError(ParseErrorKind.FORMAT_MISMATCH, f"palette line does not match format: {line[:80]!r}")
    hex1, hex2, name_pair, explanation = match.groups()
    name1, name2 = split_name_pair(name_pair)
    return ColorPalette(
        hex1=f"#{hex1}",
        hex2=f"#{hex2}",
        name_pair=name_pair.strip(),
        name1=name1,
        name2=name2,
        explanation=explanation.strip(),
        raw=line.strip(),
    )


def parse_palette_lines(raw: Optional[str], expected: int = 5) -> List[ColorPalette]:
    """Parse exactly ``expected`` palette lines with mutually distinct hex pairs."""
    lines = [line.strip() for line in (raw or "").splitlines() if line.strip()]
    if len(lines) != expected:
        raise ParseError(
            ParseErrorKind.FORMAT_MISMATCH,
            f"expected {expected} palette lines, got {len(lines)}"
        )

    palettes = [parse_palette_line(line) for line in lines]
    pairs = {(p.hex1, p.hex2) for p in palettes}
    if len(pairs) != len(palettes):
        raise ParseError(ParseErrorKind.FORMAT_MISMATCH, "palette hex pairs are not distinct")
    return palettes
