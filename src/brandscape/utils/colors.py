"""Color helpers: approximate names for hex codes and palette family checks."""

import colorsys
import re
from typing import Iterable, Optional, Set

from ..models.brand import ColorPalette, normalize_hex

NAMED_COLORS = {
    "000000": "black", "FFFFFF": "white", "FF0000": "red", "00FF00": "green",
    "0000FF": "blue", "FFFF00": "yellow", "FF00FF": "magenta", "00FFFF": "cyan",
    "FFA500": "orange", "800080": "purple", "FFC0CB": "pink", "A52A2A": "brown",
    "808080": "gray", "FFD700": "gold", "C0C0C0": "silver", "008000": "dark green",
    "000080": "navy blue", "800000": "maroon", "FF6347": "tomato", "32CD32": "lime green",
    "4169E1": "royal blue", "FF1493": "deep pink", "00CED1": "dark turquoise",
    "FF8C00": "dark orange", "2E8B57": "sea green", "4682B4": "steel blue",
    "DC143C": "crimson", "8B008B": "dark magenta", "556B2F": "dark olive green",
    "B8860B": "dark goldenrod",
}

# (predicate over r, g, b, name); first match wins
_RGB_RULES = [
    (lambda r, g, b: r > 200 and g < 100 and b < 100, "red"),
    (lambda r, g, b: r < 100 and g > 200 and b < 100, "green"),
    (lambda r, g, b: r < 100 and g < 100 and b > 200, "blue"),
    (lambda r, g, b: r > 200 and g > 200 and b < 100, "yellow"),
    (lambda r, g, b: r > 200 and g < 100 and b > 200, "magenta"),
    (lambda r, g, b: r < 100 and g > 200 and b > 200, "cyan"),
    (lambda r, g, b: r > 200 and g > 150 and b < 100, "orange"),
    (lambda r, g, b: r > 150 and g < 100 and b > 150, "purple"),
    (lambda r, g, b: r > 200 and g > 150 and b > 150, "pink"),
    (lambda r, g, b: r < 150 and g < 150 and b < 150, "dark"),
    (lambda r, g, b: r > 200 and g > 200 and b > 200, "light"),
    (lambda r, g, b: r > 100 and g < 80 and b < 80, "dark red"),
    (lambda r, g, b: r < 80 and g > 100 and b < 80, "dark green"),
    (lambda r, g, b: r < 80 and g < 80 and b > 100, "dark blue"),
]


def _rgb(hex_code: str):
    h = hex_code.lstrip("#")
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def hex_to_color_name(hex_code: Optional[str]) -> str:
    """Return a rough human name for a hex color ("unknown" when it is not one)."""
    normalized = normalize_hex(hex_code)
    if normalized is None:
        return "unknown"
    key = normalized[1:]
    if key in NAMED_COLORS:
        return NAMED_COLORS[key]

    r, g, b = _rgb(key)
    for predicate, name in _RGB_RULES:
        if predicate(r, g, b):
            return name

    if r > g and r > b:
        return "warm red-orange" if g > b else "red"
    if g > r and g > b:
        return "yellow-green" if r > b else "green"
    if b > r and b > g:
        return "purple-blue" if r > g else "blue"
    return "neutral"


def enhance_prompt_with_color_names(prompt: str, hex1: Optional[str], hex2: Optional[str]) -> str:
    """Put color names next to the hex codes so the image model reads them as colors."""
    hex1, hex2 = normalize_hex(hex1), normalize_hex(hex2)
    if not hex1 or not hex2:
        return prompt

    name1, name2 = hex_to_color_name(hex1), hex_to_color_name(hex2)
    instruction = f"Use {name1} color ({hex1}) as primary and {name2} color ({hex2}) as accent. "

    lowered = prompt.lower()
    if hex1.lower() in lowered or hex2.lower() in lowered:
        enhanced = re.sub(re.escape(hex1), f"{name1} ({hex1})", prompt, flags=re.IGNORECASE)
        enhanced = re.sub(re.escape(hex2), f"{name2} ({hex2})", enhanced, flags=re.IGNORECASE)
    else:
        enhanced = instruction + prompt

    if "primary" not in enhanced.lower() and "accent" not in enhanced.lower():
        enhanced = instruction + enhanced
    return enhanced


def color_family(hex_code: str) -> str:
    """Classify a color as warm, cool or neutral from its hue and saturation."""
    r, g, b = _rgb(normalize_hex(hex_code) or "#808080")
    hue, lightness, saturation = colorsys.rgb_to_hls(r / 255, g / 255, b / 255)
    if saturation < 0.15 or lightness < 0.12 or lightness > 0.95:
        return "neutral"
    degrees = hue * 360
    if degrees < 75 or degrees >= 285:
        return "warm"
    return "cool"


def palette_families(palettes: Iterable[ColorPalette]) -> Set[str]:
    """Families covered by the primary colors of a palette set."""
    return {color_family(p.hex1) for p in palettes}
