"""Stage experts for the Brandscape generation pipeline."""

from .color_palette_expert import ColorPaletteExpert, default_palettes
from .logo_prompt_expert import LogoPromptExpert
from .name_generation_expert import NameGenerationExpert

__all__ = [
    "ColorPaletteExpert",
    "LogoPromptExpert",
    "NameGenerationExpert",
    "default_palettes",
]
