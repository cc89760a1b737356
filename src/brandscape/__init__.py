"""
Brandscape - a name, color and logo assistant with trademark and domain screening.
"""

from .models.brand import BusinessBrief, ColorPalette, LogoImage, LogoPrompt, NameCandidate
from .models.state import BrandSession, PipelineStage

__version__ = "0.1.0"

__all__ = [
    "BusinessBrief",
    "ColorPalette",
    "LogoImage",
    "LogoPrompt",
    "NameCandidate",
    "BrandSession",
    "PipelineStage",
    "BrandPipeline",
]


# Pipeline import pulls in the model and search clients; load it on first use
def __getattr__(name):
    if name == "BrandPipeline":
        from .workflows.brand_pipeline import BrandPipeline
        return BrandPipeline
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
