"""Models package for the Brandscape application."""

from .app_config import AppConfig, TrademarkSimilarityConfig
from .brand import (
    BusinessBrief,
    ColorPalette,
    ContextChunk,
    DomainStatus,
    LogoImage,
    LogoPrompt,
    LogoScreening,
    NameCandidate,
    ScreeningHit,
    ScreeningResult,
    TrademarkReport,
)
from .state import BrandSession, PipelineStage

# Export commonly used classes at the package level
__all__ = [
    "AppConfig",
    "TrademarkSimilarityConfig",
    "BusinessBrief",
    "ColorPalette",
    "ContextChunk",
    "DomainStatus",
    "LogoImage",
    "LogoPrompt",
    "LogoScreening",
    "NameCandidate",
    "ScreeningHit",
    "ScreeningResult",
    "TrademarkReport",
    "BrandSession",
    "PipelineStage",
]
