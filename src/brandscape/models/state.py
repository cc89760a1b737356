from datetime import datetime
from enum import Enum
from typing import List, Optional, Set
from typing_extensions import TypedDict
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from .brand import (
    BusinessBrief,
    ColorPalette,
    LogoImage,
    LogoPrompt,
    LogoScreening,
    NameCandidate,
)


class PipelineStage(str, Enum):
    INTAKE = "intake"
    NAMES = "names"
    NAME_SELECTED = "name_selected"
    COLORS = "colors"
    COLOR_SELECTED = "color_selected"
    LOGO_PROMPT = "logo_prompt"
    LOGO_IMAGE = "logo_image"
    LOGO_SCREENED = "logo_screened"


class ErrorInfo(TypedDict, total=True):
    """Type definition for error information."""
    step: str
    error: str
    timestamp: str


def generate_session_id(prefix: str = "brand") -> str:
    """Generate a unique session ID with timestamp and UUID."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{prefix}_{timestamp}_{str(uuid4())[:8]}"


class BrandSession(BaseModel):
    """State carried through one brand-generation journey."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    session_id: str = Field(default_factory=generate_session_id, description="Unique identifier for this journey")
    stage: PipelineStage = Field(default=PipelineStage.INTAKE, description="Current pipeline stage")
    brief: Optional[BusinessBrief] = Field(default=None, description="Captured business brief")
    seen_titles: Set[str] = Field(default_factory=set, description="Lowercase titles already suggested")
    seen_order: List[str] = Field(default_factory=list, description="Seen titles in the order they were suggested")
    candidates: List[NameCandidate] = Field(default_factory=list, description="Current name candidates")
    selected_name: Optional[NameCandidate] = Field(default=None, description="The chosen name")
    palettes: List[ColorPalette] = Field(default_factory=list, description="Current palette candidates")
    selected_palette: Optional[ColorPalette] = Field(default=None, description="The chosen palette")
    logo_prompt: Optional[LogoPrompt] = Field(default=None, description="Generated or edited logo prompt")
    logo_image: Optional[LogoImage] = Field(default=None, description="Most recent logo artifact")
    logo_screening: Optional[LogoScreening] = Field(default=None, description="Reverse-image screening of the logo")
    errors: List[ErrorInfo] = Field(default_factory=list, description="Errors encountered during the journey")

    def track_titles(self, candidates: List[NameCandidate]) -> None:
        """Add candidate titles to the append-only seen set."""
        for candidate in candidates:
            title = (candidate.title or "").strip().lower()
            if title and title not in self.seen_titles:
                self.seen_titles.add(title)
                self.seen_order.append(title)

    def recent_titles(self, window: int) -> List[str]:
        return self.seen_order[-window:] if window > 0 else []

    def record_error(self, step: str, error: Exception) -> None:
        self.errors.append({
            "step": step,
            "error": str(error),
            "timestamp": datetime.now().isoformat()
        })
