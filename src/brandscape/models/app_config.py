from typing import Dict, List
from pydantic import BaseModel, Field


class TrademarkSimilarityConfig(BaseModel):
    """Thresholds for the "confusingly similar" trademark heuristic.

    These are tuning knobs rather than legal rules, so they are kept here instead of
    being hard-coded into the analysis.
    """

    min_word_length: int = Field(3, description="Minimum length of a significant word in the candidate name")
    min_context_word_length: int = Field(4, description="Minimum length of a business-context keyword")
    min_matching_words: int = Field(2, description="Matching significant words that alone flag a hit")
    min_match_ratio: float = Field(0.5, description="Share of significant words that alone flags a hit")
    context_matching_words: int = Field(1, description="Matching words that flag a hit when the business context also matches")
    phonetic_substitutions: List[List[str]] = Field(
        default_factory=lambda: [["ph", "f"], ["ck", "k"], ["x", "ks"]],
        description="Letter substitutions treated as sounding alike"
    )


class AppConfig(BaseModel):
    """Application configuration settings for the brand generation pipeline.

    This class defines the tunable parameters of each pipeline stage: how many
    candidates to produce, how retrieval is shaped, sampling temperatures, retry
    bounds and the fixed image generation parameters.
    """

    # General app settings
    debug_mode: bool = Field(False, description="Enable debug mode for detailed logging")

    # Generation configuration
    suggestion_count: int = Field(5, description="Name candidates per generation call")
    palette_count: int = Field(5, description="Color palettes per generation call")
    max_generation_attempts: int = Field(3, description="Attempts per generation stage before salvage/fallback")
    exclusion_window: int = Field(25, description="Most recent seen titles passed to the generator on refresh")

    # Retrieval configuration
    chunk_size: int = Field(500, description="Characters per context chunk")
    chunk_overlap: int = Field(20, description="Characters shared by neighbouring chunks")
    top_k: int = Field(5, description="Chunks kept for the generation context")
    max_search_queries: int = Field(4, description="Live web searches per retrieval")
    search_results_per_query: int = Field(3, description="Results kept per live web search")

    # Stage-specific temperature settings
    stage_temperatures: Dict[str, float] = Field(
        default_factory=lambda: {
            "name_generation": 0.0,
            "color_palette": 0.7,
            "logo_prompt": 0.0,
        },
        description="Temperature settings for individual generation stages"
    )
    temperature: float = Field(0.7, description="Default temperature setting for LLM")

    def get_temperature_for_stage(self, stage: str) -> float:
        """Get the temperature setting for a specific generation stage.

        Args:
            stage (str): The name of the stage

        Returns:
            float: The stage temperature, or the default temperature if not configured
        """
        return self.stage_temperatures.get(stage, self.temperature)

    # Screening configuration
    domain_tlds: List[str] = Field(default_factory=lambda: ["com", "co.uk", "uk"], description="TLDs checked per name")
    trademark_uk_only: bool = Field(True, description="Restrict web trademark searches to UK-focused queries")
    trademark_results_per_query: int = Field(8, description="Web results per trademark query")
    euipo_max_results: int = Field(20, description="Rows requested from the EUIPO search API")
    trademark_similarity: TrademarkSimilarityConfig = Field(default_factory=TrademarkSimilarityConfig)
    screen_logo_after_generation: bool = Field(True, description="Run reverse-image screening after each logo")

    # Image generation parameters
    image_width: int = Field(1024, description="Logo width in pixels")
    image_height: int = Field(1024, description="Logo height in pixels")
    image_guidance_scale: float = Field(3.5, description="Guidance scale sent to the image model")
    image_steps: int = Field(28, description="Inference steps sent to the image model")
    image_format: str = Field("png", description="Preferred artifact format")
    name_colors_in_image_prompt: bool = Field(False, description="Add color names next to hex codes before image generation")
