"""Color Palette Expert for recommending primary/accent color pairs."""

from typing import List, Optional

from ..config.settings import settings
from ..errors import GenerationBackendError, GenerationFailed, ParseError
from ..models.app_config import AppConfig
from ..models.brand import BusinessBrief, ColorPalette, NameCandidate
from ..services.llm import GenerationClient
from ..services.retriever import ContextRetriever, RetrievalSources
from ..utils.agent_helpers import StageOutput, dump_raw_output, retrieve_context
from ..utils.colors import palette_families
from ..utils.json_parser import parse_palette_lines, split_name_pair
from ..utils.logging import get_logger
from ..utils.template_utils import load_stage_prompts

logger = get_logger(__name__)

STAGE = "color_palette"

# (hex1, hex2, name pair, explanation) used when generation fails outright
DEFAULT_PALETTES = [
    ("#0B5394", "#F4B183", "Deep Navy & Warm Apricot", "Trustworthy and approachable."),
    ("#18AF6E", "#FF6F61", "Forest Green & Coral", "Growth with friendly warmth."),
    ("#F1C232", "#6D9EEB", "Goldenrod & Sky Blue", "Optimistic and modern."),
    ("#2C3E50", "#F7DC6F", "Slate & Warm Yellow", "Calm and optimistic."),
    ("#7F3FBF", "#FFD166", "Purple & Soft Gold", "Creative and confident."),
]


def default_palettes() -> List[ColorPalette]:
    """The fixed fallback set, flagged as such."""
    palettes = []
    for hex1, hex2, name_pair, explanation in DEFAULT_PALETTES:
        name1, name2 = split_name_pair(name_pair)
        palette = ColorPalette(
            hex1=hex1, hex2=hex2, name_pair=name_pair, name1=name1, name2=name2,
            explanation=explanation, fallback=True
        )
        palettes.append(palette.model_copy(update={"raw": palette.as_line()}))
    return palettes


class ColorPaletteExpert:
    """Recommends five distinct color pairs grounded in color-psychology context."""

    def __init__(
        self,
        generator: GenerationClient,
        retriever: ContextRetriever,
        app_config: Optional[AppConfig] = None,
        reference_urls: Optional[List[str]] = None,
        raw_dump_dir: Optional[str] = None
    ):
        self.generator = generator
        self.retriever = retriever
        self.config = app_config or AppConfig()
        self.reference_urls = list(settings.color_reference_urls if reference_urls is None else reference_urls)
        self.raw_dump_dir = raw_dump_dir
        self.prompts = load_stage_prompts(STAGE)

    @staticmethod
    def search_queries(name: NameCandidate, brief: BusinessBrief) -> List[str]:
        queries = []
        for value in brief.brand_values:
            queries.append(f'"{value}" color psychology brand colors')
            queries.append(f"colors that represent {value} in branding")
        if name.description:
            queries.append(f'"{name.title}" brand colors {name.description}')
        return queries

    @staticmethod
    def retrieval_query(name: NameCandidate, brief: BusinessBrief) -> str:
        query = f'color psychology and associations for a business named "{name.title}"'
        if name.description:
            query += f" - {name.description}"
        if brief.brand_values:
            query += f" Brand values: {', '.join(brief.brand_values)}."
        return query

    async def generate_palettes(self, name: NameCandidate, brief: BusinessBrief) -> StageOutput[ColorPalette]:
        """
        Generate validated palettes for the selected name.

        Raises:
            GenerationFailed: If every attempt fails validation; the caller substitutes the defaults
        """
        count = self.config.palette_count
        sources = RetrievalSources(urls=self.reference_urls, search_queries=self.search_queries(name, brief))
        context, warnings = await retrieve_context(self.retriever, sources, self.retrieval_query(name, brief))

        values_part = f"\nBrand values: {', '.join(brief.brand_values)}" if brief.brand_values else ""
        user_prompt = self.prompts["human"].format(
            context=context,
            title=name.title,
            description=name.description or "",
            values_part=values_part,
            palette_count=count,
        )
        system_prompt = self.prompts["system"].format()
        temperature = self.config.get_temperature_for_stage(STAGE)

        last_raw = ""
        last_error: Optional[Exception] = None
        for attempt in range(1, self.config.max_generation_attempts + 1):
            try:
                raw = await self.generator.generate(system_prompt, user_prompt, temperature)
                last_raw = raw
                palettes = parse_palette_lines(raw, count)
            except (GenerationBackendError, ParseError) as e:
                last_error = e
                logger.warning("Colour pair format validation failed", attempt=attempt, error=str(e))
                continue

            families = palette_families(palettes)
            if len(families) < 2:
                logger.info("Palettes cover a narrow range of color families", families=sorted(families))
            return StageOutput(items=palettes, prompt=user_prompt, warnings=warnings)

        dump_path = dump_raw_output("colors", last_raw, self.raw_dump_dir) if last_raw else None
        raise GenerationFailed(
            "colors",
            f"no valid palettes after {self.config.max_generation_attempts} attempts ({last_error})",
            prompt=user_prompt,
            dump_path=dump_path
        )
