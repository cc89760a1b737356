"""Name Generation Expert for producing business name candidates."""

from typing import Iterable, List, Optional

from ..errors import GenerationBackendError, GenerationFailed, ParseError, ParseErrorKind
from ..models.app_config import AppConfig
from ..models.brand import BusinessBrief, NameCandidate
from ..services.llm import GenerationClient
from ..services.retriever import ContextRetriever, RetrievalSources
from ..utils.agent_helpers import StageOutput, dump_raw_output, retrieve_context
from ..utils.json_parser import parse_name_suggestions
from ..utils.logging import get_logger
from ..utils.salvage import salvage_name_suggestions
from ..utils.template_utils import load_stage_prompts
from ..utils.text import clean_title

logger = get_logger(__name__)

STAGE = "name_generation"


class NameGenerationExpert:
    """Generates short, suffix-free business names from a brief.

    The model is asked for a JSON suggestions list; responses are parsed strictly
    and retried, then salvaged, before the stage is declared failed.
    """

    def __init__(
        self,
        generator: GenerationClient,
        retriever: ContextRetriever,
        app_config: Optional[AppConfig] = None,
        raw_dump_dir: Optional[str] = None
    ):
        self.generator = generator
        self.retriever = retriever
        self.config = app_config or AppConfig()
        self.raw_dump_dir = raw_dump_dir
        self.prompts = load_stage_prompts(STAGE)

    def build_query(self, brief: BusinessBrief, exclude: Optional[Iterable[str]] = None) -> str:
        """Render the user prompt, with an exclusion list when refreshing."""
        visuals_part = f" Visuals: {', '.join(brief.visuals)}." if brief.visuals else ""
        values_part = f" Brand values: {', '.join(brief.brand_values)}." if brief.brand_values else ""
        recent = [t for t in (exclude or []) if t]
        exclusion_part = f" Avoid repeating these exact names: {', '.join(recent)}." if recent else ""
        return self.prompts["human"].format(
            suggestion_count=self.config.suggestion_count,
            business=brief.description,
            visuals_part=visuals_part,
            values_part=values_part,
            exclusion_part=exclusion_part,
        )

    @staticmethod
    def brief_document(brief: BusinessBrief) -> str:
        return " ".join([brief.description, *brief.visuals, *brief.brand_values]).strip()

    @staticmethod
    def to_candidates(suggestions: List[dict], salvaged: bool = False) -> List[NameCandidate]:
        """Clean titles, dropping empty ones and repeats that only differed by suffix or case."""
        candidates = []
        seen = set()
        for suggestion in suggestions:
            title = clean_title(suggestion.get("title"))
            if title and title.lower() not in seen:
                seen.add(title.lower())
                candidates.append(NameCandidate(
                    title=title,
                    description=(suggestion.get("description") or "").strip(),
                    salvaged=salvaged,
                ))
        return candidates

    async def generate_names(self, brief: BusinessBrief, exclude: Optional[Iterable[str]] = None) -> StageOutput[NameCandidate]:
        """
        Generate name candidates for a brief.

        Args:
            brief: The captured business brief
            exclude: Titles the model should not repeat (best effort)

        Returns:
            StageOutput[NameCandidate]: Candidates, the user prompt and any warnings

        Raises:
            GenerationFailed: If neither strict parsing nor salvage recovers any name
        """
        count = self.config.suggestion_count
        user_prompt = self.build_query(brief, exclude)
        sources = RetrievalSources(documents=[self.brief_document(brief)])
        context, warnings = await retrieve_context(self.retriever, sources, user_prompt)
        system_prompt = self.prompts["system"].format(suggestion_count=count, context=context)
        temperature = self.config.get_temperature_for_stage(STAGE)

        last_raw = ""
        last_error: Optional[Exception] = None
        for attempt in range(1, self.config.max_generation_attempts + 1):
            try:
                raw = await self.generator.generate(system_prompt, user_prompt, temperature)
            except GenerationBackendError as e:
                last_error = e
                logger.warning("Name generation call failed", attempt=attempt, error=str(e))
                continue
            last_raw = raw
            try:
                suggestions = parse_name_suggestions(raw, count)
            except ParseError as e:
                last_error = e
                logger.warning("Name response did not parse", attempt=attempt, kind=e.kind.value)
                continue

            candidates = self.to_candidates(suggestions)
            if len(candidates) < count:
                last_error = ParseError(
                    ParseErrorKind.FORMAT_MISMATCH,
                    f"expected {count} distinct titles after cleaning, got {len(candidates)}"
                )
                logger.warning("Name titles collapsed after cleaning", attempt=attempt, distinct=len(candidates))
                continue
            logger.info("Generated name candidates", count=len(candidates), attempt=attempt)
            return StageOutput(items=candidates, prompt=user_prompt, warnings=warnings)

        salvaged = self.to_candidates(salvage_name_suggestions(last_raw, count), salvaged=True)
        if salvaged:
            logger.warning("Using salvaged name candidates", count=len(salvaged))
            return StageOutput(items=salvaged, prompt=user_prompt, warnings=warnings, salvaged=True)

        dump_path = dump_raw_output("names", last_raw, self.raw_dump_dir) if last_raw else None
        raise GenerationFailed(
            "names",
            f"no usable suggestions after {self.config.max_generation_attempts} attempts ({last_error})",
            prompt=user_prompt,
            dump_path=dump_path
        )
