"""Brand generation pipeline: names, colors, logo prompt, logo image and screening.

One ``BrandPipeline`` drives one user journey. Each operation checks that the
journey is in a stage that allows it and advances ``BrandSession.stage``.
"""

import asyncio
from typing import Dict, Iterable, List, Optional, Union

from ..agents.color_palette_expert import ColorPaletteExpert, default_palettes
from ..agents.logo_prompt_expert import LogoPromptExpert, mentions_hex_codes
from ..agents.name_generation_expert import NameGenerationExpert
from ..config.dependencies import Dependencies, create_dependencies
from ..config.settings import settings
from ..errors import ArtifactStorageError, GenerationBackendError, GenerationFailed, InvalidTransition
from ..models.brand import (
    BusinessBrief,
    ColorPalette,
    DomainStatus,
    LogoImage,
    LogoPrompt,
    LogoScreening,
    NameCandidate,
    TrademarkReport,
)
from ..models.state import BrandSession, PipelineStage
from ..services.trademark_risk import DISCLAIMER
from ..utils.colors import enhance_prompt_with_color_names
from ..utils.logging import get_logger

logger = get_logger(__name__)

_LOGO_STAGES = (PipelineStage.LOGO_PROMPT, PipelineStage.LOGO_IMAGE, PipelineStage.LOGO_SCREENED)


class BrandPipeline:
    """State machine over a ``BrandSession``."""

    def __init__(self, dependencies: Optional[Dependencies] = None, session: Optional[BrandSession] = None):
        self.deps = dependencies or create_dependencies()
        self.config = self.deps.app_config
        self.session = session or BrandSession()
        self.name_expert = NameGenerationExpert(
            self.deps.generator, self.deps.retriever, self.config, raw_dump_dir=settings.raw_dump_dir
        )
        self.color_expert = ColorPaletteExpert(
            self.deps.generator, self.deps.retriever, self.config, raw_dump_dir=settings.raw_dump_dir
        )
        self.logo_expert = LogoPromptExpert(self.deps.generator, self.config)
        self._screening_task: Optional[asyncio.Task] = None

    @property
    def stage(self) -> PipelineStage:
        return self.session.stage

    def _require(self, operation: str, *stages: PipelineStage) -> None:
        if self.session.stage not in stages:
            allowed = ", ".join(s.value for s in stages)
            raise InvalidTransition(f"{operation} requires stage {allowed}; current stage is {self.session.stage.value}")

    def _advance(self, stage: PipelineStage) -> None:
        logger.info("Pipeline stage changed", session_id=self.session.session_id, old=self.session.stage.value, new=stage.value)
        self.session.stage = stage

    # Screening

    async def check_domain_for(self, name: str) -> Dict[str, DomainStatus]:
        """Domain availability per TLD for a name."""
        return await self.deps.domains.check_domains(name)

    async def check_trademark_for(self, name: str, context: Optional[str] = None) -> TrademarkReport:
        """Screen a name against the trademark sources and render advisory notes."""
        if context is None and self.session.brief is not None:
            context = self.session.brief.description
        result = await self.deps.trademarks.check_trademarks(name, context)
        notes = self.deps.trademark_analyzer.analyze(name, result, context or "")
        return TrademarkReport(name=name, result=result, notes=notes)

    async def _screen_candidate(self, candidate: NameCandidate) -> NameCandidate:
        domains, report = await asyncio.gather(
            self.check_domain_for(candidate.title),
            self.check_trademark_for(candidate.title),
            return_exceptions=True
        )
        update = {}
        if isinstance(domains, Exception):
            logger.warning("Domain screening failed", name=candidate.title, error=str(domains))
            self.session.record_error("domain_screening", domains)
        else:
            update["domains"] = domains
        if isinstance(report, Exception):
            logger.warning("Trademark screening failed", name=candidate.title, error=str(report))
            self.session.record_error("trademark_screening", report)
            update["trademark_notes"] = f"Trademark check unavailable: {report}\n\n{DISCLAIMER}"
        else:
            update["trademark_notes"] = report.notes
            update["screening"] = report.result
        return candidate.model_copy(update=update)

    async def screen_candidates(self, candidates: List[NameCandidate]) -> List[NameCandidate]:
        """Enrich every candidate with domain and trademark results, concurrently."""
        return list(await asyncio.gather(*(self._screen_candidate(c) for c in candidates)))

    # Names

    async def _generate_names(self, exclude: Optional[Iterable[str]] = None) -> List[NameCandidate]:
        try:
            output = await self.name_expert.generate_names(self.session.brief, exclude)
        except GenerationFailed as e:
            self.session.record_error("names", e)
            raise
        for warning in output.warnings:
            self.session.record_error("names_context", Exception(warning))

        candidates = await self.screen_candidates(output.items)
        self.session.track_titles(candidates)
        self.session.candidates = candidates
        return candidates

    async def start_naming(self, brief: BusinessBrief) -> List[NameCandidate]:
        """Capture the brief and produce the first set of screened name candidates."""
        self._require("start_naming", PipelineStage.INTAKE)
        self.session.brief = brief
        candidates = await self._generate_names()
        self._advance(PipelineStage.NAMES)
        return candidates

    async def refresh_names(self, exclude_titles: Optional[Iterable[str]] = None) -> List[NameCandidate]:
        """Generate a fresh set, asking the model to avoid the most recently seen titles."""
        self._require("refresh_names", PipelineStage.NAMES)
        exclude = list(self.session.recent_titles(self.config.exclusion_window))
        for title in exclude_titles or []:
            lowered = title.strip().lower()
            if lowered and lowered not in exclude:
                exclude.append(lowered)
        return await self._generate_names(exclude[-self.config.exclusion_window:])

    def select_name(self, choice: Union[NameCandidate, int, str]) -> NameCandidate:
        """Keep one candidate (by object, 0-based index or title) and discard the rest."""
        self._require("select_name", PipelineStage.NAMES)
        candidates = self.session.candidates
        if isinstance(choice, NameCandidate):
            selected = choice
        elif isinstance(choice, int):
            if not 0 <= choice < len(candidates):
                raise ValueError(f"candidate index {choice} out of range")
            selected = candidates[choice]
        else:
            matches = [c for c in candidates if c.title.lower() == str(choice).strip().lower()]
            if not matches:
                raise ValueError(f"no candidate titled {choice!r}")
            selected = matches[0]

        self.session.selected_name = selected
        self.session.candidates = []
        self._advance(PipelineStage.NAME_SELECTED)
        return selected

    # Colors

    async def _generate_palettes(self) -> List[ColorPalette]:
        try:
            output = await self.color_expert.generate_palettes(self.session.selected_name, self.session.brief)
            palettes = output.items
            for warning in output.warnings:
                self.session.record_error("colors_context", Exception(warning))
        except GenerationFailed as e:
            logger.warning("Falling back to default palettes", error=str(e))
            self.session.record_error("colors", e)
            palettes = default_palettes()
        self.session.palettes = palettes
        return palettes

    async def start_colors(self) -> List[ColorPalette]:
        """Recommend palettes for the selected name; never fails outright."""
        self._require("start_colors", PipelineStage.NAME_SELECTED)
        palettes = await self._generate_palettes()
        self._advance(PipelineStage.COLORS)
        return palettes

    async def refresh_colors(self) -> List[ColorPalette]:
        self._require("refresh_colors", PipelineStage.COLORS)
        return await self._generate_palettes()

    def select_color(self, choice: Union[ColorPalette, int]) -> ColorPalette:
        """Keep one palette (by object or 0-based index)."""
        self._require("select_color", PipelineStage.COLORS)
        if isinstance(choice, ColorPalette):
            selected = choice
        else:
            if not 0 <= choice < len(self.session.palettes):
                raise ValueError(f"palette index {choice} out of range")
            selected = self.session.palettes[choice]
        self.session.selected_palette = selected
        self._advance(PipelineStage.COLOR_SELECTED)
        return selected

    # Logo

    async def build_logo_prompt(self) -> LogoPrompt:
        """Write the visual-only logo prompt for the selected name and palette."""
        self._require("build_logo_prompt", PipelineStage.COLOR_SELECTED, *_LOGO_STAGES)
        try:
            prompt = await self.logo_expert.build_logo_prompt(
                self.session.selected_name, self.session.brief, self.session.selected_palette
            )
        except GenerationFailed as e:
            self.session.record_error("logo_prompt", e)
            raise
        self.session.logo_prompt = prompt
        self._advance(PipelineStage.LOGO_PROMPT)
        return prompt

    def edit_logo_prompt(self, text: str) -> LogoPrompt:
        """Replace the prompt text with the user's edit."""
        self._require("edit_logo_prompt", *_LOGO_STAGES)
        current = self.session.logo_prompt
        edited = current.model_copy(update={
            "text": text.strip(),
            "edited": True,
            "includes_hex_codes": mentions_hex_codes(text, current.hex1, current.hex2),
        })
        self.session.logo_prompt = edited
        return edited

    async def generate_logo_image(self, final_prompt: Optional[str] = None) -> LogoImage:
        """
        Generate and persist a logo; calling it again regenerates.

        Args:
            final_prompt: Edited prompt text; defaults to the current logo prompt

        Returns:
            LogoImage: Locator of the persisted artifact

        Raises:
            GenerationFailed: If image generation or persistence fails; carries the prompt text
        """
        self._require("generate_logo_image", *_LOGO_STAGES)
        if final_prompt is not None and final_prompt.strip() != self.session.logo_prompt.text:
            self.edit_logo_prompt(final_prompt)
        prompt = self.session.logo_prompt
        text = prompt.text
        image_prompt = text
        if self.config.name_colors_in_image_prompt:
            image_prompt = enhance_prompt_with_color_names(text, prompt.hex1, prompt.hex2)

        try:
            image = await self.deps.image_generator.generate_image(
                image_prompt,
                width=self.config.image_width,
                height=self.config.image_height,
                guidance_scale=self.config.image_guidance_scale,
                steps=self.config.image_steps
            )
            locator = await self.deps.artifact_store.persist(image.data, self.config.image_format, image.extension)
        except (GenerationBackendError, ArtifactStorageError, OSError, ValueError) as e:
            failure = GenerationFailed("logo_image", str(e), prompt=text)
            self.session.record_error("logo_image", failure)
            raise failure from e

        logo = LogoImage(locator=locator, prompt=text, source_url=image.source_url, seed=image.seed)
        self.session.logo_image = logo
        self.session.logo_screening = None
        self._advance(PipelineStage.LOGO_IMAGE)

        if self.config.screen_logo_after_generation:
            self._screening_task = asyncio.create_task(self._screen_in_background(locator))
        return logo

    async def _screen_in_background(self, locator: str) -> Optional[LogoScreening]:
        try:
            screening = await self.screen_logo(locator)
        except Exception as e:
            logger.warning("Background logo screening failed", locator=locator, error=str(e))
            self.session.record_error("logo_screening", e)
            return None
        # A newer logo may have replaced this one while screening ran
        if self.session.logo_image is not None and self.session.logo_image.locator == locator:
            self.session.logo_screening = screening
            self._advance(PipelineStage.LOGO_SCREENED)
        return screening

    async def screen_logo(self, locator: Optional[str] = None) -> LogoScreening:
        """Reverse-image screening of a logo (the current one by default)."""
        if locator is None:
            if self.session.logo_image is None:
                raise InvalidTransition("screen_logo requires a generated logo or an explicit locator")
            locator = self.session.logo_image.locator
        return await self.deps.logo_screener.screen_logo_image(locator)

    async def wait_for_logo_screening(self) -> Optional[LogoScreening]:
        """Await the background screening started by the last image generation, if any."""
        if self._screening_task is None:
            return self.session.logo_screening
        return await self._screening_task
