"""Logo Prompt Expert for writing visual-only image prompts."""

from typing import Optional

from ..errors import GenerationBackendError, GenerationFailed
from ..models.app_config import AppConfig
from ..models.brand import BusinessBrief, ColorPalette, LogoPrompt, NameCandidate
from ..services.llm import GenerationClient
from ..utils.logging import get_logger
from ..utils.template_utils import load_stage_prompts

logger = get_logger(__name__)

STAGE = "logo_prompt"


def mentions_hex_codes(text: str, hex1: str, hex2: str) -> bool:
    upper = (text or "").upper()
    return hex1.upper() in upper and hex2.upper() in upper


class LogoPromptExpert:
    """Writes a short description of the logo's appearance using the palette's exact hex codes."""

    def __init__(self, generator: GenerationClient, app_config: Optional[AppConfig] = None):
        self.generator = generator
        self.config = app_config or AppConfig()
        self.prompts = load_stage_prompts(STAGE)

    def build_user_prompt(self, name: NameCandidate, brief: BusinessBrief, palette: ColorPalette) -> str:
        return self.prompts["human"].format(
            business_type=name.description or brief.description,
            visuals=", ".join(brief.visuals) or "none specified",
            hex1=palette.hex1,
            hex2=palette.hex2,
        )

    async def build_logo_prompt(self, name: NameCandidate, brief: BusinessBrief, palette: ColorPalette) -> LogoPrompt:
        """
        Generate the logo prompt, retrying once with a stricter instruction if a hex code is missing.

        The second answer is accepted even if it still omits a code.

        Raises:
            GenerationFailed: If the first generation call fails
        """
        system_prompt = self.prompts["system"].format()
        user_prompt = self.build_user_prompt(name, brief, palette)
        temperature = self.config.get_temperature_for_stage(STAGE)

        try:
            text = (await self.generator.generate(system_prompt, user_prompt, temperature)).strip()
        except GenerationBackendError as e:
            raise GenerationFailed("logo_prompt", str(e), prompt=user_prompt) from e

        if not mentions_hex_codes(text, palette.hex1, palette.hex2):
            logger.info("Logo prompt is missing hex codes; retrying once")
            strict_prompt = user_prompt + "\n\n" + self.prompts["strict"].format(hex1=palette.hex1, hex2=palette.hex2)
            try:
                text = (await self.generator.generate(system_prompt, strict_prompt, temperature)).strip()
            except GenerationBackendError as e:
                logger.warning("Logo prompt retry failed; keeping first answer", error=str(e))

        return LogoPrompt(
            text=text,
            hex1=palette.hex1,
            hex2=palette.hex2,
            includes_hex_codes=mentions_hex_codes(text, palette.hex1, palette.hex2),
        )
