"""Single round-trip text generation against the chat model."""

import json
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from ..config.settings import settings
from ..errors import GenerationBackendError
from ..utils.logging import get_logger

logger = get_logger(__name__)


def _from_string_content(response: Any) -> Optional[str]:
    if isinstance(response, str):
        return response
    content = getattr(response, "content", None)
    if isinstance(content, str) and content.strip():
        return content
    return None


def _from_content_blocks(response: Any) -> Optional[str]:
    content = getattr(response, "content", None)
    if not isinstance(content, list):
        return None
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, Mapping) and isinstance(block.get("text"), str):
            parts.append(block["text"])
    text = "".join(parts)
    return text if text.strip() else None


def _from_text_attribute(response: Any) -> Optional[str]:
    text = getattr(response, "text", None)
    # Older langchain-core exposes .text() as a method
    if callable(text):
        text = text()
    if isinstance(text, str) and text.strip():
        return text
    return None


def _from_mapping(response: Any) -> Optional[str]:
    if not isinstance(response, Mapping):
        return None
    for key in ("response", "text", "content", "output"):
        value = response.get(key)
        if isinstance(value, str) and value.strip():
            return value
    message = response.get("message")
    if isinstance(message, Mapping) and isinstance(message.get("content"), str):
        return message["content"]
    return None


# Tried in order; the first non-empty string wins
TEXT_EXTRACTORS: List[Callable[[Any], Optional[str]]] = [
    _from_string_content,
    _from_content_blocks,
    _from_text_attribute,
    _from_mapping,
]


def extract_text(response: Any) -> str:
    """Pull the generated text out of a model response.

    Falls back to a JSON dump of the response so the parsers (and the raw
    output dump) still see whatever came back.
    """
    for extractor in TEXT_EXTRACTORS:
        text = extractor(response)
        if text is not None:
            return text
    payload = response.model_dump() if hasattr(response, "model_dump") else response
    try:
        return json.dumps(payload, default=str)
    except (TypeError, ValueError):
        return str(response)


class GenerationClient:
    """Sends one system + user prompt pair to the chat model and returns its text.

    There are no retries here; the stage experts own the retry policy. Models are
    cached per temperature since each stage samples at its own temperature.
    """

    def __init__(
        self,
        model_name: Optional[str] = None,
        api_key: Optional[str] = None,
        llm_factory: Optional[Callable[[float], BaseChatModel]] = None
    ):
        self.model_name = model_name or settings.model_name
        self.api_key = api_key or settings.google_api_key
        self._llm_factory = llm_factory or self._create_llm
        self._models: Dict[float, BaseChatModel] = {}

    def _create_llm(self, temperature: float) -> BaseChatModel:
        return ChatGoogleGenerativeAI(
            model=self.model_name,
            temperature=temperature,
            google_api_key=self.api_key,
            callbacks=settings.get_langsmith_callbacks()
        )

    def model_for(self, temperature: float) -> BaseChatModel:
        if temperature not in self._models:
            self._models[temperature] = self._llm_factory(temperature)
        return self._models[temperature]

    async def generate(self, system_prompt: str, user_prompt: str, temperature: float = 0.0) -> str:
        """
        Run one generation round trip.

        Args:
            system_prompt: Instructions and retrieved context
            user_prompt: The user request
            temperature: Sampling temperature for this call

        Returns:
            str: The generated text

        Raises:
            GenerationBackendError: If the model call fails
        """
        messages = [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]
        try:
            response = await self.model_for(temperature).ainvoke(messages)
        except Exception as e:
            logger.error("Generation backend call failed", model=self.model_name, error=str(e))
            raise GenerationBackendError(str(e)) from e
        return extract_text(response)
