"""Logo image generation through the FLUX.1 [dev] Gradio space."""

import asyncio
import os
from dataclasses import dataclass
from typing import Any, Callable, Optional

import aiohttp
from gradio_client import Client

from ..config.settings import settings
from ..errors import GenerationBackendError
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class GeneratedImage:
    """Raw bytes returned by the image backend."""

    data: bytes
    extension: str = "webp"
    source_url: Optional[str] = None
    seed: Optional[int] = None


def _extension_of(name: Optional[str], default: str = "webp") -> str:
    if name and "." in name:
        return name.rsplit(".", 1)[-1].lower().split("?")[0] or default
    return default


class ImageGenerator:
    """Calls the image space with fixed generation parameters.

    The Gradio client is synchronous, so each prediction runs in a worker thread.
    """

    def __init__(
        self,
        space: Optional[str] = None,
        api_name: Optional[str] = None,
        hf_token: Optional[str] = None,
        client_factory: Optional[Callable[[], Any]] = None,
        timeout: Optional[int] = None
    ):
        self.space = space or settings.image_space
        self.api_name = api_name or settings.image_api_name
        self.hf_token = hf_token or settings.hf_token
        self._client_factory = client_factory or self._connect
        self._client = None
        self.timeout = timeout or settings.http_timeout

    def _connect(self) -> Any:
        logger.info("Connecting to image space", space=self.space)
        return Client(self.space, hf_token=self.hf_token)

    def _predict(self, prompt: str, width: int, height: int, guidance_scale: float, steps: int) -> Any:
        if self._client is None:
            self._client = self._client_factory()
        return self._client.predict(
            prompt=prompt,
            seed=0,
            randomize_seed=True,
            width=width,
            height=height,
            guidance_scale=guidance_scale,
            num_inference_steps=steps,
            api_name=self.api_name,
        )

    async def _download(self, url: str) -> bytes:
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
            async with session.get(url) as response:
                if response.status != 200:
                    raise GenerationBackendError(f"image download failed: HTTP {response.status}")
                return await response.read()

    async def _read_output(self, output: Any) -> GeneratedImage:
        seed = None
        if isinstance(output, (list, tuple)):
            if len(output) > 1 and isinstance(output[1], (int, float)):
                seed = int(output[1])
            output = output[0] if output else None

        location = None
        if isinstance(output, dict):
            location = output.get("path") or output.get("url")
            name = output.get("orig_name") or location
        elif isinstance(output, str):
            location = output
            name = output
        if not location:
            raise GenerationBackendError(f"unexpected image response: {str(output)[:200]}")

        if location.startswith(("http://", "https://")):
            data = await self._download(location)
            return GeneratedImage(data=data, extension=_extension_of(name), source_url=location, seed=seed)
        if os.path.exists(location):
            data = await asyncio.to_thread(_read_file, location)
            return GeneratedImage(data=data, extension=_extension_of(name), seed=seed)
        raise GenerationBackendError(f"image output not found: {location}")

    async def generate_image(
        self,
        prompt: str,
        width: int = 1024,
        height: int = 1024,
        guidance_scale: float = 3.5,
        steps: int = 28
    ) -> GeneratedImage:
        """
        Generate one image for the prompt with a random seed.

        Raises:
            GenerationBackendError: If the space call fails or returns no image
        """
        try:
            output = await asyncio.to_thread(self._predict, prompt, width, height, guidance_scale, steps)
            image = await self._read_output(output)
        except GenerationBackendError:
            raise
        except Exception as e:
            logger.error("Image generation failed", space=self.space, error=str(e))
            raise GenerationBackendError(str(e)) from e
        logger.info("Image generated", space=self.space, bytes=len(image.data), seed=image.seed)
        return image


def _read_file(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()
