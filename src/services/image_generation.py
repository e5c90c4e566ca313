"""Image generation client for the OpenAI Images API."""

import base64
import binascii
import logging

import openai

from src.config import Settings
from src.errors import ImageGenerationFailure

logger = logging.getLogger(__name__)


class ImageGenerationClient:
    """Re-renders an existing image from a prompt."""

    def __init__(self, api_key: str | None, model: str, timeout: float = 180.0) -> None:
        self.model = model
        self._client = (
            openai.AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
            if api_key
            else None
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ImageGenerationClient":
        return cls(api_key=settings.openai_api_key, model=settings.image_model)

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    async def edit(self, image: bytes, mime: str, prompt: str) -> bytes | None:
        """Return the generated image bytes, or None if the API produced none."""
        if self._client is None:
            raise ImageGenerationFailure("OpenAI API not configured")

        extension = mime.split("/")[-1]
        try:
            response = await self._client.images.edit(
                model=self.model,
                image=(f"source.{extension}", image, mime),
                prompt=prompt,
            )
        except openai.APIError as e:
            logger.error(f"Image generation failed: {e}")
            raise ImageGenerationFailure("Image generation request failed", details=str(e)) from e

        if response.usage:
            logger.info(
                f"Used {response.usage.input_tokens} input tokens and "
                f"{response.usage.output_tokens} output tokens."
            )
        if not response.data or not response.data[0].b64_json:
            return None
        try:
            return base64.b64decode(response.data[0].b64_json)
        except (binascii.Error, ValueError):
            logger.warning("Image generation returned undecodable data")
            return None
