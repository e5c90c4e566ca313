"""Structured extraction client for the Anthropic Messages API."""

import asyncio
import logging
from typing import Any

import anthropic

from src.config import Settings
from src.errors import ExtractionFailure

logger = logging.getLogger(__name__)

# Failures worth another attempt when retries are configured
TRANSIENT_ERRORS = (
    anthropic.RateLimitError,
    anthropic.APIConnectionError,
    anthropic.InternalServerError,
)


class ExtractionClient:
    """Calls Claude with a forced tool so the output arrives as a JSON object.

    One instance is created per application and injected where needed.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str,
        max_tokens: int = 4096,
        timeout: float = 120.0,
        max_retries: int = 0,
        retry_delay: float = 2.0,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._client = (
            anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=0)
            if api_key
            else None
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ExtractionClient":
        return cls(
            api_key=settings.anthropic_api_key,
            model=settings.extraction_model,
            max_tokens=settings.extraction_max_tokens,
            timeout=settings.extraction_timeout,
            max_retries=settings.extraction_max_retries,
            retry_delay=settings.extraction_retry_delay,
        )

    @property
    def is_configured(self) -> bool:
        """Check if the Anthropic API is configured."""
        return self._client is not None

    async def extract(
        self,
        system_prompt: str,
        content: list[dict[str, Any]],
        tool: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Run one extraction and return the tool input, or None if there was none.

        Raises:
            ExtractionFailure: if the API is unconfigured, rejects the
                credential, or fails after the configured attempts.
        """
        if self._client is None:
            raise ExtractionFailure("Anthropic API not configured")

        attempt = 0
        while True:
            try:
                message = await self._client.messages.create(
                    model=self.model,
                    max_tokens=self.max_tokens,
                    system=system_prompt,
                    tools=[tool],
                    tool_choice={"type": "tool", "name": tool["name"]},
                    messages=[{"role": "user", "content": content}],
                )
                break
            except (anthropic.AuthenticationError, anthropic.PermissionDeniedError) as e:
                logger.error(f"Anthropic rejected the API key: {e}")
                raise ExtractionFailure("Extraction service rejected the credential") from e
            except TRANSIENT_ERRORS as e:
                if attempt < self.max_retries:
                    attempt += 1
                    logger.warning(
                        f"Transient extraction error ({e}), "
                        f"retry {attempt}/{self.max_retries} in {self.retry_delay}s"
                    )
                    await asyncio.sleep(self.retry_delay)
                    continue
                logger.error(f"Extraction request failed: {e}")
                raise ExtractionFailure("Extraction service unavailable", details=str(e)) from e
            except anthropic.APIError as e:
                logger.error(f"Extraction request failed: {e}")
                raise ExtractionFailure("Extraction request failed", details=str(e)) from e

        if message.usage:
            logger.info(
                f"Used {message.usage.input_tokens} input tokens and "
                f"{message.usage.output_tokens} output tokens."
            )

        for block in message.content:
            if block.type == "tool_use" and block.name == tool["name"]:
                return block.input if isinstance(block.input, dict) else None
        logger.warning(f"No {tool['name']} output in response (stop: {message.stop_reason})")
        return None
