"""Extraction coordinator: turns a normalized source into a recipe draft."""

import base64
import logging
from typing import Any, assert_never

from src.errors import ExtractionFailure
from src.schemas.recipe import RecipeDraft
from src.services.content import ImageSource, LocatorSource, PageFetcher, SourceSelection
from src.services.llm import ExtractionClient
from src.services.llm_prompts import (
    IMAGE_SYSTEM_PROMPT,
    IMAGE_USER_PROMPT,
    LOCATOR_SYSTEM_PROMPT,
    RECIPE_TOOL,
    get_locator_prompt,
)
from src.services.validation import parse_draft

logger = logging.getLogger(__name__)


def _has_content(draft: RecipeDraft) -> bool:
    title = draft.title.strip() if isinstance(draft.title, str) else draft.title
    return bool(title or draft.ingredients or draft.instructions)


class ExtractionCoordinator:
    """Dispatches a source to the locator or image extraction strategy.

    The capability is asked for output in the recipe schema directly. The
    result is still untrusted and must go through validation.
    """

    def __init__(self, client: ExtractionClient, page_fetcher: PageFetcher) -> None:
        self.client = client
        self.page_fetcher = page_fetcher

    async def extract(self, source: SourceSelection) -> RecipeDraft:
        """Run one extraction attempt. No retry happens here.

        Raises:
            ExtractionFailure: if the capability fails or produces nothing.
            RecipeValidationError: if the output does not have the draft's shape.
        """
        match source:
            case LocatorSource():
                return await self._extract_from_locator(source)
            case ImageSource():
                return await self._extract_from_image(source)
            case _:
                assert_never(source)

    async def _extract_from_locator(self, source: LocatorSource) -> RecipeDraft:
        logger.info(f"Processing locator import: {source.uri}")
        page = await self.page_fetcher.fetch(source.uri)
        payload = await self.client.extract(
            LOCATOR_SYSTEM_PROMPT,
            [
                {
                    "type": "text",
                    "text": get_locator_prompt(page.uri, page.text, page.image_candidates),
                }
            ],
            RECIPE_TOOL,
        )
        draft = self._to_draft(payload)
        # Provenance is the locator the user gave, whatever the model echoed
        return draft.model_copy(update={"source_url": source.uri})

    async def _extract_from_image(self, source: ImageSource) -> RecipeDraft:
        logger.info(f"Processing image import, image size: {len(source.data)} bytes")
        payload = await self.client.extract(
            IMAGE_SYSTEM_PROMPT,
            [
                {
                    "type": "image",
                    "source": {
                        "type": "base64",
                        "media_type": source.mime,
                        "data": base64.standard_b64encode(source.data).decode("utf-8"),
                    },
                },
                {"type": "text", "text": IMAGE_USER_PROMPT},
            ],
            RECIPE_TOOL,
        )
        draft = self._to_draft(payload)
        # An image cannot assert remote provenance
        return draft.model_copy(update={"source_url": None, "image_url": None})

    def _to_draft(self, payload: dict[str, Any] | None) -> RecipeDraft:
        if not payload:
            raise ExtractionFailure("Extraction produced nothing")
        draft = parse_draft(payload)
        if not _has_content(draft):
            raise ExtractionFailure("Extraction produced nothing")
        return draft
