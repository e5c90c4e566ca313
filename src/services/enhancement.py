"""AI image enhancement with explicit confirmation before promotion."""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from src.errors import ConflictError, ImageGenerationFailure, NotFoundError
from src.services.assets import (
    AssetPipeline,
    CommittedAsset,
    EphemeralAsset,
    PendingAsset,
    PendingAssetRegistry,
    ReplaceResult,
)
from src.services.content import sniff_image_mime
from src.services.image_generation import ImageGenerationClient
from src.services.llm_prompts import get_enhancement_prompt

logger = logging.getLogger(__name__)

ENHANCEMENT = "enhancement"


@dataclass(frozen=True)
class EnhancementResult:
    """An enhanced candidate shown next to the original, not yet committed."""

    pending: PendingAsset
    original: CommittedAsset

    @property
    def asset(self) -> EphemeralAsset:
        return self.pending.asset


class EnhancementWorkflow:
    """Produces enhanced variants and promotes them only on confirmation.

    At most one enhancement per recipe may be in flight.
    """

    def __init__(
        self,
        client: ImageGenerationClient,
        pipeline: AssetPipeline,
        registry: PendingAssetRegistry,
    ) -> None:
        self.client = client
        self.pipeline = pipeline
        self.registry = registry
        self._in_flight: set[int] = set()

    def is_in_flight(self, recipe_id: int) -> bool:
        return recipe_id in self._in_flight

    async def enhance_image(
        self,
        image: EphemeralAsset,
        title: str | None = None,
        ingredients: list[str] | None = None,
    ) -> EphemeralAsset:
        """Re-render an image with the dish's title and ingredients as hints."""
        prompt = get_enhancement_prompt(title, ingredients)
        data = await self.client.edit(image.data, image.mime, prompt)
        if not data:
            raise ImageGenerationFailure("Image generation did not return an enhanced image")
        return self.pipeline.stage_bytes(data, sniff_image_mime(data) or "image/png", "enhanced")

    async def enhance(
        self,
        owner_id: int,
        recipe_id: int,
        original: CommittedAsset,
        title: str | None = None,
        ingredients: list[str] | None = None,
    ) -> EnhancementResult:
        """Enhance a recipe's committed image and hold the result for review.

        Raises:
            ConflictError: if an enhancement for this recipe is already running.
        """
        if recipe_id in self._in_flight:
            raise ConflictError("An enhancement for this recipe is already in progress")
        self._in_flight.add(recipe_id)
        try:
            source = await self.pipeline.stage_remote(original.url)
            enhanced = await self.enhance_image(source, title, ingredients)
        finally:
            self._in_flight.discard(recipe_id)

        pending = self.registry.register(owner_id, enhanced, ENHANCEMENT, recipe_id=recipe_id)
        logger.info(f"Enhanced image for recipe {recipe_id} staged as {pending.id}")
        return EnhancementResult(pending=pending, original=original)

    async def confirm(
        self,
        owner_id: int,
        recipe_id: int,
        pending_id: str,
        current: CommittedAsset | None,
        swap: Callable[[CommittedAsset], None],
    ) -> ReplaceResult:
        """Promote a reviewed enhancement, replacing the recipe's current image.

        ``swap`` points the recipe at the committed enhancement before the
        current image is deleted.
        """
        pending = self.registry.take(pending_id, owner_id, ENHANCEMENT, recipe_id=recipe_id)
        if pending is None:
            raise NotFoundError("Enhanced image not found or expired")
        return await self.pipeline.replace(current, pending.asset, owner_id, swap=swap)

    def decline(self, owner_id: int, recipe_id: int, pending_id: str) -> bool:
        """Drop a reviewed enhancement. Storage is not touched."""
        discarded = self.registry.discard(pending_id, owner_id, ENHANCEMENT, recipe_id=recipe_id)
        if discarded:
            logger.info(f"Enhanced image {pending_id} for recipe {recipe_id} declined")
        return discarded
