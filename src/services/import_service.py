"""Two-phase recipe import: preview without side effects, then confirm."""

import logging
from dataclasses import dataclass
from typing import assert_never

from src.errors import AssetCommitFailure, AssetFetchFailure
from src.models.recipe import Recipe
from src.schemas.recipe import RecipeDraft, ValidatedRecipe
from src.services.assets import AssetPipeline, EphemeralAsset, PendingAssetRegistry
from src.services.content import ImageSource, LocatorSource, SourceSelection, normalize_source
from src.services.extraction import ExtractionCoordinator
from src.services.recipe_service import RecipeService
from src.services.validation import validate_recipe

logger = logging.getLogger(__name__)

IMPORT = "import"

IMAGE_EXPIRED_WARNING = "The preview image expired and was not saved."
IMAGE_COMMIT_WARNING = "The image could not be saved. The recipe was saved without it."


@dataclass(frozen=True)
class ImportPreview:
    recipe: ValidatedRecipe
    image: EphemeralAsset | None = None
    pending_image_id: str | None = None


class ImportService:
    """Coordinates extraction, validation and image staging for one account."""

    def __init__(
        self,
        coordinator: ExtractionCoordinator,
        pipeline: AssetPipeline,
        registry: PendingAssetRegistry,
        max_image_bytes: int,
    ) -> None:
        self.coordinator = coordinator
        self.pipeline = pipeline
        self.registry = registry
        self.max_image_bytes = max_image_bytes

    async def preview(self, owner_id: int, kind: str, content: str) -> ImportPreview:
        """Extract and validate a recipe and stage its image. Nothing is persisted.

        Extraction and validation errors propagate; image errors only drop the image.
        """
        source = normalize_source(kind, content, self.max_image_bytes)
        draft = await self.coordinator.extract(source)
        recipe = validate_recipe(draft)

        image = await self._stage_image(source, recipe)
        if image is None:
            return ImportPreview(recipe=recipe)
        pending = self.registry.register(owner_id, image, IMPORT)
        return ImportPreview(recipe=recipe, image=image, pending_image_id=pending.id)

    async def _stage_image(
        self, source: SourceSelection, recipe: ValidatedRecipe
    ) -> EphemeralAsset | None:
        try:
            match source:
                case ImageSource():
                    return self.pipeline.stage_bytes(source.data, source.mime, "import")
                case LocatorSource():
                    if not recipe.image_url:
                        return None
                    return await self.pipeline.stage_remote(recipe.image_url)
                case _:
                    assert_never(source)
        except AssetFetchFailure as e:
            logger.warning(f"Continuing import without image: {e.message} ({e.details})")
            return None

    async def confirm(
        self,
        recipes: RecipeService,
        owner_id: int,
        draft: RecipeDraft,
        pending_image_id: str | None = None,
    ) -> tuple[Recipe, list[str]]:
        """Save a reviewed recipe and commit its staged image.

        The recipe is saved even if the image cannot be; a warning says so.
        """
        validated = validate_recipe(draft)
        recipe = recipes.create_recipe(owner_id, validated)

        warnings: list[str] = []
        if pending_image_id:
            pending = self.registry.take(pending_image_id, owner_id, IMPORT)
            if pending is None:
                warnings.append(IMAGE_EXPIRED_WARNING)
            else:
                try:
                    committed = await self.pipeline.commit(pending.asset, owner_id)
                except AssetCommitFailure as e:
                    logger.error(f"Recipe {recipe.id} saved without image: {e.details}")
                    warnings.append(IMAGE_COMMIT_WARNING)
                else:
                    recipe = recipes.attach_image(recipe, committed)
        return recipe, warnings

    def discard(self, owner_id: int, pending_image_id: str) -> bool:
        """Abandon a preview's staged image."""
        return self.registry.discard(pending_image_id, owner_id, IMPORT)
