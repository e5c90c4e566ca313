"""Recipe service for persisting imports and keeping each recipe's image consistent."""

import logging

from sqlalchemy.orm import Session

from src.errors import NotFoundError
from src.models.orphaned_asset import OrphanedAssetRecord
from src.models.recipe import Recipe, RecipeIngredient, RecipeInstruction
from src.schemas.recipe import ValidatedRecipe
from src.services.assets import (
    AssetPipeline,
    Cleanup,
    CommittedAsset,
    EphemeralAsset,
    ReplaceResult,
)

logger = logging.getLogger(__name__)


class RecipeService:
    """Service for recipe records and the single image each one references."""

    def __init__(self, db: Session, pipeline: AssetPipeline):
        self.db = db
        self.pipeline = pipeline

    def get_user_recipe(self, recipe_id: int, user_id: int) -> Recipe:
        recipe = (
            self.db.query(Recipe)
            .filter(
                Recipe.id == recipe_id,
                Recipe.user_id == user_id,
                Recipe.not_deleted(),
            )
            .first()
        )
        if not recipe:
            raise NotFoundError("Recipe not found")
        return recipe

    def list_recipes(self, user_id: int) -> list[Recipe]:
        return (
            self.db.query(Recipe)
            .filter(Recipe.user_id == user_id, Recipe.not_deleted())
            .order_by(Recipe.created_at.desc(), Recipe.id.desc())
            .all()
        )

    def create_recipe(self, user_id: int, data: ValidatedRecipe) -> Recipe:
        """Persist a validated recipe without an image."""
        recipe = Recipe(
            user_id=user_id,
            title=data.title,
            description=data.description,
            category=data.category.value,
            tags=[tag.value for tag in data.tags],
            cooking_time=data.cooking_time,
            servings=data.servings,
            difficulty=data.difficulty.value if data.difficulty else None,
            source_url=data.source_url,
        )
        for position, ingredient in enumerate(data.ingredients):
            recipe.ingredients.append(
                RecipeIngredient(
                    position=position,
                    name=ingredient.name,
                    amount=ingredient.amount,
                    unit=ingredient.unit,
                    notes=ingredient.notes,
                    component=ingredient.component,
                )
            )
        for step in data.instructions:
            recipe.instructions.append(
                RecipeInstruction(step_number=step.step_number, description=step.description)
            )
        self.db.add(recipe)
        self.db.commit()
        self.db.refresh(recipe)
        logger.info(f"Created recipe {recipe.id} for user {user_id}")
        return recipe

    def current_image(self, recipe: Recipe) -> CommittedAsset | None:
        return CommittedAsset(url=recipe.image_url) if recipe.image_url else None

    def attach_image(self, recipe: Recipe, committed: CommittedAsset) -> Recipe:
        """Point an image-less recipe at a freshly committed image."""
        recipe.image_url = committed.url
        self.db.commit()
        self.db.refresh(recipe)
        return recipe

    def point_image_at(self, recipe: Recipe, committed: CommittedAsset) -> None:
        """Store a new image reference. Rolls back and re-raises on failure."""
        recipe.image_url = committed.url
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def settle_replacement(self, recipe: Recipe, result: ReplaceResult) -> Recipe:
        """Remember the old object if it survived deletion."""
        if result.cleanup and not result.cleanup.succeeded:
            self._record_orphan(recipe.user_id, result.cleanup, "replace")
            self.db.commit()
        self.db.refresh(recipe)
        return recipe

    async def replace_image(self, recipe: Recipe, new: EphemeralAsset) -> Recipe:
        """Swap in a new image, deleting the old object only after the record moves."""
        result = await self.pipeline.replace(
            self.current_image(recipe),
            new,
            recipe.user_id,
            swap=lambda committed: self.point_image_at(recipe, committed),
        )
        return self.settle_replacement(recipe, result)

    async def remove_image(self, recipe: Recipe) -> Recipe:
        current = self.current_image(recipe)
        if current is None:
            return recipe
        recipe.image_url = None
        self.db.commit()
        cleanup = await self.pipeline.release(current)
        if not cleanup.succeeded:
            self._record_orphan(recipe.user_id, cleanup, "release")
            self.db.commit()
        self.db.refresh(recipe)
        return recipe

    async def delete_recipe(self, recipe: Recipe) -> None:
        """Soft delete a recipe and release its image."""
        recipe.soft_delete()
        self.db.commit()
        await self.remove_image(recipe)
        logger.info(f"Deleted recipe {recipe.id}")

    def _record_orphan(self, user_id: int, cleanup: Cleanup, reason: str) -> None:
        self.db.add(
            OrphanedAssetRecord(
                user_id=user_id,
                url=cleanup.orphan.url,
                reason=reason,
                attempts=1,
                last_error=cleanup.error,
            )
        )
