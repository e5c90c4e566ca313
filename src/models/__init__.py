"""SQLAlchemy models."""

from src.models.orphaned_asset import OrphanedAssetRecord
from src.models.recipe import Recipe, RecipeIngredient, RecipeInstruction
from src.models.user import User

__all__ = [
    "User",
    "Recipe",
    "RecipeIngredient",
    "RecipeInstruction",
    "OrphanedAssetRecord",
]
