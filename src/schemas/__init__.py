"""Pydantic schemas for API requests and responses."""

from src.schemas.auth import AccountResponse, AuthResponse, Credentials, Registration
from src.schemas.image import EnhanceImageRequest, RecipeEnhanceRequest
from src.schemas.recipe import RecipeDraft, RecipeResponse, ValidatedRecipe
from src.schemas.recipe_import import ImportConfirm, ImportRequest, ImportResponse

__all__ = [
    "Credentials",
    "Registration",
    "AuthResponse",
    "AccountResponse",
    "RecipeDraft",
    "ValidatedRecipe",
    "RecipeResponse",
    "ImportRequest",
    "ImportResponse",
    "ImportConfirm",
    "EnhanceImageRequest",
    "RecipeEnhanceRequest",
]
