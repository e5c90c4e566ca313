"""Image enhancement schemas."""

from pydantic import Field

from src.schemas.base import CamelModel


class EnhanceImageRequest(CamelModel):
    """Stateless enhancement of an image supplied inline."""

    base64_image_data: str = Field(..., min_length=1)
    recipe_title: str | None = Field(None, max_length=255)
    ingredients: list[str] | None = None


class EnhanceImageResponse(CamelModel):
    enhanced_image_data: str


class RecipeEnhanceRequest(CamelModel):
    """Hints for enhancing a saved recipe's image. Defaults come from the recipe."""

    recipe_title: str | None = Field(None, max_length=255)
    ingredients: list[str] | None = None


class RecipeEnhanceResponse(CamelModel):
    """Enhanced candidate awaiting confirmation, shown beside the original."""

    pending_image_id: str
    enhanced_image_data: str
    original_image_url: str
