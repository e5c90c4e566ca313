"""Recipe import schemas."""

from pydantic import Field

from src.schemas.base import CamelModel
from src.schemas.recipe import RecipeDraft, RecipeResponse, ValidatedRecipe


class ImportRequest(CamelModel):
    """Request to extract a recipe from a web page or a photo."""

    kind: str = Field(..., max_length=20)  # "locator" | "image"
    content: str = Field(..., min_length=1, max_length=20_000_000)


class ImportResponse(CamelModel):
    """Validated preview. Nothing has been persisted yet."""

    recipe: ValidatedRecipe
    image: str | None = None  # data URI
    pending_image_id: str | None = None


class ImportConfirm(CamelModel):
    """Request to save a (possibly edited) preview."""

    recipe: RecipeDraft
    pending_image_id: str | None = None


class ImportConfirmResponse(CamelModel):
    recipe: RecipeResponse
    warnings: list[str] = Field(default_factory=list)
