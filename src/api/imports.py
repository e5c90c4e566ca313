"""Recipe import endpoints: AI extraction preview and confirmation."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from src.api.dependencies import get_current_user, get_recipe_service, get_services
from src.models.user import User
from src.schemas.recipe import RecipeResponse
from src.schemas.recipe_import import (
    ImportConfirm,
    ImportConfirmResponse,
    ImportRequest,
    ImportResponse,
)
from src.services.container import Services
from src.services.recipe_service import RecipeService

router = APIRouter(prefix="/api/v1/imports", tags=["imports"])


@router.post("", response_model=ImportResponse)
async def create_import(
    data: ImportRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
):
    """Extract a recipe from a web page or photo for review.

    Nothing is saved. The image, if any, is returned inline and held under
    ``pendingImageId`` until the import is confirmed.
    """
    preview = await services.imports.preview(current_user.id, data.kind, data.content)
    return ImportResponse(
        recipe=preview.recipe,
        image=preview.image.to_data_uri() if preview.image else None,
        pending_image_id=preview.pending_image_id,
    )


@router.post(
    "/confirm", response_model=ImportConfirmResponse, status_code=status.HTTP_201_CREATED
)
async def confirm_import(
    data: ImportConfirm,
    current_user: Annotated[User, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
    recipes: Annotated[RecipeService, Depends(get_recipe_service)],
):
    """Save a reviewed (and possibly edited) recipe and commit its image."""
    recipe, warnings = await services.imports.confirm(
        recipes, current_user.id, data.recipe, data.pending_image_id
    )
    return ImportConfirmResponse(recipe=RecipeResponse.model_validate(recipe), warnings=warnings)


@router.delete("/pending/{pending_image_id}", status_code=status.HTTP_204_NO_CONTENT)
async def discard_import_image(
    pending_image_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
):
    """Discard the staged image of an abandoned preview."""
    services.imports.discard(current_user.id, pending_image_id)
