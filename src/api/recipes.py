"""Recipe API endpoints and the image lifecycle of a saved recipe."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile, status

from src.api.dependencies import get_current_user, get_recipe_service, get_services
from src.errors import RequestError
from src.models.user import User
from src.schemas.image import RecipeEnhanceRequest, RecipeEnhanceResponse
from src.schemas.recipe import RecipeListResponse, RecipeResponse
from src.services.container import Services
from src.services.recipe_service import RecipeService

router = APIRouter(prefix="/api/v1/recipes", tags=["recipes"])


@router.get("", response_model=list[RecipeListResponse])
async def list_recipes(
    current_user: Annotated[User, Depends(get_current_user)],
    recipes: Annotated[RecipeService, Depends(get_recipe_service)],
):
    """List all recipes for the current user."""
    return recipes.list_recipes(current_user.id)


@router.get("/{recipe_id}", response_model=RecipeResponse)
async def get_recipe(
    recipe_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    recipes: Annotated[RecipeService, Depends(get_recipe_service)],
):
    """Get a recipe with ingredients and instructions."""
    return recipes.get_user_recipe(recipe_id, current_user.id)


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recipe(
    recipe_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    recipes: Annotated[RecipeService, Depends(get_recipe_service)],
):
    """Soft delete a recipe and remove its image from storage."""
    recipe = recipes.get_user_recipe(recipe_id, current_user.id)
    await recipes.delete_recipe(recipe)


# --- Image ---


@router.put("/{recipe_id}/image", response_model=RecipeResponse)
async def upload_recipe_image(
    recipe_id: int,
    file: Annotated[UploadFile, File(description="Recipe image (JPEG, PNG, GIF, or WebP)")],
    current_user: Annotated[User, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
    recipes: Annotated[RecipeService, Depends(get_recipe_service)],
):
    """Upload a new image, replacing the current one.

    The new image is stored before the old one is deleted.
    """
    recipe = recipes.get_user_recipe(recipe_id, current_user.id)
    data = await file.read()
    image = services.pipeline.stage_bytes(data, file.content_type, file.filename)
    return await recipes.replace_image(recipe, image)


@router.delete("/{recipe_id}/image", response_model=RecipeResponse)
async def delete_recipe_image(
    recipe_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    recipes: Annotated[RecipeService, Depends(get_recipe_service)],
):
    """Remove a recipe's image."""
    recipe = recipes.get_user_recipe(recipe_id, current_user.id)
    return await recipes.remove_image(recipe)


@router.post("/{recipe_id}/image/enhance", response_model=RecipeEnhanceResponse)
async def enhance_recipe_image(
    recipe_id: int,
    data: RecipeEnhanceRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
    recipes: Annotated[RecipeService, Depends(get_recipe_service)],
):
    """Generate an enhanced version of the recipe's image for review.

    The result is not stored until it is confirmed.
    """
    recipe = recipes.get_user_recipe(recipe_id, current_user.id)
    original = recipes.current_image(recipe)
    if original is None:
        raise RequestError("Recipe has no image to enhance")

    ingredients = data.ingredients
    if ingredients is None:
        ingredients = [ingredient.name for ingredient in recipe.ingredients]

    result = await services.enhancement.enhance(
        current_user.id,
        recipe.id,
        original,
        title=data.recipe_title or recipe.title,
        ingredients=ingredients,
    )
    return RecipeEnhanceResponse(
        pending_image_id=result.pending.id,
        enhanced_image_data=result.asset.to_data_uri(),
        original_image_url=result.original.url,
    )


@router.post(
    "/{recipe_id}/image/enhance/{pending_image_id}/confirm", response_model=RecipeResponse
)
async def confirm_recipe_image_enhancement(
    recipe_id: int,
    pending_image_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
    recipes: Annotated[RecipeService, Depends(get_recipe_service)],
):
    """Accept an enhanced image. It replaces the recipe's current image."""
    recipe = recipes.get_user_recipe(recipe_id, current_user.id)
    result = await services.enhancement.confirm(
        current_user.id,
        recipe.id,
        pending_image_id,
        recipes.current_image(recipe),
        swap=lambda committed: recipes.point_image_at(recipe, committed),
    )
    return recipes.settle_replacement(recipe, result)


@router.delete(
    "/{recipe_id}/image/enhance/{pending_image_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def decline_recipe_image_enhancement(
    recipe_id: int,
    pending_image_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
    recipes: Annotated[RecipeService, Depends(get_recipe_service)],
):
    """Decline an enhanced image. The original is kept and nothing is stored."""
    recipe = recipes.get_user_recipe(recipe_id, current_user.id)
    services.enhancement.decline(current_user.id, recipe.id, pending_image_id)
