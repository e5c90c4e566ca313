"""Stateless image enhancement endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends

from src.api.dependencies import get_current_user, get_services
from src.models.user import User
from src.schemas.image import EnhanceImageRequest, EnhanceImageResponse
from src.services.container import Services
from src.services.content import decode_image

router = APIRouter(prefix="/api/v1/images", tags=["images"])


@router.post("/enhance", response_model=EnhanceImageResponse)
async def enhance_image(
    data: EnhanceImageRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
):
    """Enhance an inline image. The result is returned, never stored."""
    source = decode_image(data.base64_image_data, services.max_image_bytes)
    image = services.pipeline.stage_bytes(source.data, source.mime)
    enhanced = await services.enhancement.enhance_image(
        image, data.recipe_title, data.ingredients
    )
    return EnhanceImageResponse(enhanced_image_data=enhanced.to_data_uri())
