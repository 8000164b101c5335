"""
Route handlers for image generation.
"""
from fastapi import APIRouter, Depends

from models.api_models import ImageRequest, ImageResponse
from routes.dependencies import get_gemini_client
from services.image_service import ImageService
from utils.logger import app_logger

router = APIRouter()


@router.post("/generate-image", response_model=ImageResponse)
async def generate_image(request: ImageRequest, client=Depends(get_gemini_client)):
    """Generate an image from a text prompt and return it as a data URI."""
    app_logger.info(f"Image request: '{request.prompt[:50]}'")
    image_url = await ImageService.generate(client, request.prompt)
    return ImageResponse(image_url=image_url)
