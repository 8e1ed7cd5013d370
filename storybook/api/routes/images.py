"""Free-prompt illustrations that are not attached to a story page."""

from fastapi import APIRouter

from ..dependencies import BlobStore, Illustrator
from ..models.requests import CustomImageRequest
from ..models.responses import CustomImageResponse
from ..services.image_generation import generate_custom_image

router = APIRouter()


@router.post(
    "/generate",
    response_model=CustomImageResponse,
    summary="Generate an image from a prompt",
    description=(
        "Generate one illustration from a free prompt. Nothing is recorded on "
        "a story, so page generation limits do not apply."
    ),
    responses={502: {"description": "Image model failed"}},
)
async def generate_image(request: CustomImageRequest, illustrator: Illustrator, blob_store: BlobStore):
    image_key, image_url = await generate_custom_image(
        illustrator,
        blob_store,
        request.prompt,
        enhance=request.enhance,
    )
    return CustomImageResponse(image_key=image_key, image_url=image_url)
