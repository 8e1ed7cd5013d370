"""
Image generation configuration for the storybook generator.

Uses Gemini image generation for page illustrations.
"""

import base64
import os
from dotenv import load_dotenv
from google import genai
from google.genai.types import GenerateContentConfig, Modality

from storybook.core.errors import ConfigurationError

load_dotenv()

IMAGE_CONSTANTS = {
    "model": "gemini-2.5-flash-image",
    "max_prior_pages": 3,  # Previous pages sent as context per request
    "default_content_type": "image/png",
}


def get_image_client() -> genai.Client:
    """
    Get the Gemini client for illustration generation.

    Uses GOOGLE_API_KEY from environment.
    """
    api_key = os.getenv("GOOGLE_API_KEY")
    if not api_key:
        raise ConfigurationError("GOOGLE_API_KEY environment variable is not configured")

    return genai.Client(api_key=api_key)


def get_image_model() -> str:
    """Get the image model ID."""
    return IMAGE_CONSTANTS["model"]


def get_image_config() -> GenerateContentConfig:
    """Get the default config for image generation."""
    return GenerateContentConfig(
        response_modalities=[Modality.TEXT, Modality.IMAGE]
    )


def extract_image_from_response(response) -> tuple[bytes, str]:
    """
    Extract image bytes and MIME type from a Gemini API response.

    Args:
        response: The response from generate_content() or chat.send_message()

    Returns:
        Tuple of (image bytes, content type)

    Raises:
        ValueError: If no image found in response
    """
    candidates = getattr(response, "candidates", None)
    if not candidates:
        raise ValueError("No image generated from Gemini")

    content = candidates[0].content
    if not content or not content.parts:
        raise ValueError("No content parts in Gemini response")

    for part in content.parts:
        inline_data = getattr(part, "inline_data", None)
        if inline_data and inline_data.data:
            data = inline_data.data
            image_bytes = base64.b64decode(data) if isinstance(data, str) else data
            return image_bytes, inline_data.mime_type or IMAGE_CONSTANTS["default_content_type"]

    raise ValueError("No image data found in Gemini response")
