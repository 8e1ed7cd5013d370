"""
Module for generating page illustrations with Gemini.

One entry point, `generate_image`, covers every way a page gets illustrated:
- plain prompt (optionally enhanced with the house storybook style)
- prompt plus previously illustrated pages as visual context
- prompt sent into a per-story chat session so successive pages share a
  conversation with the model
"""

import logging
from typing import Optional

from storybook.config import (
    extract_image_from_response,
    get_image_client,
    get_image_config,
    get_image_model,
)
from ..errors import ProviderError
from ..sessions import DEFAULT_SESSION_TTL, ChatSessionStore
from ..types import GeneratedImage, PriorPageImage

logger = logging.getLogger(__name__)

STYLE_ENHANCEMENTS = [
    "Colorful children's book illustration style",
    "warm and inviting atmosphere",
    "soft lighting",
    "friendly and approachable characters",
    "bright cheerful colors",
    "detailed but not overwhelming",
    "age-appropriate and magical",
    "high quality digital art",
]


def enhance_prompt(prompt: str) -> str:
    """Add the house storybook style to a scene prompt.

    Prompts that already ask for a book or illustration style only get the
    quality enhancements, not the style itself.
    """
    lowered = prompt.lower()
    has_book_style = (
        "children's book" in lowered
        or "storybook" in lowered
        or "illustration" in lowered
    )
    enhancements = STYLE_ENHANCEMENTS[1:] if has_book_style else STYLE_ENHANCEMENTS
    return f"{prompt}, {', '.join(enhancements)}"


def build_consistency_prefix(title: str, character_description: Optional[str] = None) -> str:
    """Shared prompt prefix that keeps characters identical across a whole book."""
    prefix = f'Children\'s book illustration style. Story: "{title}". '
    if character_description and character_description.strip():
        prefix += (
            "MAIN CHARACTER (must appear exactly the same in all images): "
            f"{character_description.strip()}. "
        )
    prefix += (
        "Art style: Colorful, warm, child-friendly illustrations with soft edges "
        "and vibrant colors. Maintain exact character appearance, clothing, and "
        "features across all scenes. "
    )
    return prefix


class PageIllustrator:
    """
    Generate illustrations for story pages.

    Args:
        client: Optional genai client (defaults to one built from GOOGLE_API_KEY)
        session_store: Optional store for multi-turn sessions; required only
            when `generate_image` is called with a session_id
    """

    def __init__(self, client=None, session_store: Optional[ChatSessionStore] = None):
        self.client = client or get_image_client()
        self.model = get_image_model()
        self.config = get_image_config()
        self.session_store = session_store

    @classmethod
    def with_sessions(cls, client=None, ttl=DEFAULT_SESSION_TTL) -> "PageIllustrator":
        """Build an illustrator that owns a chat session store for its own chats."""
        illustrator = cls(client=client)
        illustrator.session_store = ChatSessionStore(chat_factory=illustrator.new_chat, ttl=ttl)
        return illustrator

    def new_chat(self):
        """Create a provider chat; used as the session store's factory."""
        return self.client.chats.create(model=self.model, config=self.config)

    def _build_contents(
        self,
        prompt: str,
        prior_page_context: Optional[list[PriorPageImage]],
    ) -> list:
        """Build multimodal contents: prior pages first, the new scene last."""
        contents = []
        for prior in prior_page_context or []:
            contents.append(prior.to_pil_image())
            contents.append(
                f"This is the illustration for page {prior.page_number} "
                f"(\"{prior.text}\"). Keep the characters, art style and color "
                "palette consistent with it."
            )
        contents.append(prompt)
        return contents

    def generate_image(
        self,
        prompt: str,
        enhance: bool = True,
        prior_page_context: Optional[list[PriorPageImage]] = None,
        session_id: Optional[str] = None,
    ) -> GeneratedImage:
        """
        Generate one illustration.

        Args:
            prompt: Scene description
            enhance: Add the house storybook style to the prompt
            prior_page_context: Earlier pages' images to stay consistent with
            session_id: Send the request through this chat session

        Returns:
            GeneratedImage with raw bytes and content type

        Raises:
            ProviderError: If the model call fails or returns no image
        """
        final_prompt = enhance_prompt(prompt) if enhance else prompt
        contents = self._build_contents(final_prompt, prior_page_context)

        try:
            if session_id is not None:
                if self.session_store is None:
                    raise ValueError("session_id given but no session store configured")
                session = self.session_store.get_or_create(session_id)
                response = session.chat.send_message(contents)
                session.turns += 1
            else:
                response = self.client.models.generate_content(
                    model=self.model,
                    contents=contents,
                    config=self.config,
                )
            image_bytes, content_type = extract_image_from_response(response)
        except Exception as e:
            logger.error(f"Image generation failed: {e}")
            raise ProviderError(f"Failed to generate image: {e}") from e

        logger.info(
            f"Generated image ({len(image_bytes)} bytes, {content_type}) "
            f"with {len(prior_page_context or [])} prior page(s)"
        )
        return GeneratedImage(
            image_bytes=image_bytes,
            content_type=content_type,
            prompt=final_prompt,
        )
