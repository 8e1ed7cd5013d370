"""
DSPy Module for writing a paged children's story from a reader's idea.

The model answers in a plain-text format (TITLE / Page N / [Illustration: ...])
which is parsed into a GeneratedStory. A page count that does not match the
request is treated as a provider failure.
"""

import logging
import re
from typing import Optional

import dspy

from storybook.config import STORY_CONSTANTS, llm_retry
from ..errors import ProviderError
from ..signatures.story_pages import PageRewriteSignature, StoryPagesSignature
from ..types import GeneratedPage, GeneratedStory

logger = logging.getLogger(__name__)

_ILLUSTRATION_RE = re.compile(r'\[Illustration:\s*(.+?)\]', re.DOTALL | re.IGNORECASE)


def _split_illustration(content: str) -> tuple[str, str]:
    """Separate page text from its [Illustration: ...] note."""
    match = _ILLUSTRATION_RE.search(content)
    if not match:
        return content.strip(), ""
    text = content[:match.start()] + content[match.end():]
    return text.strip(), match.group(1).strip()


def parse_story_output(raw_output: str) -> tuple[str, list[GeneratedPage]]:
    """
    Parse raw LLM output into a title and ordered pages.

    Returns:
        Tuple of (title, pages sorted by page number)
    """
    title_match = re.search(r'TITLE:\s*(.+?)(?:\n|$)', raw_output, re.IGNORECASE)
    title = title_match.group(1).strip() if title_match else ""

    pages = []
    for part in re.split(r'(?=Page\s+\d+:)', raw_output, flags=re.IGNORECASE):
        num_match = re.match(r'Page\s+(\d+):\s*(.*)', part.strip(), re.DOTALL | re.IGNORECASE)
        if not num_match:
            continue

        text, image_prompt = _split_illustration(num_match.group(2))
        pages.append(GeneratedPage(
            page_number=int(num_match.group(1)),
            text=text,
            image_prompt=image_prompt,
        ))

    pages.sort(key=lambda p: p.page_number)
    return title, pages


class StoryWriter(dspy.Module):
    """
    Write complete storybooks and rewrite individual pages.

    Args:
        lm: Optional explicit LM. If provided, bypasses global dspy.configure()
            state. Useful for testing and explicit control.
    """

    def __init__(self, lm: Optional[dspy.LM] = None):
        super().__init__()
        self.write_story = dspy.ChainOfThought(StoryPagesSignature)
        self.rewrite_page = dspy.ChainOfThought(PageRewriteSignature)
        self._lm = lm

    def _call(self, predictor, **kwargs):
        try:
            if self._lm is not None:
                with dspy.context(lm=self._lm):
                    return llm_retry(predictor)(**kwargs)
            return llm_retry(predictor)(**kwargs)
        except Exception as e:
            logger.error(f"Story model call failed: {e}")
            raise ProviderError(f"Failed to generate story: {e}") from e

    def forward(
        self,
        prompt: str,
        total_pages: int,
        target_age: Optional[str] = None,
    ) -> GeneratedStory:
        """
        Write a story with exactly `total_pages` pages.

        Raises:
            ProviderError: If the model call fails or returns a story with a
                missing title or the wrong number of pages
        """
        target_age = target_age or STORY_CONSTANTS["default_target_age"]

        result = self._call(
            self.write_story,
            prompt=prompt,
            total_pages=total_pages,
            target_age=target_age,
        )
        title, pages = parse_story_output(result.story)

        if not title or len(pages) != total_pages:
            raise ProviderError(
                f"Invalid story structure received from model: "
                f"title={'yes' if title else 'no'}, pages={len(pages)}/{total_pages}"
            )

        # Renumber in order so gaps or duplicates in the output don't leak through
        for index, page in enumerate(pages, start=1):
            page.page_number = index

        logger.info(f"Generated '{title}' with {len(pages)} pages")
        return GeneratedStory(title=title, pages=pages, target_age=target_age)

    def regenerate_page(
        self,
        story: GeneratedStory,
        page_number: int,
        custom_prompt: Optional[str] = None,
    ) -> GeneratedPage:
        """Rewrite one page so it fits the rest of the story."""
        story_context = "\n".join(
            f"Page {p.page_number}: {p.text}"
            for p in story.pages
            if p.page_number != page_number
        )
        result = self._call(
            self.rewrite_page,
            title=story.title,
            target_age=story.target_age or STORY_CONSTANTS["default_target_age"],
            story_context=story_context,
            page_number=page_number,
            reader_instructions=custom_prompt or "",
        )

        text, image_prompt = _split_illustration(result.page)
        text = re.sub(r"^Page\s+\d+:\s*", "", text, flags=re.IGNORECASE)
        if not text:
            raise ProviderError(f"Model returned an empty rewrite for page {page_number}")

        return GeneratedPage(page_number=page_number, text=text, image_prompt=image_prompt)
