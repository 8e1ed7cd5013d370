from .story_writer import StoryWriter, parse_story_output
from .page_illustrator import PageIllustrator, build_consistency_prefix, enhance_prompt
from .page_context import build_prior_page_context

__all__ = [
    "StoryWriter",
    "parse_story_output",
    "PageIllustrator",
    "build_consistency_prefix",
    "enhance_prompt",
    "build_prior_page_context",
]
