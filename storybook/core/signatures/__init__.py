from .story_pages import StoryPagesSignature, PageRewriteSignature

__all__ = [
    "StoryPagesSignature",
    "PageRewriteSignature",
]
