"""
DSPy Signatures for writing a paged children's story and rewriting one page.
"""

import dspy


class StoryPagesSignature(dspy.Signature):
    """
    Write a complete children's storybook from the reader's idea.

    GUIDELINES:
    - Vocabulary and concepts suited to the target age
    - 1-3 short, easy-to-read sentences per page
    - Positive themes: friendship, problem-solving, learning
    - Clear character development and a satisfying ending
    - Every page gets story text and a detailed illustration description
      (characters and clothing, setting, mood, specific visual elements,
      always "colorful children's book illustration style")

    OUTPUT FORMAT:
    TITLE: [A creative, engaging title]

    Page 1: [story text]
    [Illustration: what to draw]

    Page 2: [story text]
    [Illustration: what to draw]

    ... through the last page
    """

    prompt: str = dspy.InputField(desc="The story idea from the reader")
    total_pages: int = dspy.InputField(desc="Exact number of pages to write")
    target_age: str = dspy.InputField(desc="Reader age range, e.g. '4-8 years old'")

    story: str = dspy.OutputField(
        desc="""Complete story with title and illustration notes.
Format:
TITLE: [title]

Page 1: [story text]
[Illustration: scene description]

... exactly total_pages pages."""
    )


class PageRewriteSignature(dspy.Signature):
    """
    Rewrite a single page of an existing children's story so it still fits
    naturally with the pages around it.

    OUTPUT FORMAT:
    [story text]
    [Illustration: what to draw]
    """

    title: str = dspy.InputField(desc="Story title")
    target_age: str = dspy.InputField(desc="Reader age range")
    story_context: str = dspy.InputField(desc="The other pages, one per line as 'Page N: text'")
    page_number: int = dspy.InputField(desc="Which page to rewrite")
    reader_instructions: str = dspy.InputField(desc="Special instructions from the reader, may be empty")

    page: str = dspy.OutputField(desc="New page text followed by [Illustration: scene description]")
