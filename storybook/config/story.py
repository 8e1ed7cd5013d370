"""
Story generation constants for the storybook generator.
"""

STORY_CONSTANTS = {
    "allowed_page_counts": (10, 15, 20),
    "default_page_count": 10,
    "default_target_age": "4-8 years old",
    "default_author": "You & AI",
}
