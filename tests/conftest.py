"""Root pytest configuration for shared markers."""

import os

import pytest


def pytest_configure(config):
    """Register custom markers used across test directories."""
    config.addinivalue_line(
        "markers", "requires_google_api: mark test as calling Gemini (needs GOOGLE_API_KEY)"
    )
    config.addinivalue_line(
        "markers", "requires_s3: mark test as using a real bucket (needs STORY_ASSETS_BUCKET)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip tests whose external service is not configured."""
    required = {
        "requires_google_api": "GOOGLE_API_KEY",
        "requires_s3": "STORY_ASSETS_BUCKET",
    }
    for item in items:
        for marker, env_var in required.items():
            if marker in item.keywords and not os.getenv(env_var):
                item.add_marker(pytest.mark.skip(reason=f"{env_var} not set"))
