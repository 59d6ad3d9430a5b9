"""Pytest configuration and fixtures."""

import os

import pytest

# Set before any rfx_engine module reads settings at import time
os.environ["ANTHROPIC_API_KEY"] = "test-anthropic-key"
os.environ["OPENAI_API_KEY"] = "test-openai-key"
os.environ["RFX_ENGINE_ENV"] = "test"


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Each test sees settings built from the current environment."""
    from rfx_engine.core.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
