"""Pytest configuration for shared package tests."""

import pytest

from coach_shared.config import get_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop cached settings so environment patches take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
