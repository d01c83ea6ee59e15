"""Root conftest for pytest configuration."""

import os


def pytest_configure(config):
    """Default to the test settings when none are given."""
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "mood_platform.test_settings")
