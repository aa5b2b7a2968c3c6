"""Shared fixtures for the threadleak test suite."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from threadleak.core import ancestry
from threadleak.core.settings import load_settings


def pytest_configure(config: pytest.Config) -> None:
    # The plugin is normally loaded through its entry point; fall back to a
    # direct import when running from a source checkout.
    if not config.pluginmanager.has_plugin("threadleak"):
        config.pluginmanager.import_plugin("threadleak.pytest_plugin")


@pytest.fixture(autouse=True)  # type: ignore[misc]
def fresh_settings() -> Iterator[None]:
    """Rebuild settings after each test so env tweaks never leak across tests."""
    yield
    load_settings.cache_clear()


@pytest.fixture  # type: ignore[misc]
def ancestry_tracking() -> Iterator[None]:
    """Enable thread ancestry tracking for one test, restoring the prior state."""
    was_enabled = ancestry.is_enabled()
    ancestry.enable(100)
    yield
    if not was_enabled:
        ancestry.disable()
