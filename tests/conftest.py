"""Shared test fixtures."""
import os

import pytest

from numeric_mask.config import Settings
from numeric_mask.editing.plugins import PluginRegistry
from numeric_mask.models.presets import PresetRegistry
from tests.factories import FakeClock, FakeScheduler


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep NUMERIC_MASK_* variables from the host out of every test."""
    for key in list(os.environ):
        if key.startswith("NUMERIC_MASK_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def test_settings():
    return Settings(decimal=",", group=".", digits=0)


@pytest.fixture
def preset_registry():
    return PresetRegistry()


@pytest.fixture
def plugin_registry():
    return PluginRegistry()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_scheduler():
    return FakeScheduler()
