"""Shared fixtures: isolate every test from the developer's environment."""

from __future__ import annotations

import pytest

from project_intake.settings.config import ENV_VAR_NAME, SETTINGS_FILE_ENV_VAR, environment_variable_names, get_settings


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    for name in (ENV_VAR_NAME, SETTINGS_FILE_ENV_VAR, *environment_variable_names()):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
